"""Web push relay server and offline client agent."""

__version__ = "0.1.0"
