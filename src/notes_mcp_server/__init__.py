"""Personal notes with folders and on-demand cloud sync, served over MCP."""

__version__ = "0.1.0"
