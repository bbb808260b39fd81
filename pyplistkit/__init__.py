"""Property list node model with an XML plist reader and writer."""

__version__ = "0.1.0"