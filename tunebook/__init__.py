"""tunebook: ABC notation tools for an Irish traditional tune collection."""

__version__ = "0.1.0"
