"""webscaffold: configuration, storage registry and process bootstrap for a web app."""

__version__ = "0.1.0"

__all__ = ["__version__"]
