"""Top-level package for the Mixpanel track relay FastAPI application."""

__all__ = ["__version__"]

__version__ = "0.1.0"
