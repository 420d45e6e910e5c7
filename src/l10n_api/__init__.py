"""FastAPI service for localization keys, translations and their audit trail."""

__version__ = "0.1.0"
