"""User-management Flask application with validation, structured errors and migrations."""

__version__ = "0.1.0"