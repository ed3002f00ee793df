"""
Core utilities and configuration for the river levels backend.

Modules:
    config: Application configuration and environment variable management
    database: SQLite engine creation and schema management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_engine_for_path
    from core.exceptions import FetchError, PersistenceError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "create_engine_for_path",
    "init_models",
    "setup_logging",
    # Exceptions
    "HydroException",
    "FetchError",
    "DiscoveryError",
    "ParseError",
    "TimestampParseError",
    "PersistenceError",
    "IntegrityError",
    "RefreshError",
    "InterpreterError",
]
