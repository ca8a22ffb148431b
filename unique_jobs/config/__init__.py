"""Configuration: settings from environment and JSON logging setup."""

from unique_jobs.config.logging import JsonFormatter, configure_logging
from unique_jobs.config.settings import NO_WAIT, UniqueJobsSettings, get_settings

__all__ = [
    "JsonFormatter",
    "NO_WAIT",
    "UniqueJobsSettings",
    "configure_logging",
    "get_settings",
]
