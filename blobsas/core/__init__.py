"""Core module initialization."""

from .config_manager import ConfigManager, BlobSasConfig
from .logging_config import setup_logging, log_with_context

__all__ = [
    "ConfigManager",
    "BlobSasConfig",
    "setup_logging",
    "log_with_context",
]
