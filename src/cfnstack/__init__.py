"""
cfnstack - CloudFormation stack lifecycle commands driven by project configuration.
"""

__version__ = "1.0.0"

from .config import ConfigManager, Environment, StackSettings, get_config_manager
from .exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    TemplateNotFoundError,
    ValidationBatchError,
)

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "Environment",
    "InvalidArgumentError",
    "StackSettings",
    "TemplateNotFoundError",
    "ValidationBatchError",
    "get_config_manager",
]
