"""
CloudFormation stack management utilities.
"""

from .client import create_client, default_session
from .stack_manager import StackManager, to_parameters
from .templates import (
    TemplateFile,
    default_template,
    discover_templates,
    load_template,
)
from .validator import TemplateValidator, ValidationResult

__all__ = [
    "StackManager",
    "TemplateFile",
    "TemplateValidator",
    "ValidationResult",
    "create_client",
    "default_session",
    "default_template",
    "discover_templates",
    "load_template",
    "to_parameters",
]
