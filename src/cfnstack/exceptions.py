"""
Exceptions raised by cfnstack.
"""

from typing import List

from botocore.exceptions import ClientError

# Remote CloudFormation failures are surfaced as-is.
RemoteApiError = ClientError


class CfnStackError(Exception):
    """Base class for cfnstack errors."""


class ConfigurationError(CfnStackError):
    """Exception thrown when the project configuration is missing or invalid"""


class TemplateNotFoundError(ConfigurationError):
    """Exception thrown when no default template can be located"""


class InvalidArgumentError(ConfigurationError, ValueError):
    """Exception thrown when a required argument is missing or empty"""


class ValidationBatchError(CfnStackError):
    """Raised after a validation run in which one or more templates failed.

    The complete list of results, successes included, stays available on
    ``results`` so callers can still report what passed.
    """

    def __init__(self, results: List) -> None:
        self.results = list(results)
        lines = ["some AWS CloudFormation templates failed to validate!"]
        for result in self.failures:
            lines.append(f"  {result.path}: {result.error}")
        super().__init__("\n".join(lines))

    @property
    def failures(self) -> List:
        return [r for r in self.results if not r.ok]
