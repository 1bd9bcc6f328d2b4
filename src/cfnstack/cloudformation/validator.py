"""
Template validation against the CloudFormation API.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import ConfigurationError, ValidationBatchError
from .templates import TemplateFile, load_template

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validating a single template file."""

    path: Path
    parameters: Optional[List[str]] = None
    error: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def ok(self) -> bool:
        return self.error is None


class TemplateValidator:
    """Validate templates one by one, reporting every failure at the end."""

    def __init__(self, client: Any):
        """
        Initialize validator.

        Args:
            client: boto3 CloudFormation client
        """
        self.client = client

    def validate_file(self, path: Union[str, Path]) -> ValidationResult:
        """Read and validate one template file, capturing any failure."""
        try:
            template = load_template(path)
        except ConfigurationError as e:
            return ValidationResult(path=Path(path), error=str(e))
        return self.validate_template(template)

    def validate_template(self, template: TemplateFile) -> ValidationResult:
        """Validate one loaded template, capturing any failure in the result."""
        try:
            response = self.client.validate_template(TemplateBody=template.body)
        except (ClientError, BotoCoreError) as e:
            return ValidationResult(path=template.path, error=str(e))

        logger.debug(f"result from validating {template.path} : {response}")
        logger.info(f"validated {template.path}")
        keys = [p["ParameterKey"] for p in response.get("Parameters", [])]
        return ValidationResult(path=template.path, parameters=keys)

    def validate(
        self, templates: Sequence[Union[TemplateFile, str, Path]]
    ) -> List[ValidationResult]:
        """Validate all templates.

        Args:
            templates: Loaded templates or paths of template files

        Returns:
            One result per template, in input order

        Raises:
            ValidationBatchError: After all templates were attempted, if any failed
        """
        results = [
            self.validate_template(t)
            if isinstance(t, TemplateFile)
            else self.validate_file(t)
            for t in templates
        ]

        for result in results:
            if not result.ok:
                logger.error(f"validation of {result.path} failed with: \n {result.error}")

        if any(not r.ok for r in results):
            raise ValidationBatchError(results)

        return results
