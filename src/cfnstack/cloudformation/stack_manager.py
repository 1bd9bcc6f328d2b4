"""
CloudFormation stack management operations.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


def to_parameters(params: Mapping[str, str]) -> List[Dict[str, str]]:
    """Convert a parameter mapping into the CloudFormation request format."""
    return [
        {"ParameterKey": key, "ParameterValue": str(value)}
        for key, value in params.items()
    ]


class StackManager:
    """Manage CloudFormation stack operations.

    Each method is a single call against the API. Errors raised by the
    client (``botocore.exceptions.ClientError``) are not caught here.
    """

    def __init__(self, client: Any):
        """
        Initialize stack manager.

        Args:
            client: boto3 CloudFormation client, already bound to a region
        """
        self.cloudformation = client

    def _describe_stacks(self, stack_name: str) -> List[Dict[str, Any]]:
        response = self.cloudformation.describe_stacks(StackName=stack_name)
        return list(response.get("Stacks", []))

    def describe(self, stack_name: str) -> List[Dict[str, Any]]:
        """Describe the stacks matching a name."""
        stacks = self._describe_stacks(stack_name)
        for stack in stacks:
            logger.info(f"{stack}")
        return stacks

    def status(self, stack_name: str) -> List[Tuple[str, Optional[str]]]:
        """Get status and status reason of the stacks matching a name."""
        statuses = []
        for stack in self._describe_stacks(stack_name):
            status = stack["StackStatus"]
            reason = stack.get("StackStatusReason")
            logger.info(f"{status} - {reason}")
            statuses.append((status, reason))
        return statuses

    def outputs(self, stack_name: str) -> Dict[str, str]:
        """Get outputs from a CloudFormation stack."""
        stacks = self._describe_stacks(stack_name)
        if not stacks:
            return {}
        return {
            output["OutputKey"]: output["OutputValue"]
            for output in stacks[0].get("Outputs", [])
        }

    def create(
        self,
        stack_name: str,
        template_body: str,
        parameters: Mapping[str, str],
        capabilities: Sequence[str],
    ) -> str:
        """Create a stack and return its id."""
        result = self.cloudformation.create_stack(
            StackName=stack_name,
            TemplateBody=template_body,
            Parameters=to_parameters(parameters),
            Capabilities=list(capabilities),
        )
        stack_id = str(result["StackId"])
        logger.info(f"created stack {stack_name} / {stack_id}")
        return stack_id

    def update(
        self,
        stack_name: str,
        template_body: str,
        parameters: Mapping[str, str],
        capabilities: Sequence[str],
    ) -> str:
        """Update a stack and return its id."""
        result = self.cloudformation.update_stack(
            StackName=stack_name,
            TemplateBody=template_body,
            Parameters=to_parameters(parameters),
            Capabilities=list(capabilities),
        )
        stack_id = str(result["StackId"])
        logger.info(f"updated stack {stack_name} / {stack_id}")
        return stack_id

    def delete(self, stack_name: str) -> None:
        """Request deletion of a stack."""
        self.cloudformation.delete_stack(StackName=stack_name)
        logger.info(f"deleting stack {stack_name}")
