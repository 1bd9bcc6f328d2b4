"""
Construction of region-bound CloudFormation clients.
"""

import logging
from typing import Any, Optional

import boto3

from ..exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def default_session(profile: Optional[str] = None) -> boto3.Session:
    """Create a session from the default AWS credential chain.

    Args:
        profile: Named AWS profile to use instead of the default chain

    Returns:
        boto3 session carrying the resolved credentials
    """
    session_args = {}
    if profile:
        session_args["profile_name"] = profile
    return boto3.Session(**session_args)


def create_client(session: boto3.Session, region: Optional[str]) -> Any:
    """Create a CloudFormation client bound to a region.

    Raises:
        InvalidArgumentError: If region is empty
    """
    if not region:
        raise InvalidArgumentError("stack region must be set")

    logger.debug(f"Creating CloudFormation client for region {region}")
    return session.client("cloudformation", region_name=region)
