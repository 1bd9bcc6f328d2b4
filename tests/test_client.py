"""
Tests for CloudFormation client construction.
"""

from unittest.mock import Mock, patch

import pytest

from cfnstack.cloudformation.client import create_client, default_session
from cfnstack.exceptions import ConfigurationError, InvalidArgumentError


class TestCreateClient:
    """Test create_client."""

    def test_binds_region(self) -> None:
        session = Mock()

        client = create_client(session, "eu-west-1")

        session.client.assert_called_once_with("cloudformation", region_name="eu-west-1")
        assert client is session.client.return_value

    @pytest.mark.parametrize("region", [None, ""])
    def test_missing_region(self, region) -> None:
        """Test that a missing region fails before any client is built."""
        session = Mock()

        with pytest.raises(ConfigurationError, match="stack region must be set"):
            create_client(session, region)

        session.client.assert_not_called()

    def test_invalid_argument_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            create_client(Mock(), None)

        with pytest.raises(InvalidArgumentError):
            create_client(Mock(), "")


class TestDefaultSession:
    """Test default_session."""

    def test_default_chain(self) -> None:
        with patch("boto3.Session") as mock_session:
            session = default_session()

        mock_session.assert_called_once_with()
        assert session is mock_session.return_value

    def test_profile(self) -> None:
        with patch("boto3.Session") as mock_session:
            default_session("deploy")

        mock_session.assert_called_once_with(profile_name="deploy")
