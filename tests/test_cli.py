"""
Tests for the cfnstack command line interface.
"""

import logging
from pathlib import Path
from typing import Any, Iterator
from unittest.mock import Mock, patch

import pytest
import yaml
from botocore.exceptions import ClientError
from click.testing import CliRunner

from cfnstack.cli import main

STACK_ID = "arn:aws:cloudformation:eu-west-1:123456789012:stack/staging-myapp/abc"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a project with two templates and per-environment settings."""
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
    config = {
        "name": "myapp",
        "region": "eu-west-1",
        "capabilities": ["CAPABILITY_IAM"],
        "environments": {
            "staging": {"parameters": {"Env": "staging"}},
            "production": {"parameters": {"Env": "production"}},
        },
    }
    with open(tmp_path / "cfnstack.yaml", "w") as f:
        yaml.dump(config, f)

    folder = tmp_path / "src" / "main" / "aws"
    folder.mkdir(parents=True)
    (folder / "a.template").write_text("{not json")
    (folder / "b.template").write_text('{"Parameters": {"Env": {"Type": "String"}}}')
    return tmp_path


@pytest.fixture
def client() -> Iterator[Mock]:
    """Mock the CloudFormation client built from the default session."""
    with patch("boto3.Session") as mock_session:
        yield mock_session.return_value.client.return_value


def invoke(runner: CliRunner, project: Path, *args: str) -> Any:
    return runner.invoke(main, ["--project-dir", str(project), *args])


class TestValidateCommand:
    """Test the validate command."""

    def test_all_valid(self, runner: CliRunner, project: Path, client: Mock) -> None:
        client.validate_template.return_value = {"Parameters": [{"ParameterKey": "Env"}]}

        result = invoke(runner, project, "validate")

        assert result.exit_code == 0, result.output
        assert "2 template(s) validated" in result.output
        assert client.validate_template.call_count == 2

    def test_one_invalid(self, runner: CliRunner, project: Path, client: Mock) -> None:
        """Test that one invalid template fails the command after both are checked."""
        client.validate_template.side_effect = [
            ClientError(
                {
                    "Error": {
                        "Code": "ValidationError",
                        "Message": "Template format error: JSON not well-formed.",
                    }
                },
                "ValidateTemplate",
            ),
            {"Parameters": [{"ParameterKey": "Env"}]},
        ]

        result = invoke(runner, project, "validate")

        assert result.exit_code == 1
        assert "❌" in result.output and "a.template" in result.output
        assert "JSON not well-formed" in result.output
        assert "b.template: Env" in result.output
        assert "failed to validate" in result.output
        assert client.validate_template.call_count == 2

    def test_one_unreadable(self, runner: CliRunner, project: Path, client: Mock) -> None:
        """Test that an unreadable template is reported while the rest are validated."""
        (project / "src" / "main" / "aws" / "a.template").write_bytes(b"\xff\xfe\x00bad")
        client.validate_template.return_value = {"Parameters": [{"ParameterKey": "Env"}]}

        result = invoke(runner, project, "validate")

        assert result.exit_code == 1
        assert "❌" in result.output and "cannot read template" in result.output
        assert "b.template: Env" in result.output
        assert "Error:" in result.output
        assert client.validate_template.call_count == 1


class TestStackCommands:
    """Test the stack operation commands."""

    def test_create(self, runner: CliRunner, project: Path, client: Mock) -> None:
        client.create_stack.return_value = {"StackId": STACK_ID}

        result = invoke(runner, project, "create", "-e", "staging")

        assert result.exit_code == 0, result.output
        assert STACK_ID in result.output
        client.create_stack.assert_called_once_with(
            StackName="staging-myapp",
            TemplateBody="{not json",
            Parameters=[{"ParameterKey": "Env", "ParameterValue": "staging"}],
            Capabilities=["CAPABILITY_IAM"],
        )

    def test_update(self, runner: CliRunner, project: Path, client: Mock) -> None:
        client.update_stack.return_value = {"StackId": STACK_ID}

        result = invoke(runner, project, "update", "--environment", "production")

        assert result.exit_code == 0, result.output
        assert STACK_ID in result.output
        assert client.update_stack.call_args[1]["StackName"] == "production-myapp"

    def test_delete_nonexistent(self, runner: CliRunner, project: Path, client: Mock) -> None:
        """Test that a remote error is reported and fails the command."""
        client.delete_stack.side_effect = ClientError(
            {
                "Error": {
                    "Code": "ValidationError",
                    "Message": "Stack with id myapp does not exist",
                }
            },
            "DeleteStack",
        )

        result = invoke(runner, project, "delete")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Stack with id myapp does not exist" in result.output

    def test_delete(self, runner: CliRunner, project: Path, client: Mock) -> None:
        result = invoke(runner, project, "delete", "-e", "production")

        assert result.exit_code == 0, result.output
        client.delete_stack.assert_called_once_with(StackName="production-myapp")

    def test_status(
        self,
        runner: CliRunner,
        project: Path,
        client: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        client.describe_stacks.return_value = {
            "Stacks": [
                {
                    "StackName": "staging-myapp",
                    "StackStatus": "UPDATE_COMPLETE",
                    "StackStatusReason": "done",
                }
            ]
        }

        with caplog.at_level(logging.INFO, logger="cfnstack"):
            result = invoke(runner, project, "status", "-e", "staging")

        assert result.exit_code == 0, result.output
        assert caplog.messages == ["UPDATE_COMPLETE - done"]
        client.describe_stacks.assert_called_once_with(StackName="staging-myapp")

    def test_describe(
        self,
        runner: CliRunner,
        project: Path,
        client: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that each stack is logged once and not echoed again."""
        client.describe_stacks.return_value = {
            "Stacks": [{"StackName": "myapp", "StackStatus": "CREATE_COMPLETE"}]
        }

        with caplog.at_level(logging.INFO, logger="cfnstack"):
            result = invoke(runner, project, "describe")

        assert result.exit_code == 0, result.output
        assert len(caplog.messages) == 1
        assert "CREATE_COMPLETE" in caplog.messages[0]
        assert "CREATE_COMPLETE" not in result.output
        client.describe_stacks.assert_called_once_with(StackName="myapp")

    def test_outputs(self, runner: CliRunner, project: Path, client: Mock) -> None:
        client.describe_stacks.return_value = {
            "Stacks": [
                {
                    "StackName": "myapp",
                    "Outputs": [{"OutputKey": "TopicArn", "OutputValue": "arn:topic"}],
                }
            ]
        }

        result = invoke(runner, project, "outputs", "-o", "TopicArn")
        missing = invoke(runner, project, "outputs", "-o", "Nope")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "arn:topic"
        assert missing.exit_code == 1
        assert "Output 'Nope' not found" in missing.output

    def test_missing_region(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a missing region fails before contacting AWS."""
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
        folder = tmp_path / "src" / "main" / "aws"
        folder.mkdir(parents=True)
        (folder / "app.template").write_text("{}")

        with patch("boto3.Session") as mock_session:
            result = invoke(runner, tmp_path, "status")

        assert result.exit_code == 1
        assert "stack region must be set" in result.output
        mock_session.assert_not_called()

    def test_missing_templates(self, runner: CliRunner, tmp_path: Path) -> None:
        result = invoke(runner, tmp_path, "create")

        assert result.exit_code == 1
        assert "*.template not found in this project" in result.output

    def test_unreadable_default_template(
        self, runner: CliRunner, project: Path, client: Mock
    ) -> None:
        (project / "src" / "main" / "aws" / "a.template").write_bytes(b"\xff\xfe\x00bad")

        result = invoke(runner, project, "create")

        assert result.exit_code == 1
        assert "Error: cannot read template" in result.output
        client.create_stack.assert_not_called()

    def test_invalid_environment(self, runner: CliRunner, project: Path) -> None:
        result = invoke(runner, project, "create", "-e", "qa")

        assert result.exit_code == 2


class TestInformationCommands:
    """Test the commands that only read local configuration."""

    def test_show(self, runner: CliRunner, project: Path) -> None:
        result = invoke(runner, project, "show", "-e", "production")

        assert result.exit_code == 0, result.output
        assert "production-myapp" in result.output
        assert "eu-west-1" in result.output
        assert "CAPABILITY_IAM" in result.output
        assert "Env: production" in result.output

    def test_templates(self, runner: CliRunner, project: Path) -> None:
        result = invoke(runner, project, "templates")

        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert [Path(line).name for line in lines] == ["a.template", "b.template"]

    def test_templates_empty(self, runner: CliRunner, tmp_path: Path) -> None:
        result = invoke(runner, tmp_path, "templates")

        assert result.exit_code == 0
        assert "No templates found" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "cfnstack.yaml").write_text("regoin: eu-west-1\n")

        result = invoke(runner, tmp_path, "show")

        assert result.exit_code == 1
        assert "Unknown settings in project settings: regoin" in result.output
