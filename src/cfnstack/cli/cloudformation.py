#!/usr/bin/env python3
"""
CloudFormation stack CLI commands.
"""

import logging
import sys
from typing import Optional

import click
from botocore.exceptions import BotoCoreError, ClientError

from ..config import ConfigManager, Environment, get_config_manager
from ..exceptions import CfnStackError, ValidationBatchError

ENVIRONMENT_CHOICES = [e.value for e in Environment]

environment_option = click.option(
    "--environment",
    "-e",
    type=click.Choice(ENVIRONMENT_CHOICES, case_sensitive=False),
    default=Environment.DEFAULT.value,
    show_default=True,
    help="Environment whose settings to use",
)


def fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(package_name="cfnstack")
@click.option(
    "--project-dir",
    "-d",
    type=click.Path(file_okay=False, exists=True),
    help="Project directory (defaults to the current directory)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="Configuration file (defaults to cfnstack.yaml in the project directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    project_dir: Optional[str],
    config_file: Optional[str],
    verbose: bool,
) -> None:
    """CloudFormation stack management commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s" if verbose else "%(message)s",
    )
    try:
        ctx.obj = get_config_manager(project_dir, config_file)
    except CfnStackError as e:
        fail(e)


@main.command()
@environment_option
@click.pass_obj
def validate(manager: ConfigManager, environment: str) -> None:
    """Validate all templates of the project."""
    try:
        results = manager.validate_templates(environment)
    except ValidationBatchError as e:
        results = e.results
        for result in results:
            if result.ok:
                click.echo(f"✅ {result.path}: {', '.join(result.parameters)}")
            else:
                click.echo(f"❌ {result.path}: {result.error}")
        fail(e)
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)
    else:
        for result in results:
            click.echo(f"✅ {result.path}: {', '.join(result.parameters)}")
        click.echo(f"{len(results)} template(s) validated")


@main.command()
@environment_option
@click.pass_obj
def describe(manager: ConfigManager, environment: str) -> None:
    """Describe the environment's stack completely."""
    try:
        settings = manager.resolve(environment)
        manager.stack_manager(environment).describe(settings.stack_name)
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)


@main.command()
@environment_option
@click.pass_obj
def status(manager: ConfigManager, environment: str) -> None:
    """Show the status of the environment's stack."""
    try:
        settings = manager.resolve(environment)
        manager.stack_manager(environment).status(settings.stack_name)
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)


@main.command()
@environment_option
@click.pass_obj
def create(manager: ConfigManager, environment: str) -> None:
    """Create the environment's stack and print its id."""
    try:
        settings = manager.resolve(environment)
        stack_id = manager.stack_manager(environment).create(
            settings.stack_name,
            settings.template_body,
            settings.parameters,
            settings.capabilities,
        )
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)

    click.echo(stack_id)


@main.command()
@environment_option
@click.pass_obj
def update(manager: ConfigManager, environment: str) -> None:
    """Update the environment's stack and print its id."""
    try:
        settings = manager.resolve(environment)
        stack_id = manager.stack_manager(environment).update(
            settings.stack_name,
            settings.template_body,
            settings.parameters,
            settings.capabilities,
        )
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)

    click.echo(stack_id)


@main.command()
@environment_option
@click.pass_obj
def delete(manager: ConfigManager, environment: str) -> None:
    """Delete the environment's stack."""
    try:
        settings = manager.resolve(environment)
        manager.stack_manager(environment).delete(settings.stack_name)
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)


@main.command()
@environment_option
@click.option("--output-key", "-o", help="Only print this output's value")
@click.pass_obj
def outputs(manager: ConfigManager, environment: str, output_key: Optional[str]) -> None:
    """Show the outputs of the environment's stack."""
    try:
        settings = manager.resolve(environment)
        stack_outputs = manager.stack_manager(environment).outputs(settings.stack_name)
    except (CfnStackError, ClientError, BotoCoreError) as e:
        fail(e)

    if output_key:
        if output_key not in stack_outputs:
            click.echo(
                f"Output '{output_key}' not found in stack {settings.stack_name}",
                err=True,
            )
            sys.exit(1)
        click.echo(stack_outputs[output_key])
        return

    for key, value in stack_outputs.items():
        click.echo(f"{key}: {value}")


@main.command()
@click.pass_obj
def templates(manager: ConfigManager) -> None:
    """List the templates found in the templates folder."""
    paths = manager.templates()
    if not paths:
        click.echo(f"No templates found in {manager.project.templates_path}")
        return
    for path in paths:
        click.echo(str(path))


@main.command()
@environment_option
@click.pass_obj
def show(manager: ConfigManager, environment: str) -> None:
    """Show the resolved settings of an environment."""
    try:
        settings = manager.resolve(environment)
    except CfnStackError as e:
        fail(e)

    click.echo(f"Environment:  {settings.environment.value}")
    click.echo(f"Stack:        {settings.stack_name}")
    click.echo(f"Template:     {settings.template_path}")
    click.echo(f"Region:       {settings.region or '(not set)'}")
    click.echo(f"Profile:      {settings.profile or '(default)'}")
    click.echo(f"Capabilities: {', '.join(settings.capabilities) or '(none)'}")
    if settings.parameters:
        click.echo("Parameters:")
        for key, value in settings.parameters.items():
            click.echo(f"  {key}: {value}")


if __name__ == "__main__":
    main()
