"""
Configuration management for CloudFormation stacks.

Settings are declared once for the project and optionally overridden per
environment (staging, production) in a ``cfnstack.yaml`` file at the project
root. Environment values win over project values, which win over defaults.
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import boto3
import yaml

from .cloudformation.client import create_client, default_session
from .cloudformation.stack_manager import StackManager
from .cloudformation.templates import (
    TemplateFile,
    default_template,
    discover_templates,
    load_template,
)
from .cloudformation.validator import TemplateValidator, ValidationResult
from .exceptions import ConfigurationError, InvalidArgumentError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "cfnstack.yaml"
DEFAULT_TEMPLATES_FOLDER = "src/main/aws"
REGION_ENV_VAR = "AWS_DEFAULT_REGION"


class Environment(Enum):
    """Deployment environments a project can target."""

    DEFAULT = "default"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "Environment":
        """Parse an environment name; empty means the default scope."""
        if not name:
            return cls.DEFAULT
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ", ".join(e.value for e in cls)
            raise ConfigurationError(
                f"Unknown environment: {name} (expected one of {choices})"
            ) from None


def normalize_name(name: str) -> str:
    """Lower-case a project name and collapse non-word runs into hyphens."""
    return re.sub(r"\W+", "-", name.lower())


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class StackOverrides:
    """One layer of stack settings; ``None`` means inherit."""

    template: Optional[str] = None
    parameters: Optional[Dict[str, str]] = None
    capabilities: Optional[List[str]] = None
    region: Optional[str] = None
    stack_name: Optional[str] = None
    profile: Optional[str] = None

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], scope: str) -> "StackOverrides":
        """Create a layer from a config mapping.

        Args:
            data: Mapping with any of the layer's field names
            scope: Name of the scope, used in error messages

        Raises:
            ConfigurationError: On unknown keys or wrongly typed values
        """
        unknown = set(data) - set(cls.field_names())
        if unknown:
            raise ConfigurationError(
                f"Unknown settings in {scope}: {', '.join(sorted(unknown))}"
            )

        values: Dict[str, Any] = {}
        for key in ("template", "region", "stack_name", "profile"):
            if data.get(key) is not None:
                values[key] = str(data[key])

        parameters = data.get("parameters")
        if parameters is not None:
            if not isinstance(parameters, Mapping):
                raise ConfigurationError(f"{scope}: parameters must be a mapping")
            values["parameters"] = {
                str(k): _format_value(v) for k, v in parameters.items()
            }

        capabilities = data.get("capabilities")
        if capabilities is not None:
            if isinstance(capabilities, str) or not isinstance(capabilities, list):
                raise ConfigurationError(f"{scope}: capabilities must be a list")
            values["capabilities"] = [str(c) for c in capabilities]

        return cls(**values)


def merge(base: StackOverrides, override: StackOverrides) -> StackOverrides:
    """Layer ``override`` on top of ``base``; set override fields win."""
    merged = {}
    for name in StackOverrides.field_names():
        value = getattr(override, name)
        merged[name] = value if value is not None else getattr(base, name)
    return StackOverrides(**merged)


@dataclass
class ProjectConfig:
    """Stack configuration for a project."""

    name: str
    base_dir: Path
    templates_folder: str = DEFAULT_TEMPLATES_FOLDER
    base: StackOverrides = field(default_factory=StackOverrides)
    environments: Dict[Environment, StackOverrides] = field(default_factory=dict)

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @property
    def templates_path(self) -> Path:
        return self.base_dir / self.templates_folder

    def layer(self, environment: Environment) -> StackOverrides:
        """Effective override layer for an environment, stack name excluded."""
        if environment is Environment.DEFAULT:
            return self.base
        env_layer = self.environments.get(environment, StackOverrides())
        return merge(self.base, env_layer)

    def stack_name(self, environment: Environment) -> str:
        """Get the CloudFormation stack name for an environment."""
        base_name = self.base.stack_name or self.normalized_name
        if environment is Environment.DEFAULT:
            return base_name
        env_layer = self.environments.get(environment)
        if env_layer is not None and env_layer.stack_name:
            return env_layer.stack_name
        return f"{environment.value}-{base_name}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_dir: Path) -> "ProjectConfig":
        """Create config from a parsed ``cfnstack.yaml`` mapping."""
        data = dict(data)
        name = str(data.pop("name", None) or base_dir.resolve().name)
        templates_folder = str(
            data.pop("templates_folder", None) or DEFAULT_TEMPLATES_FOLDER
        )

        environments: Dict[Environment, StackOverrides] = {}
        raw_environments = data.pop("environments", None) or {}
        if not isinstance(raw_environments, Mapping):
            raise ConfigurationError("environments must be a mapping")
        for env_name, env_data in raw_environments.items():
            environment = Environment.from_name(str(env_name))
            if environment is Environment.DEFAULT:
                raise ConfigurationError(
                    "the default environment is configured at the top level"
                )
            if env_data is not None and not isinstance(env_data, Mapping):
                raise ConfigurationError(f"environment {env_name} must be a mapping")
            environments[environment] = StackOverrides.from_dict(
                env_data or {}, f"environment {environment.value}"
            )

        return cls(
            name=name,
            base_dir=base_dir,
            templates_folder=templates_folder,
            base=StackOverrides.from_dict(data, "project settings"),
            environments=environments,
        )


@dataclass(frozen=True)
class StackSettings:
    """Fully resolved stack settings for one environment."""

    environment: Environment
    stack_name: str
    template_path: Path
    template_body: str
    parameters: Mapping[str, str]
    capabilities: Tuple[str, ...]
    region: Optional[str]
    profile: Optional[str] = None


class ConfigManager:
    """Loads project configuration and resolves per-environment settings.

    Resolved settings, template lists, sessions and clients are cached for
    the lifetime of the manager, which is one command invocation.
    """

    def __init__(
        self,
        project_dir: Optional[Union[str, Path]] = None,
        config_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        session_factory: Callable[[Optional[str]], boto3.Session] = default_session,
    ):
        """Initialize config manager.

        Args:
            project_dir: Project root, defaults to the current directory
            config_file: Explicit config file, defaults to cfnstack.yaml in project_dir
            environ: Environment variables, defaults to os.environ
            session_factory: Builds a credentials session for an optional profile
        """
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config_file = (
            Path(config_file) if config_file else self.project_dir / CONFIG_FILE_NAME
        )
        self.environ = os.environ if environ is None else environ
        self.session_factory = session_factory

        self.project = self._load_config()

        self._templates: Optional[List[Path]] = None
        self._settings: Dict[Environment, StackSettings] = {}
        self._sessions: Dict[Optional[str], boto3.Session] = {}
        self._clients: Dict[Environment, Any] = {}

    def _load_config(self) -> ProjectConfig:
        if not self.config_file.exists():
            logger.debug(f"No {self.config_file} found, using defaults")
            return ProjectConfig(
                name=self.project_dir.resolve().name, base_dir=self.project_dir
            )

        logger.debug(f"Loading configuration: {self.config_file}")
        try:
            with open(self.config_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_file}: {e}") from e

        if not isinstance(data, Mapping):
            raise ConfigurationError(f"{self.config_file} must contain a mapping")
        return ProjectConfig.from_dict(data, self.project_dir)

    def templates(self) -> List[Path]:
        """List the template files in the templates folder."""
        if self._templates is None:
            self._templates = discover_templates(self.project.templates_path)
        return self._templates

    def _template_for(self, layer: StackOverrides) -> TemplateFile:
        if layer.template:
            return load_template(self.project.base_dir / layer.template)
        return default_template(self.templates())

    def resolve(self, environment: Union[Environment, str, None] = None) -> StackSettings:
        """Resolve the stack settings of an environment.

        Raises:
            ConfigurationError: If no template can be located
        """
        if not isinstance(environment, Environment):
            environment = Environment.from_name(environment)

        if environment not in self._settings:
            layer = self.project.layer(environment)
            template = self._template_for(layer)
            self._settings[environment] = StackSettings(
                environment=environment,
                stack_name=self.project.stack_name(environment),
                template_path=template.path,
                template_body=template.body,
                parameters=MappingProxyType(dict(layer.parameters or {})),
                capabilities=tuple(layer.capabilities or ()),
                region=self.region(environment),
                profile=layer.profile,
            )
            logger.debug(f"Resolved {environment.value} settings for {self.project.name}")
        return self._settings[environment]

    def region(self, environment: Union[Environment, str, None] = None) -> Optional[str]:
        """Configured region of an environment, falling back to AWS_DEFAULT_REGION."""
        if not isinstance(environment, Environment):
            environment = Environment.from_name(environment)
        layer = self.project.layer(environment)
        return layer.region or self.environ.get(REGION_ENV_VAR) or None

    def session(self, profile: Optional[str] = None) -> boto3.Session:
        """Get the credentials session for a profile."""
        if profile not in self._sessions:
            self._sessions[profile] = self.session_factory(profile)
        return self._sessions[profile]

    def client(self, environment: Union[Environment, str, None] = None) -> Any:
        """Get the CloudFormation client of an environment.

        Raises:
            InvalidArgumentError: If no region is configured
        """
        if not isinstance(environment, Environment):
            environment = Environment.from_name(environment)

        if environment not in self._clients:
            layer = self.project.layer(environment)
            region = self.region(environment)
            if not region:
                raise InvalidArgumentError(
                    f"stack region must be set for {environment.value}"
                )
            self._clients[environment] = create_client(
                self.session(layer.profile), region
            )
        return self._clients[environment]

    def stack_manager(self, environment: Union[Environment, str, None] = None) -> StackManager:
        return StackManager(self.client(environment))

    def validate_templates(
        self, environment: Union[Environment, str, None] = None
    ) -> List[ValidationResult]:
        """Validate every template of the project.

        Raises:
            ValidationBatchError: If any template failed to validate
        """
        validator = TemplateValidator(self.client(environment))
        return validator.validate(self.templates())


_config_manager: Optional[ConfigManager] = None


def get_config_manager(
    project_dir: Optional[Union[str, Path]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> ConfigManager:
    """Get or create the config manager instance."""
    global _config_manager
    if _config_manager is None or project_dir is not None or config_file is not None:
        _config_manager = ConfigManager(project_dir, config_file)
    return _config_manager
