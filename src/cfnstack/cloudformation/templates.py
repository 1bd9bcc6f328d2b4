"""
CloudFormation template discovery and loading.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

from ..exceptions import ConfigurationError, TemplateNotFoundError

TEMPLATE_PATTERN = "*.template"


@dataclass(frozen=True)
class TemplateFile:
    """A template file and its raw text."""

    path: Path
    body: str

    @property
    def name(self) -> str:
        return self.path.name


def discover_templates(
    folder: Union[str, Path], pattern: str = TEMPLATE_PATTERN
) -> List[Path]:
    """Find template files below a folder.

    Args:
        folder: Folder to search, recursively
        pattern: Glob pattern for template file names

    Returns:
        Sorted list of matching paths; empty if the folder does not exist
    """
    folder = Path(folder)
    if not folder.is_dir():
        return []
    return sorted(p for p in folder.rglob(pattern) if p.is_file())


def load_template(path: Union[str, Path]) -> TemplateFile:
    """Read a template file eagerly."""
    path = Path(path)
    if not path.is_file():
        raise TemplateNotFoundError(f"template {path} not found")
    try:
        body = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"cannot read template {path}: {e}") from e
    return TemplateFile(path=path, body=body)


def default_template(paths: Sequence[Union[str, Path]]) -> TemplateFile:
    """Load the first discovered template."""
    if not paths:
        raise TemplateNotFoundError(f"{TEMPLATE_PATTERN} not found in this project")
    return load_template(paths[0])
