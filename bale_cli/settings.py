"""Project settings read from the ``bale.yaml`` marker file.

Settings supply defaults for command-line flags. Precedence:
1. Command-line flag
2. bale.yaml at the project root
3. Built-in default
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from .paths import MARKER_FILE

logger = logging.getLogger(__name__)


class ProjectSettings(BaseModel):
    """Recognised keys of bale.yaml. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    use: list[str] = Field(default_factory=list, description="Transform plugins applied to every build")
    output: str | None = None
    development: bool | None = None
    copy_files: bool | None = Field(default=None, alias="copy")
    global_name: str | None = Field(default=None, alias="global")
    entry_type: str | None = Field(default=None, alias="type")
    engine: str | None = Field(default=None, description="Alternative engine as 'module:Class'")

    @field_validator("use", mode="before")
    @classmethod
    def _split_use(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return split_plugin_spec(value)
        return value


def split_plugin_spec(spec: str | None) -> list[str]:
    """Split a comma-separated plugin list, dropping empty names."""
    if not spec:
        return []
    return [name.strip() for name in spec.split(",") if name.strip()]


def load_settings(root: Path) -> ProjectSettings:
    """Load settings from ``<root>/bale.yaml``.

    A missing file yields defaults. A file that cannot be parsed or fails
    validation is logged and ignored rather than aborting the build.
    """
    config_path = root / MARKER_FILE
    if not config_path.is_file():
        return ProjectSettings()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read {config_path}: {e}")
        return ProjectSettings()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {config_path}: expected a mapping, got {type(data).__name__}")
        return ProjectSettings()

    try:
        return ProjectSettings.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid settings in {config_path}: {e}")
        return ProjectSettings()
