"""Settings and source descriptors.

Source descriptors come either from code or from a YAML settings file::

    sources:
      - type: css
        path: src/styles/tokens.css
        priority: 5
      - type: script
        path: theme.config.ts
        watch: false
    enable_auto_scan: true
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import SOURCE_TYPE_ALIASES, SourceType
from .utils import BUILTIN_PRIORITY, USER_PRIORITY_BASE, ConfigError

_log = logging.getLogger(__name__)

DEFAULT_AUTO_SCAN_PATTERNS = [
    "**/theme.config.{js,ts}",
    "**/tokens.{css,less,scss}",
    "**/*.theme.{css,less,scss}",
]


# =============================================================================
# Models
# =============================================================================


class SourceDescriptor(BaseModel):
    """Configuration of one token source."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: SourceType = Field(description="Source variant")
    enabled: bool = Field(True, description="Whether the source is loaded")
    priority: Optional[int] = Field(
        None, description="Precedence in conflict resolution; lower wins"
    )
    file_path: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("path", "filePath", "file_path"),
        description="File backing the source",
    )
    watch: bool = Field(True, description="Reload the source when its file changes")

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        if isinstance(value, str):
            try:
                return SOURCE_TYPE_ALIASES[value.strip().lower()]
            except KeyError:
                raise ValueError(f"unsupported source type '{value}'") from None
        return value

    @classmethod
    def builtin(cls, priority: int = BUILTIN_PRIORITY) -> "SourceDescriptor":
        return cls(type=SourceType.BUILTIN, priority=priority, watch=False)


class Settings(BaseModel):
    """Top-level tokenlens settings."""

    sources: List[SourceDescriptor] = Field(
        default_factory=list, description="User-declared token sources"
    )
    enable_auto_scan: bool = Field(
        True, description="Discover token files under the project root"
    )
    auto_scan_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_AUTO_SCAN_PATTERNS),
        description="Glob patterns (brace expansion allowed) for discovery",
    )
    builtin_priority: int = Field(
        BUILTIN_PRIORITY, description="Priority of the bundled dataset"
    )

    def resolved_sources(self, base_dir: Optional[Path] = None) -> list[SourceDescriptor]:
        """Return the full descriptor list: builtin first, then user sources.

        User sources without an explicit priority get USER_PRIORITY_BASE plus
        their position. Relative paths are resolved against base_dir.
        """
        resolved = [SourceDescriptor.builtin(self.builtin_priority)]

        for index, source in enumerate(self.sources):
            if source.type is SourceType.BUILTIN:
                continue
            updates: dict = {}
            if source.priority is None:
                updates["priority"] = USER_PRIORITY_BASE + index
            if source.file_path and base_dir is not None:
                path = Path(source.file_path)
                if not path.is_absolute():
                    updates["file_path"] = str(base_dir / path)
            resolved.append(source.model_copy(update=updates) if updates else source)

        return resolved


# =============================================================================
# Loading
# =============================================================================


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from a YAML file.

    A missing path (or None) yields default settings.

    Raises:
        ConfigError: If the file can't be parsed or fails validation.
    """
    if path is None or not path.exists():
        return Settings()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read settings from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    _log.debug("Loaded %d source descriptors from %s", len(settings.sources), path)
    return settings
