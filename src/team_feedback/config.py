"""
Configuration management for the team feedback pipeline.

This module provides:
- Pydantic models for type-safe configuration
- YAML configuration loading
- Environment variable overrides
- Configuration validation

Configuration is loaded from YAML files and can be overridden via:
1. Environment variables (TEAM_FEEDBACK_<SECTION>__<KEY>)
2. Command-line arguments
3. Local config file (config/config.local.yml)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from team_feedback.models import ReflectionCategory, SchemaVariant, UnmatchedPolicy


# =============================================================================
# Configuration Models
# =============================================================================


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "Team Feedback"
    version: str = "1.0.0"
    description: str = "Peer feedback and self-reflection scoring for Foods class surveys"


class PathsConfig(BaseModel):
    """Path configuration for input/output directories."""

    input_file: Optional[Path] = None
    output_dir: Path = Path("outputs")
    logs_dir: Path = Path("logs")

    @field_validator("input_file", "output_dir", "logs_dir", mode="before")
    @classmethod
    def convert_to_path(cls, v: Any) -> Any:
        """Convert string paths to Path objects."""
        return Path(v) if isinstance(v, str) else v

    def resolve_paths(self, project_root: Path) -> "PathsConfig":
        """Resolve relative paths against project root."""

        def resolve(p: Path) -> Path:
            return p if p.is_absolute() else project_root / p

        return PathsConfig(
            input_file=resolve(self.input_file) if self.input_file else None,
            output_dir=resolve(self.output_dir),
            logs_dir=resolve(self.logs_dir),
        )


class FeedbackLayout(BaseModel):
    """
    Column positions of the peer-review part of an export.

    Reviewee blocks are ``block_width`` columns wide, repeated up to
    ``max_blocks`` times from ``block_start``. ``block_fields`` maps each
    field to its offset inside a block.
    """

    reviewer_column: int = Field(default=2, ge=0)
    block_start: int = Field(default=10, ge=0)
    block_width: int = Field(default=5, ge=1)
    max_blocks: int = Field(default=5, ge=1)
    block_fields: Dict[str, int] = Field(
        default_factory=lambda: {
            "name": 0,
            "planning": 1,
            "cooking": 2,
            "cleaning": 3,
            "comments": 4,
        }
    )

    @model_validator(mode="after")
    def check_block_fields(self) -> "FeedbackLayout":
        """Every block field must exist and fit inside the block."""
        required = {"name", "planning", "cooking", "cleaning", "comments"}
        missing = required - set(self.block_fields)
        if missing:
            raise ValueError(f"block_fields missing: {sorted(missing)}")
        for name, offset in self.block_fields.items():
            if not 0 <= offset < self.block_width:
                raise ValueError(
                    f"block field '{name}' offset {offset} outside block width {self.block_width}"
                )
        return self

    @property
    def min_columns(self) -> int:
        """Narrowest row that still holds one reviewee block."""
        return self.block_start + self.block_width

    @property
    def full_columns(self) -> int:
        """Width of a row holding every reviewee block."""
        return self.block_start + self.block_width * self.max_blocks

    def block_offsets(self) -> List[int]:
        """Starting column of each reviewee block."""
        return [self.block_start + i * self.block_width for i in range(self.max_blocks)]


class PeerReviewLayout(FeedbackLayout):
    """
    Column positions of the peer-review-only export.

    Without the self-reflection columns the reviewee blocks start right
    after the reviewer name.
    """

    block_start: int = Field(default=3, ge=0)


class ReflectionLayout(BaseModel):
    """Column positions of the self-reflection part of an export."""

    name_column: int = Field(default=2, ge=0)
    answer_columns: Dict[str, int] = Field(
        default_factory=lambda: {
            cat.value: 3 + i for i, cat in enumerate(ReflectionCategory)
        }
    )

    @field_validator("answer_columns")
    @classmethod
    def check_categories(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Answer columns must name exactly the seven reflection categories."""
        expected = {cat.value for cat in ReflectionCategory}
        if set(v) != expected:
            raise ValueError(
                f"answer_columns must define {sorted(expected)}, got {sorted(v)}"
            )
        return v

    def column_for(self, category: ReflectionCategory) -> int:
        """Get the column holding a category's answer."""
        return self.answer_columns[category.value]


class SchemaConfig(BaseModel):
    """
    Export layout configuration.

    ``variant`` is ``auto`` (detect from row width), ``feedback`` or
    ``combined``.
    """

    variant: str = "auto"
    placeholder_name: str = "NA"
    combined: FeedbackLayout = Field(default_factory=FeedbackLayout)
    reflection: ReflectionLayout = Field(default_factory=ReflectionLayout)
    feedback: PeerReviewLayout = Field(default_factory=PeerReviewLayout)

    @field_validator("variant")
    @classmethod
    def check_variant(cls, v: str) -> str:
        """Accept auto or a known variant name."""
        v = v.lower().strip()
        if v != "auto" and SchemaVariant.from_string(v) is None:
            valid = ["auto"] + [s.value for s in SchemaVariant]
            raise ValueError(f"Invalid schema variant: {v}. Must be one of {valid}")
        return v

    @property
    def forced_variant(self) -> Optional[SchemaVariant]:
        """The configured variant, or ``None`` when detection is automatic."""
        return SchemaVariant.from_string(self.variant)

    def layout_for(self, variant: SchemaVariant) -> FeedbackLayout:
        """Get the peer-review layout for a variant."""
        return self.combined if variant is SchemaVariant.COMBINED else self.feedback


class ClassifierConfig(BaseModel):
    """How unmatched survey answers are scored."""

    feedback_unmatched: UnmatchedPolicy = UnmatchedPolicy.BASELINE
    reflection_unmatched: UnmatchedPolicy = UnmatchedPolicy.SENTINEL
    baseline_score: float = 0.0


class ExportConfig(BaseModel):
    """CSV export configuration."""

    filename: str = "class_feedback.csv"
    delimiter: str = ","

    @field_validator("delimiter")
    @classmethod
    def single_character(cls, v: str) -> str:
        """csv needs a one-character delimiter."""
        if len(v) != 1:
            raise ValueError(f"Delimiter must be a single character, got {v!r}")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_logging: bool = False
    log_file_pattern: str = "team_feedback_{timestamp}.log"
    rich_console: bool = True


# =============================================================================
# Main Configuration Class
# =============================================================================


class FeedbackConfig(BaseSettings):
    """
    Main configuration class for the team feedback pipeline.

    Loads configuration from YAML files with environment variable overrides.
    Environment variables use the prefix TEAM_FEEDBACK_ and nested keys are
    separated by double underscores (e.g., TEAM_FEEDBACK_CLASSIFIER__BASELINE_SCORE).
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAM_FEEDBACK_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    schema_config: SchemaConfig = Field(default_factory=SchemaConfig, alias="schema")
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Runtime attributes (not from config file)
    _project_root: Optional[Path] = None
    _config_path: Optional[Path] = None

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        if self._project_root is not None:
            return self._project_root
        return Path.cwd()

    @project_root.setter
    def project_root(self, value: Path) -> None:
        """Set the project root directory."""
        self._project_root = value

    @property
    def config_path(self) -> Optional[Path]:
        """The YAML file this configuration was read from, if any."""
        return self._config_path

    def get_resolved_paths(self) -> PathsConfig:
        """Get paths resolved against project root."""
        return self.paths.resolve_paths(self.project_root)


# =============================================================================
# Configuration Loading
# =============================================================================


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    project_root: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> FeedbackConfig:
    """
    Load configuration from YAML file with optional overrides.

    Args:
        config_path: Path to config YAML file. If None, looks for config/config.yml
        project_root: Project root directory. If None, uses current directory
        overrides: Dictionary of config overrides (dotted keys supported)

    Returns:
        Loaded and validated FeedbackConfig instance

    Example:
        >>> config = load_config("config/config.yml")
        >>> config = load_config(overrides={"schema.variant": "combined"})
    """
    root = Path(project_root) if project_root is not None else Path.cwd()

    if config_path is not None:
        cfg_path = Path(config_path)
        if not cfg_path.is_absolute():
            cfg_path = root / cfg_path
    else:
        candidates = [
            root / "config" / "config.yml",
            root / "config" / "config.yaml",
            root / "config.yml",
            root / "config.yaml",
        ]
        cfg_path = None
        for candidate in candidates:
            if candidate.exists():
                cfg_path = candidate
                break

        if cfg_path is None:
            # No config file found, use defaults (with overrides if provided)
            config_data = _apply_overrides({}, overrides) if overrides else {}
            config = FeedbackConfig(**config_data)
            config._project_root = root
            return config

    config_data: Dict[str, Any] = {}
    if cfg_path.exists():
        with open(cfg_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    local_cfg_path = cfg_path.parent / "config.local.yml"
    if local_cfg_path.exists():
        with open(local_cfg_path, "r", encoding="utf-8") as f:
            local_data = yaml.safe_load(f) or {}
            config_data = _deep_merge(config_data, local_data)

    if overrides:
        config_data = _apply_overrides(config_data, overrides)

    config = FeedbackConfig(**config_data)
    config._project_root = root
    config._config_path = cfg_path

    return config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_overrides(config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Apply dotted-key overrides to config dictionary."""
    result = config.copy()

    for key, value in overrides.items():
        parts = key.split(".")
        current = result

        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            else:
                current[part] = dict(current[part])
            current = current[part]

        current[parts[-1]] = value

    return result


def save_config(config: FeedbackConfig, path: Union[str, Path]) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: FeedbackConfig instance to save
        path: Output path for YAML file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # JSON mode turns Paths and enums into plain YAML scalars
    data = config.model_dump(mode="json", by_alias=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
