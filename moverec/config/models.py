"""
Pydantic models for moverec configuration.

Provides type-safe, validated configuration with clear error messages
and automatic validation of all configuration values.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from moverec.exceptions import ConfigurationError

ALGORITHM_NAMES = ("ARI", "MRI", "HAC")


class DistanceConfig(BaseModel):
    """Configuration for the entity distance function."""

    feature_weight: float = Field(
        default=1.0, gt=0.0, description="Weight of the Euclidean feature-vector term."
    )
    relation_weight: float = Field(
        default=1.0, gt=0.0, description="Weight of the relevant-properties (Jaccard) term."
    )
    normalization: str = Field(
        default="none",
        description="Feature normalization across the snapshot ('none', 'minmax', 'zscore', 'robust').",
    )

    @field_validator("normalization")
    @classmethod
    def validate_normalization(cls, v: str) -> str:
        """Validate normalization method."""
        allowed = {"none", "minmax", "zscore", "robust"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"normalization must be one of {allowed}, got: {v}")
        return v_lower


class ExecutionConfig(BaseModel):
    """Configuration for the execution coordinator."""

    max_workers: int = Field(default=4, ge=1, description="Worker threads for parallel algorithms.")
    min_confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Suggestions with lower confidence are dropped (0-1).",
    )


class HACConfig(BaseModel):
    """Configuration for hierarchical agglomerative clustering."""

    distance_threshold: float = Field(
        default=1.0, gt=0.0, description="Linkage distance at which clusters stop merging."
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Logging level.")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format.",
    )
    file: str | None = Field(default=None, description="Optional log file path.")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"level must be one of {allowed}, got: {v}")
        return v_upper


class ReportingConfig(BaseModel):
    """Configuration for telemetry report lines."""

    recorder_id: str = Field(default="moverec-refactorings", description="Recorder identifier.")
    recorder_version: str = Field(default="1", description="Recorder version.")
    session_id: str = Field(default="random_session_id", description="Session identifier.")
    bucket: int = Field(default=-1, description="Experiment bucket.")


class MoveRecConfig(BaseModel):
    """Main moverec configuration."""

    algorithms: list[str] = Field(
        default_factory=lambda: ["ARI"], description="Algorithms to run, in order."
    )
    metrics: list[str] | None = Field(
        default=None,
        description="Expected metric names. If set, snapshots with another schema are rejected.",
    )
    distance: DistanceConfig = Field(default_factory=DistanceConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    hac: HACConfig = Field(default_factory=HACConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    model_config = {
        "extra": "forbid",  # Raise error on unknown fields
        "validate_assignment": True,  # Validate on attribute assignment
    }

    @field_validator("algorithms")
    @classmethod
    def validate_algorithms(cls, v: list[str]) -> list[str]:
        """Validate and normalize algorithm names."""
        if not v:
            raise ValueError("at least one algorithm must be selected")
        normalized = []
        for name in v:
            upper = name.upper()
            if upper not in ALGORITHM_NAMES:
                raise ValueError(f"algorithm must be one of {set(ALGORITHM_NAMES)}, got: {name}")
            if upper not in normalized:
                normalized.append(upper)
        return normalized

    @field_validator("metrics")
    @classmethod
    def validate_metrics(cls, v: list[str] | None) -> list[str] | None:
        """Metric names must be unique."""
        if v is not None and len(set(v)) != len(v):
            raise ValueError("metrics must not contain duplicates")
        return v


def load_config(config_file: str = "config/config.yaml") -> MoveRecConfig:
    """
    Load and validate moverec configuration from YAML file.

    Args:
        config_file: Path to YAML configuration file

    Returns:
        Validated MoveRecConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If the file cannot be parsed or is invalid
    """
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    try:
        with open(config_path) as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e

    if config_dict is None:
        config_dict = {}

    try:
        return MoveRecConfig(**config_dict)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def save_config(config: MoveRecConfig, config_file: str = "config/config.yaml") -> None:
    """
    Save moverec configuration to YAML file.

    Args:
        config: MoveRecConfig instance to save
        config_file: Path to YAML configuration file
    """
    config_path = Path(config_file)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Convert to dict and remove None values for cleaner output
    config_dict = config.model_dump(exclude_none=True)

    with open(config_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
