"""Configuration sources: environment settings and the YAML config file.

Two sources feed the CLI besides its own flags:

- ``FakeTimeSeriesSettings``: environment variables with the
  ``FAKE_TIME_SERIES_`` prefix (or a ``.env`` file).
- ``ConfigFile``: ``fake-time-series.yaml`` in the working directory, or
  the file named by ``--config``.

Example fake-time-series.yaml:

    startTime: "-2 hours"
    minInterval: 500ms
    maxInterval: 5s
    seed: 42
    shapes:
      temperature: temperature
      cpu: my_project.shapes:cpu_load
    sinkUrl: http://localhost:8080/ingest
    headers:
      Authorization: Bearer dev-token
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from fake_time_series.errors import ConfigurationError
from fake_time_series.generators.shapes import resolve_shape
from fake_time_series.parsing import IntervalInput, TimeInput
from fake_time_series.schemas import ShapeRegistry

DEFAULT_CONFIG_FILENAME = "fake-time-series.yaml"

# ConfigFile fields that map directly onto GenerationOptions
GENERATION_FIELDS = frozenset(
    {
        "start_time",
        "end_time",
        "min_interval",
        "max_interval",
        "max_batch_size",
        "batch_size_randomization",
        "interval_randomization",
        "batch_reverse_probability",
        "batch_shuffle_probability",
        "interval_skew_probability",
        "seed",
    }
)


class FakeTimeSeriesSettings(BaseSettings):
    """Settings read from the environment.

    Example:
        >>> # FAKE_TIME_SERIES_SINK_URL=http://localhost:8080/ingest
        >>> settings = FakeTimeSeriesSettings()
        >>> settings.sink_url
        'http://localhost:8080/ingest'
    """

    model_config = SettingsConfigDict(
        env_prefix="FAKE_TIME_SERIES_",
        env_file=".env",
        extra="ignore",
    )

    sink_url: str | None = Field(default=None, description="Sink endpoint")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Request headers as a JSON object",
    )
    concurrency: int | None = Field(default=None, description="Maximum simultaneous deliveries")
    timeout: float | None = Field(default=None, gt=0, description="Request timeout in seconds")
    log_level: str = Field(default="INFO", description="Minimum log level")

    def explicit_values(self) -> dict[str, Any]:
        """Values actually provided by the environment."""
        return self.model_dump(exclude_unset=True, exclude={"log_level"})


class ConfigFile(BaseModel):
    """Contents of a fake-time-series YAML config file.

    Every key is optional and accepted in snake_case or camelCase.
    ``shapes`` maps shape names to a built-in shape name or a
    ``module:attribute`` reference to a shape function.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    start_time: TimeInput | None = None
    end_time: TimeInput | None = None
    min_interval: IntervalInput | None = None
    max_interval: IntervalInput | None = None
    max_batch_size: int | None = Field(default=None, ge=1)
    batch_size_randomization: bool | None = None
    interval_randomization: bool | None = None
    batch_reverse_probability: float | None = Field(default=None, ge=0.0, le=1.0)
    batch_shuffle_probability: float | None = Field(default=None, ge=0.0, le=1.0)
    interval_skew_probability: float | None = Field(default=None, ge=0.0, le=1.0)
    seed: int | None = None
    shapes: dict[str, str] | None = None
    sink_url: str | None = None
    headers: dict[str, str] | None = None
    concurrency: int | None = None
    timeout: float | None = Field(default=None, gt=0)

    _source: str | None = PrivateAttr(default=None)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ConfigFile:
        """Load and validate a config file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated ConfigFile instance.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            yaml.YAMLError: If YAML syntax is invalid.
            pydantic.ValidationError: If a key is unknown or a value invalid.
            ConfigurationError: If the document is not a mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        with path.open("r") as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Config file must contain a mapping of options",
                file_path=str(path),
            )

        config = cls.model_validate(data)
        config._source = str(path)
        return config

    @property
    def source(self) -> str | None:
        """Path the config was loaded from, if any."""
        return self._source

    def generation_values(self) -> dict[str, Any]:
        """Generation option values present in the file."""
        return self.model_dump(exclude_none=True, include=set(GENERATION_FIELDS))

    def build_shapes(self, rng: random.Random) -> ShapeRegistry | None:
        """Resolve the ``shapes`` section into shape functions.

        Raises:
            ConfigurationError: If a reference cannot be resolved.
        """
        if self.shapes is None:
            return None
        if not self.shapes:
            raise ConfigurationError(
                "At least one shape is required",
                file_path=self._source,
                field_path="shapes",
            )

        registry: ShapeRegistry = {}
        for name, reference in self.shapes.items():
            try:
                registry[name] = resolve_shape(reference, rng)
            except ConfigurationError as e:
                raise ConfigurationError(
                    e.user_message,
                    file_path=self._source,
                    field_path=f"shapes.{name}",
                ) from e
        return registry


def load_config(path: str | Path | None = None) -> ConfigFile | None:
    """Load the config file named by ``path``, or the default one if present.

    Args:
        path: Explicit config path. When None, ``fake-time-series.yaml`` in
            the working directory is used if it exists.

    Returns:
        ConfigFile, or None when no path was given and no default file exists.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
    """
    if path is not None:
        return ConfigFile.from_yaml(path)

    default = Path.cwd() / DEFAULT_CONFIG_FILENAME
    if default.exists():
        return ConfigFile.from_yaml(default)
    return None
