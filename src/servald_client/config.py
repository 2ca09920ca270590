"""Centralized application configuration."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

DEFAULT_DATA_DIR = Path.home() / ".local" / "servald-client"

# Keys accepted from config.toml, with the types they must have
_TOML_KEYS: dict[str, type | tuple[type, ...]] = {
    "servald_path": str,
    "instance_path": str,
    "output_delimiter": str,
    "command_timeout": (int, float),
    "dna_lookup_timeout": int,
    "trace": bool,
}


class Config(BaseModel):
    """Application-wide configuration."""

    model_config = ConfigDict(frozen=True)

    data_dir: Path = Field(description="Base directory for client data")
    servald_path: Path = Field(default=Path("servald"), description="servald binary")
    instance_path_override: Path | None = Field(default=None, description="servald instance directory, if not the default")
    output_delimiter: str = Field(default="\n", min_length=1, description="Field delimiter servald is told to emit")
    command_timeout: float | None = Field(default=None, ge=1, description="Seconds before a command is killed (None = wait forever)")
    dna_lookup_timeout: int = Field(default=3000, ge=0, description="Milliseconds servald waits for DNA lookup answers")
    trace: bool = Field(default=False, description="Log every field of streamed replies")

    @computed_field(description="servald instance directory")
    @property
    def instance_path(self) -> Path:
        """servald instance directory."""
        return self.instance_path_override if self.instance_path_override is not None else self.data_dir / "instance"

    @computed_field(description="Optional TOML configuration file")
    @property
    def config_path(self) -> Path:
        """Optional TOML configuration file."""
        return self.data_dir / "config.toml"

    @computed_field(description="Log file")
    @property
    def log_path(self) -> Path:
        """Log file."""
        return self.data_dir / "servald-client.log"

    @staticmethod
    def build(data_dir: Path | None = None) -> "Config":
        """Build a Config from defaults and optional config.toml."""
        resolved_dir = data_dir if data_dir is not None else DEFAULT_DATA_DIR
        config_path = resolved_dir / "config.toml"

        kwargs: dict[str, Any] = {"data_dir": resolved_dir}
        if config_path.is_file():
            with config_path.open("rb") as f:
                toml_data = tomllib.load(f)
            for key, expected in _TOML_KEYS.items():
                value = toml_data.get(key)
                # bool is an int subclass; only accept it for bool keys
                if isinstance(value, expected) and (expected is bool or not isinstance(value, bool)):
                    kwargs["instance_path_override" if key == "instance_path" else key] = value

        return Config(**kwargs)
