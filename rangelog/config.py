import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .enums import MODE_COMMANDS, Mode, Rotation
from .errors import ConfigError

CONFIG_ENV = "RANGELOG_CONFIG"


class Settings(BaseModel):
    port_paths: List[str] = Field(
        default_factory=lambda: ["/dev/ttyAMA10", "/dev/ttyACM1", "/dev/ttyACM0", "/dev/ttyACM2"]
    )
    baud_rate:  int   = Field(115200, gt=0)
    mode:       Mode  = Field(Mode.BINARY)
    port_modes: Dict[str, Mode] = Field(default_factory=dict)   # per-port override

    sampling_interval: float = Field(0.002, ge=0)    # 2 мс между циклами
    read_timeout:      float = Field(0.1, gt=0)       # на один порт
    settle_delay:      float = Field(0.1, ge=0)       # после mode-select

    min_distance_mm: int = Field(0, ge=0)
    max_distance_mm: int = Field(65535, ge=0)

    rotation:       Rotation = Field(Rotation.DAILY)
    bucket_minutes: int      = Field(10, ge=1, le=60)
    data_dir:       Path     = Field(Path("."))

    frequency_tracking: bool = True

    binary_mode_command: str = Field(MODE_COMMANDS[Mode.BINARY].hex())
    text_mode_command:   str = Field(MODE_COMMANDS[Mode.TEXT].hex())

    api_host: str = Field("0.0.0.0")
    api_port: int = Field(8000)

    @field_validator("bucket_minutes")
    @classmethod
    def _divides_hour(cls, v: int) -> int:
        if 60 % v:
            raise ValueError("bucket_minutes must divide 60")
        return v

    @field_validator("binary_mode_command", "text_mode_command")
    @classmethod
    def _four_bytes(cls, v: str) -> str:
        try:
            raw = bytes.fromhex(v)
        except ValueError:
            raise ValueError(f"not a hex string: {v!r}")
        if len(raw) != 4:
            raise ValueError("mode command must be exactly 4 bytes")
        return v

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        if self.min_distance_mm > self.max_distance_mm:
            raise ValueError("min_distance_mm must not exceed max_distance_mm")
        if len(set(self.port_paths)) != len(self.port_paths):
            dupes = sorted({p for p in self.port_paths if self.port_paths.count(p) > 1})
            raise ValueError(f"duplicate port paths: {dupes}")
        unknown = set(self.port_modes) - set(self.port_paths)
        if unknown:
            raise ValueError(f"port_modes names unknown ports: {sorted(unknown)}")
        return self

    def mode_for(self, path: str) -> Mode:
        return self.port_modes.get(path, self.mode)

    def mode_command(self, mode: Mode) -> bytes:
        if mode is Mode.TEXT:
            return bytes.fromhex(self.text_mode_command)
        return bytes.fromhex(self.binary_mode_command)

    @property
    def distance_bounds(self) -> tuple:
        return self.min_distance_mm, self.max_distance_mm


def load_settings(path: Optional[os.PathLike] = None) -> Settings:
    """
    Read settings from a JSON file (or ``$RANGELOG_CONFIG``).
    Without a file the defaults are used.
    """
    path = path or os.getenv(CONFIG_ENV)
    if not path:
        return Settings()
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config {path}: {e}") from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
