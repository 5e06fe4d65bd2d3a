"""Centralised configuration models leveraging Pydantic."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

JOURNAL_MODES = frozenset({"WAL", "DELETE", "TRUNCATE", "PERSIST", "MEMORY"})
SYNCHRONOUS_MODES = frozenset({"OFF", "NORMAL", "FULL", "EXTRA"})

KeyFunction = Callable[[Any], bytes | str]


def _as_path(value: str | Path) -> Path:
    return value if isinstance(value, Path) else Path(value).expanduser()


def _resolve_optional_path(value: object, variable: str) -> Path | None:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str):
        text = value.strip()
        return _as_path(text) if text else None
    raise TypeError(f"{variable} must resolve to a filesystem path")


def _resolve_numeric(value: object, variable: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, (int, float, str)):
        try:
            return float(value)
        except ValueError as exc:
            raise ValueError(f"{variable} must be a number") from exc
    raise TypeError(f"{variable} must resolve to a numeric value")


def _resolve_int(value: object, variable: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise TypeError(f"{variable} must resolve to an integer value")
    if isinstance(value, (int, str)):
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError(f"{variable} must be an integer") from exc
    raise TypeError(f"{variable} must resolve to an integer value")


def _resolve_bool(value: object, variable: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "on"}:
            return True
        if lowered in {"false", "0", "no", "off"}:
            return False
        raise ValueError(f"{variable} must be one of true/false, 1/0, yes/no, on/off")
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return bool(value)
    raise ValueError(f"{variable} must be a boolean")


def _resolve_choice(value: object, variable: str, default: str, choices: frozenset[str]) -> str:
    if value is None:
        return default
    text = str(value).strip().upper()
    if text not in choices:
        options = ", ".join(sorted(choices))
        raise ValueError(f"{variable} must be one of {options}")
    return text


class StorageSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path | None = Field(default=None)
    temp_dir: Path | None = Field(default=None)
    journal_mode: str = Field(default="WAL")
    synchronous: str = Field(default="NORMAL")
    busy_timeout: float = Field(default=5.0)
    progress_interval: int = Field(default=1000)

    @field_validator("path", mode="before")
    def _v_path(cls, v: object) -> Path | None:
        return _resolve_optional_path(v, "BIGSET_PATH")

    @field_validator("temp_dir", mode="before")
    def _v_temp_dir(cls, v: object) -> Path | None:
        return _resolve_optional_path(v, "BIGSET_TEMP_DIR")

    @field_validator("journal_mode", mode="before")
    def _v_journal_mode(cls, v: object) -> str:
        return _resolve_choice(v, "BIGSET_JOURNAL_MODE", "WAL", JOURNAL_MODES)

    @field_validator("synchronous", mode="before")
    def _v_synchronous(cls, v: object) -> str:
        return _resolve_choice(v, "BIGSET_SYNCHRONOUS", "NORMAL", SYNCHRONOUS_MODES)

    @field_validator("busy_timeout", mode="before")
    def _v_busy_timeout(cls, v: object) -> float:
        value = _resolve_numeric(v, "BIGSET_BUSY_TIMEOUT", 5.0)
        if value < 0:
            raise ValueError("BIGSET_BUSY_TIMEOUT must be non-negative")
        return value

    @field_validator("progress_interval", mode="before")
    def _v_progress_interval(cls, v: object) -> int:
        value = _resolve_int(v, "BIGSET_PROGRESS_INTERVAL", 1000)
        if value <= 0:
            raise ValueError("BIGSET_PROGRESS_INTERVAL must be a positive integer")
        return value

    @property
    def persistent(self) -> bool:
        return self.path is not None


class ReaderSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    fetch_size: int = Field(default=256)
    warn_on_drift: bool = Field(default=True)

    @field_validator("fetch_size", mode="before")
    def _v_fetch_size(cls, v: object) -> int:
        value = _resolve_int(v, "BIGSET_FETCH_SIZE", 256)
        if value <= 0:
            raise ValueError("BIGSET_FETCH_SIZE must be a positive integer")
        return value

    @field_validator("warn_on_drift", mode="before")
    def _v_warn_on_drift(cls, v: object) -> bool:
        return _resolve_bool(v, "BIGSET_WARN_ON_DRIFT", True)


class StoreConfig(BaseModel):
    """Construction-time options for a :class:`~bigset.store.SetStore`.

    ``key_function`` maps an element to the bytes identifying it. Two elements
    with equal keys are the same member of a set, which lets elements with
    mutable attributes be deduplicated by a stable identity. When omitted, the
    full canonical serialization is the key.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    storage: StorageSettings = Field(default_factory=StorageSettings)
    reader: ReaderSettings = Field(default_factory=ReaderSettings)
    key_function: KeyFunction | None = Field(default=None)

    @classmethod
    def from_env(cls, key_function: KeyFunction | None = None) -> StoreConfig:
        env = os.environ
        storage_kwargs = {
            "path": env.get("BIGSET_PATH"),
            "temp_dir": env.get("BIGSET_TEMP_DIR"),
            "journal_mode": env.get("BIGSET_JOURNAL_MODE"),
            "synchronous": env.get("BIGSET_SYNCHRONOUS"),
            "busy_timeout": env.get("BIGSET_BUSY_TIMEOUT"),
            "progress_interval": env.get("BIGSET_PROGRESS_INTERVAL"),
        }
        reader_kwargs = {
            "fetch_size": env.get("BIGSET_FETCH_SIZE"),
            "warn_on_drift": env.get("BIGSET_WARN_ON_DRIFT"),
        }
        payload: dict[str, object] = {"key_function": key_function}
        if any(value is not None for value in storage_kwargs.values()):
            payload["storage"] = {k: v for k, v in storage_kwargs.items() if v is not None}
        if any(value is not None for value in reader_kwargs.values()):
            payload["reader"] = {k: v for k, v in reader_kwargs.items() if v is not None}
        return cls(**payload)

    def with_path(self, path: str | Path | None) -> StoreConfig:
        """Return a copy persisting to ``path`` (or ephemeral when ``None``)."""

        storage = self.storage.model_copy(update={"path": _resolve_optional_path(path, "path")})
        return self.model_copy(update={"storage": storage})
