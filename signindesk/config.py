"""Persistent settings: bearer token, desk number map and free days."""

from __future__ import annotations

import json
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE_NAME = "signin.config"


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or written."""


def default_path() -> Path:
    """Return the configuration file path, next to the running program."""
    program = Path(sys.argv[0] or ".").resolve()
    return program.parent / CONFIG_FILE_NAME


@dataclass
class Config:
    """Application settings stored as a JSON document."""

    bearer: str = ""
    desks: dict[int, str] = field(default_factory=dict)
    attendance_free_days: dict[str, str] = field(default_factory=dict)
    path: Path | None = None

    def _file(self) -> Path:
        return Path(self.path) if self.path is not None else default_path()

    def load(self) -> None:
        """Read the configuration file, merging its content into this object."""
        file = self._file()
        if not file.exists():
            raise ConfigError(
                "configuration file not found\nUse config command to add configuration"
            )
        try:
            text = file.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Error loading config file: {exc}") from exc
        try:
            self._apply(json.loads(text))
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"Error parsing config: {exc}") from exc

    def _apply(self, data: object) -> None:
        if data is None:
            return
        if not isinstance(data, dict):
            raise TypeError("configuration must be a JSON object")

        if "Bearer" in data:
            bearer = data["Bearer"]
            if bearer is not None and not isinstance(bearer, str):
                raise TypeError("Bearer must be a string")
            self.bearer = bearer or ""

        desks = data.get("Desks")
        if desks is not None:
            if not isinstance(desks, dict):
                raise TypeError("Desks must be an object")
            self.desks.update({int(key): str(value) for key, value in desks.items()})

        if "AttendanceFreeDays" in data:
            free_days = data["AttendanceFreeDays"]
            if free_days is None:
                self.attendance_free_days = {}
            elif isinstance(free_days, dict):
                self.attendance_free_days.update(
                    {str(key): str(value) for key, value in free_days.items()}
                )
            else:
                raise TypeError("AttendanceFreeDays must be an object")

    def to_json(self) -> str:
        """Return the compact JSON document that :meth:`save` writes."""
        desks = {
            str(number): space_id
            for number, space_id in sorted(self.desks.items(), key=lambda kv: str(kv[0]))
        }
        document = {
            "Bearer": self.bearer,
            "Desks": desks,
            "AttendanceFreeDays": dict(sorted(self.attendance_free_days.items())),
        }
        return json.dumps(document, separators=(",", ":"), ensure_ascii=False)

    def save(self) -> None:
        """Write the configuration file."""
        try:
            self._file().write_text(self.to_json(), encoding="utf-8")
        except OSError as exc:
            raise ConfigError(str(exc)) from exc


_lock = threading.Lock()
_instance: Config | None = None


def instance() -> Config:
    """Return the process-wide configuration object."""
    global _instance
    if _instance is None:
        with _lock:
            if _instance is None:
                _instance = Config()
    return _instance