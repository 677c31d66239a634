from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .rating import DEFAULT_RATING
from .stimulus import Family

logger = logging.getLogger(__name__)

SETTINGS_STORE_ENV = "COGNITIVE_FLUX_STORE"

N_BACK_MIN = 1
N_BACK_MAX = 9
BASE_TIMER_MIN_S = 3
BASE_TIMER_MAX_S = 30
INFINITE_TIMER = "infinite"
MIXED_PRACTICE = "MIXED"


@dataclass(frozen=True, slots=True)
class GameConfig:
    n_back_level: int = 1
    base_timer_s: int | None = 10  # None means no countdown
    is_practice_mode: bool = False
    practice_family: Family | None = None  # None means MIXED

    def validate(self) -> "GameConfig":
        if isinstance(self.n_back_level, bool) or not isinstance(self.n_back_level, int):
            raise ValueError("n_back_level must be an integer")
        if not (N_BACK_MIN <= self.n_back_level <= N_BACK_MAX):
            raise ValueError(f"n_back_level must be in [{N_BACK_MIN}, {N_BACK_MAX}]")
        if self.base_timer_s is not None:
            if isinstance(self.base_timer_s, bool) or not isinstance(self.base_timer_s, int):
                raise ValueError("base_timer_s must be an integer or None")
            if not (BASE_TIMER_MIN_S <= self.base_timer_s <= BASE_TIMER_MAX_S):
                raise ValueError(f"base_timer_s must be in [{BASE_TIMER_MIN_S}, {BASE_TIMER_MAX_S}]")
        if self.practice_family is not None and not isinstance(self.practice_family, Family):
            raise ValueError("practice_family must be a Family or None")
        return self

    @property
    def locked_family(self) -> Family | None:
        """Family forced by practice mode, if any."""

        return self.practice_family if self.is_practice_mode else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_back_level": int(self.n_back_level),
            "base_timer": INFINITE_TIMER if self.base_timer_s is None else int(self.base_timer_s),
            "is_practice_mode": bool(self.is_practice_mode),
            "practice_family": MIXED_PRACTICE if self.practice_family is None else self.practice_family.value,
        }

    @classmethod
    def from_dict(cls, data: object) -> "GameConfig":
        """Parse a stored record, replacing unusable fields with defaults."""

        if not isinstance(data, dict):
            return cls()
        default = cls()

        n_back = data.get("n_back_level")
        if isinstance(n_back, bool) or not isinstance(n_back, int) or not (N_BACK_MIN <= n_back <= N_BACK_MAX):
            n_back = default.n_back_level

        raw_timer = data.get("base_timer", default.base_timer_s)
        base_timer: int | None
        if raw_timer == INFINITE_TIMER:
            base_timer = None
        elif (
            isinstance(raw_timer, int)
            and not isinstance(raw_timer, bool)
            and BASE_TIMER_MIN_S <= raw_timer <= BASE_TIMER_MAX_S
        ):
            base_timer = raw_timer
        else:
            base_timer = default.base_timer_s

        raw_family = data.get("practice_family", MIXED_PRACTICE)
        try:
            family = None if raw_family in (None, MIXED_PRACTICE) else Family(str(raw_family))
        except ValueError:
            family = None

        return cls(
            n_back_level=n_back,
            base_timer_s=base_timer,
            is_practice_mode=bool(data.get("is_practice_mode", False)),
            practice_family=family,
        )


class SettingsStore:
    """JSON file holding the persisted rating and the configuration record.

    The two values are read and written independently; a corrupt or missing
    value falls back to its default without touching the other one.
    """

    _version = 1

    def __init__(self, path: Path) -> None:
        self._path = path

    @classmethod
    def default_path(cls) -> Path:
        explicit = os.environ.get(SETTINGS_STORE_ENV)
        if explicit:
            return Path(explicit).expanduser()
        return Path.home() / ".cognitive_flux.json"

    @property
    def path(self) -> Path:
        return self._path

    def load_rating(self) -> int:
        raw = self._read().get("rating")
        if raw is None:
            return DEFAULT_RATING
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            logger.warning("ignoring stored rating %r; using %d", raw, DEFAULT_RATING)
            return DEFAULT_RATING
        return raw

    def save_rating(self, rating: int) -> None:
        payload = self._read()
        payload["rating"] = max(0, int(rating))
        self._write(payload)

    def load_config(self) -> GameConfig:
        raw = self._read().get("config")
        if raw is None:
            return GameConfig()
        return GameConfig.from_dict(raw)

    def save_config(self, config: GameConfig) -> None:
        payload = self._read()
        payload["config"] = config.validate().to_dict()
        self._write(payload)

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("settings file %s is unreadable; using defaults", self._path)
            return {}
        if not isinstance(payload, dict):
            logger.warning("settings file %s has no record; using defaults", self._path)
            return {}
        return payload

    def _write(self, payload: dict[str, Any]) -> None:
        payload["version"] = self._version
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError:
            logger.warning("could not write settings to %s", self._path, exc_info=True)
