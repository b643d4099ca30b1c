"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = [
    "Settings",
    "SettingsStore",
    "DecorationStyle",
    "OVERVIEW_RULER_LANES",
    "parse_css_color",
    "parse_bool",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".splitstrings"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_PATH_ENV = "SPLITSTRINGS_SETTINGS_PATH"
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "SPLITSTRINGS_AUTO_COLLAPSE": "auto_collapse_on_save",
    "SPLITSTRINGS_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "SPLITSTRINGS_DECORATION_DELAY": "decoration_delay",
}
TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})
OVERVIEW_RULER_LANES: tuple[str, ...] = ("left", "center", "right", "full")

_RGBA_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


@dataclass(slots=True)
class DecorationStyle:
    """Look of the highlight drawn over tracked split strings."""

    background_color: str = "rgba(255, 200, 0, 0.1)"
    border_color: str = "rgba(255, 200, 0, 0.3)"
    border_width: str = "1px"
    border_style: str = "solid"
    overview_ruler_color: str = "rgba(255, 200, 0, 0.5)"
    overview_ruler_lane: str = "right"
    whole_line: bool = True

    def __post_init__(self) -> None:
        lane = str(self.overview_ruler_lane or "").strip().lower()
        if lane not in OVERVIEW_RULER_LANES:
            if lane:
                LOGGER.warning("Unknown overview ruler lane '%s'; using 'right'", self.overview_ruler_lane)
            lane = "right"
        self.overview_ruler_lane = lane


@dataclass(slots=True)
class Settings:
    """User-facing configuration for the split-string feature."""

    auto_collapse_on_save: bool = True
    decoration_delay: float = 0.1
    debug_logging: bool = False
    decoration: DecorationStyle = field(default_factory=DecorationStyle)


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | str | None = None) -> None:
        env_path = os.environ.get(_PATH_ENV)
        self._path = Path(path or env_path or _DEFAULT_SETTINGS_PATH).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            decoration_payload = data.get("decoration")
            if isinstance(decoration_payload, Mapping):
                data["decoration"] = _decoration_from_payload(decoration_payload)
            elif "decoration" in data:
                data.pop("decoration")
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        settings = self._apply_env_overrides(settings)
        LOGGER.debug("Settings loaded from %s: %s", self._path, settings)
        return settings

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {item.name for item in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        decoration_override = filtered.get("decoration")
        if isinstance(decoration_override, Mapping):
            merged = asdict(settings.decoration)
            merged.update(decoration_override)
            filtered["decoration"] = _decoration_from_payload(merged)
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in TRUE_VALUES
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(Settings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _decoration_from_payload(payload: Mapping[str, Any]) -> DecorationStyle:
    allowed = {item.name for item in fields(DecorationStyle)}
    data = {key: value for key, value in payload.items() if key in allowed}
    try:
        return DecorationStyle(**data)
    except TypeError:
        return DecorationStyle()


def parse_bool(value: str) -> bool:
    """Strict boolean parsing for command line overrides."""

    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def parse_css_color(value: str) -> tuple[int, int, int, int]:
    """Convert ``rgba()``, ``rgb()`` or ``#hex`` colours to an RGBA tuple (0-255).

    Raises ``ValueError`` for anything else.
    """

    text = value.strip()
    match = _RGBA_RE.match(text)
    if match:
        parts = [part.strip() for part in match.group(1).split(",")]
        if len(parts) not in (3, 4):
            raise ValueError(f"Unsupported colour: {value!r}")
        try:
            red, green, blue = (_clamp(int(float(part))) for part in parts[:3])
            alpha = _clamp(round(float(parts[3]) * 255)) if len(parts) == 4 else 255
        except ValueError as exc:
            raise ValueError(f"Unsupported colour: {value!r}") from exc
        return red, green, blue, alpha

    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) in (3, 4):
            digits = "".join(char * 2 for char in digits)
        if len(digits) == 6:
            digits += "ff"
        red, green, blue, alpha = (int(digits[index : index + 2], 16) for index in range(0, 8, 2))
        return red, green, blue, alpha

    raise ValueError(f"Unsupported colour: {value!r}")


def _clamp(component: int) -> int:
    return max(0, min(255, component))
