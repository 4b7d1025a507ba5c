"""
core/sonification/styles.py — Load style presets from bundled YAML profiles.

Uses importlib.resources (stdlib) to read YAML files shipped in the
core/sonification/presets/ package. Parsed presets are cached in a
module-level dict so each YAML file is read only once per process; the
cache only ever holds frozen StylePreset objects.
"""

from __future__ import annotations

import importlib.resources
from dataclasses import dataclass
from typing import Any

import yaml  # PyYAML

from core.sonification.theory import DURATION_SECONDS, NOTE_NAMES, SCALE_FORMULAS

DEFAULT_STYLE: str = "classical"

# ---------------------------------------------------------------------------
# Style name → YAML filename mapping
# ---------------------------------------------------------------------------

_STYLE_FILE_MAP: dict[str, str] = {
    "classical": "classical.yaml",
    "electronic": "electronic.yaml",
    "ambient": "ambient.yaml",
    "jazz": "jazz.yaml",
    "rock": "rock.yaml",
}

_CACHE: dict[str, StylePreset] = {}


@dataclass(frozen=True)
class StylePreset:
    """A musical style: key, scale and tempo range for the mapper.

    waveforms, duration_bias and reverb_amount are descriptive only; they
    do not influence pitch or timing.
    """

    name: str
    base_key: str
    scale: str
    tempo_range: tuple[int, int]
    waveforms: tuple[str, ...]
    duration_bias: tuple[str, ...]
    reverb_amount: float

    @property
    def key_index(self) -> int:
        """Pitch class of the base key (C = 0)."""
        return NOTE_NAMES.index(self.base_key)

    @property
    def scale_intervals(self) -> tuple[int, ...]:
        return SCALE_FORMULAS[self.scale]

    def __post_init__(self) -> None:
        if self.base_key not in NOTE_NAMES:
            raise ValueError(f"Style {self.name!r}: unknown base_key {self.base_key!r}")
        if self.scale not in SCALE_FORMULAS:
            raise ValueError(f"Style {self.name!r}: unknown scale {self.scale!r}")
        low, high = self.tempo_range
        if not 0 < low <= high:
            raise ValueError(f"Style {self.name!r}: invalid tempo_range {self.tempo_range}")
        bad = [d for d in self.duration_bias if d not in DURATION_SECONDS]
        if bad:
            raise ValueError(f"Style {self.name!r}: unknown durations {bad}")


def _preset_from_yaml(name: str, data: dict[str, Any]) -> StylePreset:
    low, high = data["tempo_range"]
    return StylePreset(
        name=name,
        base_key=str(data["base_key"]),
        scale=str(data["scale"]),
        tempo_range=(int(low), int(high)),
        waveforms=tuple(data.get("preferred_waveforms", ())),
        duration_bias=tuple(str(d) for d in data.get("duration_bias", ())),
        reverb_amount=float(data.get("reverb_amount", 0.0)),
    )


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def get_style(style: str | StylePreset = DEFAULT_STYLE) -> StylePreset:
    """Return the StylePreset for a style name.

    Style names are case-insensitive and normalised (lower + strip). A
    StylePreset passed in is returned unchanged.

    Args:
        style: Style name, e.g. 'classical', 'Jazz', or a StylePreset.

    Returns:
        Frozen StylePreset parsed from the bundled YAML profile.

    Raises:
        ValueError: If the style is not in the known style list.
    """
    if isinstance(style, StylePreset):
        return style

    key = style.lower().strip()
    if key in _CACHE:
        return _CACHE[key]

    filename = _STYLE_FILE_MAP.get(key)
    if filename is None:
        available = sorted(_STYLE_FILE_MAP.keys())
        raise ValueError(f"Unknown style {style!r}. Available: {available}")

    pkg = importlib.resources.files("core.sonification.presets")
    text = (pkg / filename).read_text(encoding="utf-8")
    data: dict[str, Any] = yaml.safe_load(text)
    preset = _preset_from_yaml(key, data)
    _CACHE[key] = preset
    return preset


def available_styles() -> list[str]:
    """Return sorted list of all supported style names."""
    return sorted(_STYLE_FILE_MAP.keys())
