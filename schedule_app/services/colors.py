"""Per-session appointment colors."""

from __future__ import annotations

import colorsys
import random
from typing import Iterable, Mapping

HUE_RANGE = (0.0, 360.0)
SATURATION_RANGE = (60.0, 80.0)
LIGHTNESS_RANGE = (45.0, 55.0)

DARK_TEXT = "#111827"
LIGHT_TEXT = "#ffffff"

_MAX_ATTEMPTS = 1000


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """Convert HSL (degrees, percent, percent) to ``#rrggbb``."""

    r, g, b = colorsys.hls_to_rgb(hue / 360.0, lightness / 100.0, saturation / 100.0)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def _relative_luminance(hex_color: str) -> float:
    value = hex_color.lstrip("#")
    channels = []
    for i in (0, 2, 4):
        c = int(value[i : i + 2], 16) / 255.0
        channels.append(c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4)
    r, g, b = channels
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(first: str, second: str) -> float:
    lum_a = _relative_luminance(first)
    lum_b = _relative_luminance(second)
    lighter, darker = max(lum_a, lum_b), min(lum_a, lum_b)
    return (lighter + 0.05) / (darker + 0.05)


def text_color_for(background: str) -> str:
    """Pick whichever of the fixed dark/light text colors reads better on ``background``."""

    if contrast_ratio(background, DARK_TEXT) >= contrast_ratio(background, LIGHT_TEXT):
        return DARK_TEXT
    return LIGHT_TEXT


class ColorAssigner:
    """Hands out a random color per appointment id and never changes it afterwards.

    ``colors`` seeds the assigner with the map persisted for this session;
    ``rng`` is the random source (pass a seeded ``random.Random`` in tests).
    """

    def __init__(self, colors: Mapping[str, str] | None = None, rng: random.Random | None = None) -> None:
        self._colors: dict[str, str] = dict(colors or {})
        self._rng = rng or random.Random()

    @property
    def colors(self) -> dict[str, str]:
        return dict(self._colors)

    def _sample(self) -> str:
        hue = self._rng.uniform(*HUE_RANGE) % 360.0
        saturation = self._rng.uniform(*SATURATION_RANGE)
        lightness = self._rng.uniform(*LIGHTNESS_RANGE)
        return hsl_to_hex(hue, saturation, lightness)

    def color_for(self, appointment_id: str) -> str:
        existing = self._colors.get(appointment_id)
        if existing is not None:
            return existing
        used = set(self._colors.values())
        for _ in range(_MAX_ATTEMPTS):
            color = self._sample()
            if color not in used:
                self._colors[appointment_id] = color
                return color
        raise RuntimeError("could not find an unused appointment color")

    def assign_all(self, appointment_ids: Iterable[str]) -> dict[str, str]:
        return {appt_id: self.color_for(appt_id) for appt_id in appointment_ids}

    def retain(self, appointment_ids: Iterable[str]) -> None:
        """Forget colors of ids no longer present; the survivors keep theirs."""
        keep = set(appointment_ids)
        self._colors = {appt_id: color for appt_id, color in self._colors.items() if appt_id in keep}

    def clear(self) -> None:
        self._colors.clear()
