# File: badgeforge/core/policy.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-04
# Purpose: Constantes de política (zoom, fit, export/fuentes) leídas desde env BF_*.
# Notes:
# - Los límites se definen acá y en ningún call site.
# - from_env() es tolerante: valores inválidos caen al default, fuera de rango se acotan.
from __future__ import annotations

import os
from dataclasses import dataclass, field

GOOGLE_FONTS_CSS_URL = "https://fonts.googleapis.com/css2?family={family}&display=swap"
RASTER_SCALES = (1, 2, 4, 8)


def _env_float(name: str, default: float, *, min_value: float = -1e9, max_value: float = 1e9) -> float:
    try:
        v = float(os.getenv(name, str(default)).strip())
    except Exception:
        return float(default)
    if v != v:  # NaN
        return float(default)
    return max(min_value, min(v, max_value))


def _env_int(name: str, default: int, *, min_value: int = 0, max_value: int = 1_000_000) -> int:
    """Lee un entero desde env (tolerante)."""
    try:
        raw = os.environ.get(name, "")
        if raw is None or str(raw).strip() == "":
            return int(default)
        v = int(str(raw).strip())
    except Exception:
        return int(default)
    return max(min_value, min(v, max_value))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "")
    s = str(raw or "").strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return bool(default)


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    s = str(os.environ.get(name, "") or "").strip().lower()
    return s if s in choices else default


@dataclass(frozen=True)
class ZoomPolicy:
    min_zoom: float = 0.1
    max_zoom: float = 50.0
    wheel_step_ratio: float = 0.10
    trackpad_sensitivity: float = 0.01
    button_step_ratio: float = 1.25
    clamp_pan: bool = False

    def clamp(self, zoom: float) -> float:
        return max(self.min_zoom, min(zoom, self.max_zoom))

    @classmethod
    def from_env(cls) -> "ZoomPolicy":
        d = cls()
        lo = _env_float("BF_ZOOM_MIN", d.min_zoom, min_value=0.001, max_value=10.0)
        hi = _env_float("BF_ZOOM_MAX", d.max_zoom, min_value=0.1, max_value=1000.0)
        if hi < lo:
            lo, hi = d.min_zoom, d.max_zoom
        return cls(
            min_zoom=lo,
            max_zoom=hi,
            wheel_step_ratio=_env_float("BF_ZOOM_WHEEL_STEP", d.wheel_step_ratio, min_value=0.01, max_value=0.9),
            trackpad_sensitivity=_env_float(
                "BF_ZOOM_TRACKPAD_SENSITIVITY", d.trackpad_sensitivity, min_value=0.0001, max_value=1.0
            ),
            button_step_ratio=_env_float("BF_ZOOM_BUTTON_STEP", d.button_step_ratio, min_value=1.01, max_value=4.0),
            clamp_pan=_env_bool("BF_CLAMP_PAN", d.clamp_pan),
        )


@dataclass(frozen=True)
class FitPolicy:
    # 0.9 ~ margen de 40px sobre un contenedor de ~800px.
    margin_ratio: float = 0.9
    min_scale: float = 0.1
    max_scale: float = 3.0

    @classmethod
    def from_env(cls) -> "FitPolicy":
        d = cls()
        lo = _env_float("BF_FIT_MIN_SCALE", d.min_scale, min_value=0.001, max_value=10.0)
        hi = _env_float("BF_FIT_MAX_SCALE", d.max_scale, min_value=0.1, max_value=1000.0)
        if hi < lo:
            lo, hi = d.min_scale, d.max_scale
        return cls(
            margin_ratio=_env_float("BF_FIT_MARGIN", d.margin_ratio, min_value=0.1, max_value=1.0),
            min_scale=lo,
            max_scale=hi,
        )


@dataclass(frozen=True)
class ExportPolicy:
    clip_mode: str = "clip"
    embed_fonts: bool = True
    font_timeout_s: float = 10.0
    font_css_url: str = GOOGLE_FONTS_CSS_URL
    raster_scales: tuple[int, ...] = field(default=RASTER_SCALES)

    @classmethod
    def from_env(cls) -> "ExportPolicy":
        d = cls()
        css_url = str(os.environ.get("BF_FONT_CSS_URL", "") or "").strip()
        if "{family}" not in css_url:
            css_url = d.font_css_url
        return cls(
            clip_mode=_env_choice("BF_CLIP_MODE", d.clip_mode, ("clip", "mask")),
            embed_fonts=_env_bool("BF_EMBED_FONTS", d.embed_fonts),
            font_timeout_s=_env_float("BF_FONT_TIMEOUT", d.font_timeout_s, min_value=0.5, max_value=120.0),
            font_css_url=css_url,
        )
