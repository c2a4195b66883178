# File: badgeforge/core/settings.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-04
# Purpose: Settings por proyecto (badgeforge_settings.json -> env BF_*) y preferencias de usuario.
# Notes: No depende de Qt; las preferencias van a ~/.badgeforge/settings.json.
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)


def settings_dir() -> Path:
    """Carpeta de settings del usuario."""
    return Path.home() / ".badgeforge"


def settings_path() -> Path:
    return settings_dir() / "settings.json"


# ------------------------------
# Project settings (repo-local)
# ------------------------------
# Defaults reproducibles por proyecto (no por usuario) sin tocar el código.
PROJECT_SETTINGS_FILENAME = "badgeforge_settings.json"


def find_project_settings_path(start: Path | None = None) -> Path | None:
    """Busca badgeforge_settings.json subiendo desde start (o CWD)."""
    start = (start or Path.cwd()).resolve()
    for p in (start, *start.parents):
        candidate = p / PROJECT_SETTINGS_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _deep_get(d: Dict[str, Any], path: str, default: Any = None) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


# (clave JSON, env var, min, max). Los valores fuera de rango se ignoran.
_NUMERIC_KEYS = (
    ("viewport.zoom.min", "BF_ZOOM_MIN", 0.001, 10.0),
    ("viewport.zoom.max", "BF_ZOOM_MAX", 0.1, 1000.0),
    ("viewport.zoom.wheel_step", "BF_ZOOM_WHEEL_STEP", 0.01, 0.9),
    ("viewport.zoom.trackpad_sensitivity", "BF_ZOOM_TRACKPAD_SENSITIVITY", 0.0001, 1.0),
    ("viewport.zoom.button_step", "BF_ZOOM_BUTTON_STEP", 1.01, 4.0),
    ("viewport.fit.margin_ratio", "BF_FIT_MARGIN", 0.1, 1.0),
    ("viewport.fit.min_scale", "BF_FIT_MIN_SCALE", 0.001, 10.0),
    ("viewport.fit.max_scale", "BF_FIT_MAX_SCALE", 0.1, 1000.0),
    ("export.fonts.timeout_s", "BF_FONT_TIMEOUT", 0.5, 120.0),
)


def apply_project_settings(
    start: Path | None = None,
    *,
    logger: logging.Logger | None = None,
    prefer_env: bool = True,
) -> Dict[str, Any]:
    """Carga badgeforge_settings.json (si existe) y aplica overrides vía variables de entorno.

    Los consumidores (core.policy) solo leen env vars; este módulo no se importa desde el core.

    - Si `prefer_env=True`, una env var ya seteada NO se pisa.
    - Si `prefer_env=False`, el JSON pisa la env var.

    Devuelve un dict con los valores *aplicados desde JSON*.
    """
    _log = logger or log
    p = find_project_settings_path(start)
    if not p:
        return {}

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        _log.warning("No se pudo leer %s: %s", p, e)
        return {}
    if not isinstance(data, dict):
        _log.warning("Project settings inválido (raíz no es objeto): %s", p)
        return {}

    applied: Dict[str, Any] = {}

    def _set_env(key: str, value: Any) -> None:
        if prefer_env and os.environ.get(key):
            return
        os.environ[key] = str(value)

    for json_key, env_key, lo, hi in _NUMERIC_KEYS:
        v = _deep_get(data, json_key)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            continue
        v = float(v)
        if lo <= v <= hi:
            applied[json_key] = v
            _set_env(env_key, v)

    clamp_pan = _deep_get(data, "viewport.clamp_pan")
    if isinstance(clamp_pan, bool):
        applied["viewport.clamp_pan"] = clamp_pan
        _set_env("BF_CLAMP_PAN", "1" if clamp_pan else "0")

    clip_mode = _deep_get(data, "export.clip_mode")
    if isinstance(clip_mode, str):
        clip_mode = clip_mode.strip().lower()
        if clip_mode in ("clip", "mask"):
            applied["export.clip_mode"] = clip_mode
            _set_env("BF_CLIP_MODE", clip_mode)

    embed = _deep_get(data, "export.fonts.embed")
    if isinstance(embed, bool):
        applied["export.fonts.embed"] = embed
        _set_env("BF_EMBED_FONTS", "1" if embed else "0")

    css_url = _deep_get(data, "export.fonts.css_url")
    if isinstance(css_url, str) and "{family}" in css_url:
        applied["export.fonts.css_url"] = css_url
        _set_env("BF_FONT_CSS_URL", css_url)

    if applied:
        _log.info("Project settings aplicados desde %s: %s", p, applied)
    return applied


VALID_EXPORT_FORMATS = ("svg", "png", "webp", "pdf")
VALID_EXPORT_SCALES = (1, 2, 4, 8)


@dataclass
class AppSettings:
    """Preferencias persistentes del usuario (defaults del diálogo/CLI de exportación)."""

    export_format: str = "png"
    export_scale: int = 2
    output_dir: str = ""
    embed_fonts: bool = True

    @classmethod
    def load(cls) -> "AppSettings":
        p = settings_path()
        try:
            if not p.exists():
                return cls()
            data = json.loads(p.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                return cls()
            out = cls()
            out.export_format = _coerce_format(data.get("export_format", out.export_format))
            out.export_scale = _coerce_scale(data.get("export_scale", out.export_scale))
            out.output_dir = str(data.get("output_dir", "") or "")
            out.embed_fonts = bool(data.get("embed_fonts", out.embed_fonts))
            return out
        except Exception:
            log.debug("No se pudieron cargar settings: %s", p, exc_info=True)
            return cls()

    def save(self) -> None:
        try:
            d = settings_dir()
            d.mkdir(parents=True, exist_ok=True)
            payload: Dict[str, Any] = {
                "schema_version": 1,
                "export_format": _coerce_format(self.export_format),
                "export_scale": _coerce_scale(self.export_scale),
                "output_dir": str(self.output_dir or ""),
                "embed_fonts": bool(self.embed_fonts),
            }
            settings_path().write_text(
                json.dumps(payload, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except Exception:
            log.debug("No se pudieron guardar settings", exc_info=True)


def _coerce_format(v: Any) -> str:
    s = str(v or "").strip().lower()
    if s in VALID_EXPORT_FORMATS:
        return s
    return "png"


def _coerce_scale(v: Any) -> int:
    try:
        n = int(v)
    except Exception:
        return 2
    return n if n in VALID_EXPORT_SCALES else 2
