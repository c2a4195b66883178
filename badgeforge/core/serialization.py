# File: badgeforge/core/serialization.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-04
# Purpose: Carga de Template y overrides desde JSON (solo lectura; el estado lo guarda el host).
# Notes: Errores de E/S -> BadgeIOError; JSON/estructura -> BadgeValidationError.
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from badgeforge.core.models import LayerOverride, Template, overrides_from_data
from badgeforge.utils.errors import BadgeIOError, BadgeValidationError


def _read_json(path: str | Path, what: str) -> Any:
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except Exception as e:
        raise BadgeIOError("No se pudo leer {}: {}".format(what, p)) from e

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise BadgeValidationError(
            "{} inválido (JSON malformado): {} (línea {}, columna {})".format(what, p, e.lineno, e.colno)
        ) from e


def load_template(path: str | Path) -> Template:
    data = _read_json(path, "Template")
    if not isinstance(data, dict):
        raise BadgeValidationError("Estructura de template inválida: raíz no es objeto JSON")
    # Un archivo de proyecto puede traer {"template": {...}, "overrides": [...]}.
    if isinstance(data.get("template"), dict):
        data = data["template"]
    return Template.from_dict(data)


def load_overrides(path: str | Path) -> dict[str, LayerOverride]:
    data = _read_json(path, "Overrides")
    if isinstance(data, dict) and "overrides" in data:
        data = data["overrides"]
    return overrides_from_data(data)


def template_from_json(text: str) -> Template:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BadgeValidationError(f"Template inválido (JSON malformado): línea {e.lineno}") from e
    return Template.from_dict(data)
