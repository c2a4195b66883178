# File: badgeforge/utils/errors.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-02
# Purpose: Errores tipados del proyecto.
# Notes: Los errores "recuperables" (fuentes, SVG ajeno) se atrapan donde nacen y degradan.
from __future__ import annotations


class BadgeError(Exception):
    """Error base del proyecto."""


class BadgeValidationError(BadgeError):
    """Error de validación (input/archivo/estructura)."""


class BadgeSchemaError(BadgeValidationError):
    """Template u overrides con estructura inválida (ids duplicados, tipos, etc.)."""


class MissingDimensionError(BadgeValidationError):
    """El template no define width/height intrínsecos: no se puede rasterizar."""


class ForeignContentError(BadgeValidationError):
    """Markup SVG ajeno que no tiene la estructura esperada.

    Uso interno: el render lo atrapa y deja pasar el markup sin modificar.
    """


class BadgeIOError(BadgeError):
    """Error de E/S (lectura/escritura/red)."""


class FontFetchError(BadgeIOError):
    """No se pudo descargar/decodificar una fuente (se conserva el @import original)."""


class BadgeExportError(BadgeError):
    """Falla del rasterizador o del encoder (p.ej. falta el plugin WEBP de Qt)."""


class BadgeUserCancelled(BadgeError):
    """Acción cancelada por el usuario (no es un fallo)."""
