# File: badgeforge/export/pipeline.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-09
# Purpose: Export SVG/PNG/WebP/PDF: render intrínseco -> fuentes embebidas -> <style> -> formato.
# Notes:
# - Nunca depende del zoom del preview: siempre se renderiza a width x height del template.
# - Raster/PDF sin dimensiones intrínsecas -> MissingDimensionError ANTES de renderizar.
#   SVG puede ser responsive y se exporta igual.
# - Fuentes: best-effort (ver export.fonts). El export se devuelve recién cuando todas asentaron.
from __future__ import annotations

import asyncio
import base64
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from badgeforge.core.models import Template
from badgeforge.core.policy import ExportPolicy
from badgeforge.core.version import DEFAULT_EXPORT_NAME
from badgeforge.export.catalog import FontCatalog
from badgeforge.export.fonts import FontEmbedder
from badgeforge.export.raster import px_to_mm, rasterize, render_pdf
from badgeforge.render.document import detect_font_families, inject_style, render_document
from badgeforge.render.resolver import Overrides
from badgeforge.utils.errors import BadgeExportError, BadgeIOError, BadgeValidationError, MissingDimensionError

log = logging.getLogger(__name__)

EXPORT_FORMATS = ("svg", "png", "webp", "pdf")

MIME_TYPES = {
    "svg": "image/svg+xml",
    "png": "image/png",
    "webp": "image/webp",
    "pdf": "application/pdf",
}

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    s = _SLUG_RE.sub("-", str(name or "").lower()).strip("-")
    return s or DEFAULT_EXPORT_NAME


def suggest_filename(name: str, ext: str, now_ms: Optional[int] = None) -> str:
    """<slug(name)>-<epoch-ms>.<ext>"""
    ms = int(now_ms) if now_ms is not None else int(time.time() * 1000)
    return f"{slugify(name)}-{ms}.{ext.lower().lstrip('.')}"


@dataclass(frozen=True)
class ExportResult:
    format: str
    filename: str
    data: bytes
    mime_type: str
    width: int
    height: int
    page_size_mm: Optional[tuple[float, float]] = None

    @property
    def text(self) -> str:
        """Contenido SVG como texto (solo format == 'svg')."""
        if self.format != "svg":
            raise BadgeValidationError(f"El export {self.format!r} no es texto")
        return self.data.decode("utf-8")

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    def save(self, target: str | Path | None = None) -> Path:
        """Escribe el archivo. `target` puede ser carpeta (usa filename) o ruta completa."""
        p = Path(target) if target else Path.cwd()
        if p.is_dir() or (target and str(target).endswith(("/", "\\"))):
            p = p / self.filename
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            tmp = p.with_suffix(p.suffix + ".tmp")
            tmp.write_bytes(self.data)
            tmp.replace(p)
        except Exception as e:
            raise BadgeIOError(f"No se pudo guardar el export: {p}") from e
        log.info("Export guardado: %s (%d bytes)", p, len(self.data))
        return p


class ExportPipeline:
    def __init__(
        self,
        *,
        policy: Optional[ExportPolicy] = None,
        catalog: Optional[FontCatalog] = None,
        embedder: Optional[FontEmbedder] = None,
    ) -> None:
        self.policy = policy or ExportPolicy.from_env()
        self.catalog = catalog or FontCatalog(css_url_template=self.policy.font_css_url)
        self.embedder = embedder or FontEmbedder(timeout_s=self.policy.font_timeout_s)

    # ----------------------------
    # Validación
    # ----------------------------

    def _check_request(self, template: Template, fmt: str, scale: int) -> None:
        if fmt not in EXPORT_FORMATS:
            raise BadgeValidationError(f"Formato de export no soportado: {fmt!r}")
        if fmt == "svg":
            return
        if not template.has_dimensions:
            raise MissingDimensionError(
                f"El template {template.id!r} no tiene width/height: solo se puede exportar SVG"
            )
        if fmt in ("png", "webp") and scale not in self.policy.raster_scales:
            raise BadgeValidationError(
                f"Escala {scale!r} inválida (válidas: {', '.join(str(s) for s in self.policy.raster_scales)})"
            )

    # ----------------------------
    # SVG autocontenido
    # ----------------------------

    async def font_css(self, svg_text: str, *, embed: bool = True) -> str:
        families = detect_font_families(svg_text)
        css = self.catalog.imports_css(families)
        if not css or not embed:
            return css
        return await self.embedder.embed(css)

    async def build_svg(self, template: Template, overrides: Overrides = None, *, embed_fonts: Optional[bool] = None) -> str:
        """Documento SVG final (con declaración XML y <style> de fuentes al frente)."""
        embed = self.policy.embed_fonts if embed_fonts is None else bool(embed_fonts)
        doc = render_document(template, overrides, clip_mode=self.policy.clip_mode)
        css = await self.font_css(doc, embed=embed)
        return inject_style(doc, css)

    # ----------------------------
    # Export
    # ----------------------------

    async def export_async(
        self,
        template: Template,
        overrides: Overrides = None,
        fmt: str = "svg",
        *,
        scale: int = 1,
        embed_fonts: Optional[bool] = None,
        now_ms: Optional[int] = None,
    ) -> ExportResult:
        fmt = str(fmt or "").lower()
        self._check_request(template, fmt, scale)

        svg_text = await self.build_svg(template, overrides, embed_fonts=embed_fonts)
        filename = suggest_filename(template.name or template.id, fmt, now_ms)

        w = float(template.width or 0.0)
        h = float(template.height or 0.0)

        if fmt == "svg":
            return ExportResult(
                format="svg",
                filename=filename,
                data=svg_text.encode("utf-8"),
                mime_type=MIME_TYPES["svg"],
                width=int(round(w)),
                height=int(round(h)),
            )

        if fmt in ("png", "webp"):
            data = rasterize(svg_text, w, h, scale=scale, fmt=fmt)
            return ExportResult(
                format=fmt,
                filename=filename,
                data=data,
                mime_type=MIME_TYPES[fmt],
                width=int(round(w * scale)),
                height=int(round(h * scale)),
            )

        # PDF: raster 1x embebido en una página del tamaño físico.
        png = rasterize(svg_text, w, h, scale=1, fmt="png")
        data = render_pdf(png, w, h, title=template.name or template.id)
        return ExportResult(
            format="pdf",
            filename=filename,
            data=data,
            mime_type=MIME_TYPES["pdf"],
            width=int(round(w)),
            height=int(round(h)),
            page_size_mm=(px_to_mm(w), px_to_mm(h)),
        )

    def export(
        self,
        template: Template,
        overrides: Overrides = None,
        fmt: str = "svg",
        *,
        scale: int = 1,
        embed_fonts: Optional[bool] = None,
        now_ms: Optional[int] = None,
    ) -> ExportResult:
        """Versión sincrónica (CLI / scripts). No usar dentro de un event loop activo."""
        try:
            return asyncio.run(
                self.export_async(template, overrides, fmt, scale=scale, embed_fonts=embed_fonts, now_ms=now_ms)
            )
        except (BadgeValidationError, BadgeExportError, BadgeIOError):
            raise
        except RuntimeError as e:
            raise BadgeExportError(f"Export falló: {e}") from e
