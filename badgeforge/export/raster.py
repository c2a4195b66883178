# File: badgeforge/export/raster.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-09
# Purpose: Rasterizado offscreen del documento SVG (QtSvg) -> PNG/WebP, y PDF (QPdfWriter).
# Notes:
# - Todo en memoria (QByteArray/QBuffer); nada toca disco.
# - QImage/QPainter/QBuffer se crean justo antes de usarse y se cierran en todos los caminos.
# - Sin QApplication no cargan los plugins de imagen: _ensure_qt_app() la crea si falta.
from __future__ import annotations

import logging
import sys

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QMarginsF, QRectF, QSizeF, Qt
from PySide6.QtGui import QImage, QImageWriter, QPageLayout, QPageSize, QPainter, QPdfWriter
from PySide6.QtSvg import QSvgRenderer

from badgeforge.core.version import CSS_PPI, MM_PER_INCH
from badgeforge.utils.errors import BadgeExportError

log = logging.getLogger(__name__)

RASTER_FORMATS = {"png": "PNG", "webp": "WEBP"}


def _ensure_qt_app() -> None:
    """Crea una app Qt mínima si no existe (necesaria para los plugins de imagen)."""
    from PySide6.QtGui import QGuiApplication

    if QGuiApplication.instance() is None:
        QGuiApplication(sys.argv[:1] or ["badgeforge-export"])


def px_to_mm(px: float) -> float:
    return float(px) * MM_PER_INCH / CSS_PPI


def supports_format(fmt: str) -> bool:
    qt_fmt = RASTER_FORMATS.get(fmt.lower())
    if qt_fmt is None:
        return False
    _ensure_qt_app()
    supported = {bytes(f.data()).decode("ascii", "ignore").upper() for f in QImageWriter.supportedImageFormats()}
    return qt_fmt in supported


def render_image(svg_text: str, width_px: int, height_px: int) -> QImage:
    """Dibuja el documento SVG completo en un QImage transparente de width_px x height_px."""
    if width_px <= 0 or height_px <= 0:
        raise BadgeExportError(f"Tamaño de raster inválido: {width_px}x{height_px}")
    _ensure_qt_app()

    r = QSvgRenderer(QByteArray(svg_text.encode("utf-8")))
    if not r.isValid():
        raise BadgeExportError("QSvgRenderer no pudo cargar el documento SVG")

    img = QImage(int(width_px), int(height_px), QImage.Format_ARGB32_Premultiplied)
    img.fill(Qt.transparent)

    p = QPainter(img)
    try:
        p.setRenderHint(QPainter.Antialiasing, True)
        p.setRenderHint(QPainter.TextAntialiasing, True)
        p.setRenderHint(QPainter.SmoothPixmapTransform, True)
        r.render(p, QRectF(0, 0, float(width_px), float(height_px)))
    finally:
        p.end()
    return img


def encode_image(img: QImage, fmt: str) -> bytes:
    qt_fmt = RASTER_FORMATS.get(fmt.lower())
    if qt_fmt is None:
        raise BadgeExportError(f"Formato raster no soportado: {fmt!r}")
    if not supports_format(fmt):
        raise BadgeExportError(f"Qt no tiene plugin para {qt_fmt} (instalar qt imageformats)")

    ba = QByteArray()
    buf = QBuffer(ba)
    if not buf.open(QIODevice.WriteOnly):
        raise BadgeExportError("No se pudo abrir el buffer de salida")
    try:
        ok = img.save(buf, qt_fmt)
    finally:
        buf.close()
    if not ok:
        raise BadgeExportError(f"Falló el encoder {qt_fmt}")
    return bytes(ba.data())


def rasterize(svg_text: str, width: float, height: float, *, scale: int = 1, fmt: str = "png") -> bytes:
    """SVG -> bytes PNG/WebP de (width*scale) x (height*scale) px."""
    w_px = int(round(float(width) * scale))
    h_px = int(round(float(height) * scale))
    log.debug("rasterize: %sx%s @%sx -> %sx%s %s", width, height, scale, w_px, h_px, fmt)
    return encode_image(render_image(svg_text, w_px, h_px), fmt)


def page_layout_mm(width_px: float, height_px: float) -> QPageLayout:
    """Página = tamaño físico del template (px * 25.4 / 96 -> mm), sin márgenes."""
    w_mm, h_mm = px_to_mm(width_px), px_to_mm(height_px)
    # QPageSize se define en vertical; la orientación la da el layout.
    size = QPageSize(
        QSizeF(min(w_mm, h_mm), max(w_mm, h_mm)),
        QPageSize.Millimeter,
        "",
        QPageSize.ExactMatch,
    )
    orientation = QPageLayout.Landscape if w_mm > h_mm else QPageLayout.Portrait
    return QPageLayout(size, orientation, QMarginsF(0, 0, 0, 0), QPageLayout.Millimeter)


def render_pdf(png_bytes: bytes, width_px: float, height_px: float, *, title: str = "") -> bytes:
    """PDF de una página del tamaño físico del template con el PNG ocupando toda la página."""
    _ensure_qt_app()
    img = QImage.fromData(png_bytes, "PNG")
    if img.isNull():
        raise BadgeExportError("No se pudo decodificar el PNG intermedio del PDF")

    ba = QByteArray()
    buf = QBuffer(ba)
    if not buf.open(QIODevice.WriteOnly):
        raise BadgeExportError("No se pudo abrir el buffer de salida")
    try:
        writer = QPdfWriter(buf)
        writer.setResolution(int(CSS_PPI))
        writer.setCreator("BadgeForge")
        if title:
            writer.setTitle(title)
        if not writer.setPageLayout(page_layout_mm(width_px, height_px)):
            raise BadgeExportError("QPdfWriter rechazó el tamaño de página")

        p = QPainter()
        if not p.begin(writer):
            raise BadgeExportError("No se pudo iniciar el QPainter sobre el PDF")
        try:
            p.setRenderHint(QPainter.SmoothPixmapTransform, True)
            p.drawImage(QRectF(0, 0, float(writer.width()), float(writer.height())), img)
        finally:
            p.end()
    finally:
        buf.close()

    data = bytes(ba.data())
    if not data.startswith(b"%PDF"):
        raise BadgeExportError("QPdfWriter no generó un PDF válido")
    return data
