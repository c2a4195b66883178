# File: badgeforge/ui/preview_view.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-10
# Purpose: Preview en vivo (QWidget + QSvgRenderer) manejado por ViewportController.
# Notes:
# - El widget NO guarda zoom: traduce eventos Qt a operaciones del controller y pinta su viewBox.
# - El documento es el mismo que exporta ExportPipeline (sin fuentes embebidas: usa las del sistema).
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QByteArray, QEvent, QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter
from PySide6.QtSvg import QSvgRenderer
from PySide6.QtWidgets import QWidget

from badgeforge.core.models import Template, ViewBox
from badgeforge.core.policy import FitPolicy, ZoomPolicy
from badgeforge.geom.content_bounds import compute_content_bounds
from badgeforge.geom.kernel import Point
from badgeforge.render.document import render_document
from badgeforge.render.resolver import Overrides
from badgeforge.utils.log import get_logger
from badgeforge.viewport.controller import ViewportController
from badgeforge.viewport.gestures import DELTA_PIXEL, TouchPoint, WheelInput

log = get_logger(__name__)

# Un "notch" de rueda en Qt = 120; en navegadores ~100px de deltaY.
_ANGLE_PER_NOTCH = 120.0
_PX_PER_NOTCH = 100.0


class PreviewView(QWidget):
    zoom_changed = Signal(int)  # porcentaje
    viewbox_changed = Signal(float, float, float, float)

    BACKGROUND = QColor(48, 48, 48)

    def __init__(
        self,
        template: Template,
        overrides: Overrides = None,
        parent: Optional[QWidget] = None,
        *,
        zoom_policy: Optional[ZoomPolicy] = None,
        fit_policy: Optional[FitPolicy] = None,
    ) -> None:
        super().__init__(parent)
        self.setAttribute(Qt.WA_AcceptTouchEvents, True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(160, 120)

        self._template = template
        self._overrides = overrides
        self._svg_text = ""
        self._renderer = QSvgRenderer(self)
        self._renderer.setAspectRatioMode(Qt.KeepAspectRatio)

        self._drag_last: Optional[QPointF] = None
        self._native_scale = 1.0
        self._fitted_once = False

        self.controller = ViewportController.for_template(template, zoom_policy=zoom_policy, fit_policy=fit_policy)
        self.controller.subscribe(self._on_viewbox)
        self._reload_document()

    # ----------------------------
    # Documento
    # ----------------------------

    @property
    def svg_text(self) -> str:
        return self._svg_text

    def set_overrides(self, overrides: Overrides) -> None:
        self._overrides = overrides
        self._reload_document()

    def set_template(self, template: Template, overrides: Overrides = None) -> None:
        self._template = template
        self._overrides = overrides
        self.controller.set_template_size(template.width, template.height)
        self._reload_document()
        self.fit_to_template()

    def _reload_document(self) -> None:
        self._svg_text = render_document(self._template, self._overrides, declaration=False)
        if not self._renderer.load(QByteArray(self._svg_text.encode("utf-8"))):
            log.warning("Preview: QSvgRenderer no pudo cargar el documento (%d chars)", len(self._svg_text))
        self.update()

    # ----------------------------
    # Acciones
    # ----------------------------

    def zoom_in(self) -> None:
        self.controller.zoom_in()

    def zoom_out(self) -> None:
        self.controller.zoom_out()

    def reset_zoom(self) -> None:
        self.controller.reset_zoom()

    def fit_to_template(self) -> None:
        self.controller.auto_fit()

    def fit_to_content(self) -> None:
        fallback = self._template.intrinsic_viewbox()
        bounds = compute_content_bounds(self._svg_text, fallback=fallback)
        self.controller.auto_fit(bounds if bounds is not None else fallback)

    def zoom_percentage(self) -> int:
        return self.controller.zoom_percentage

    def _on_viewbox(self, vb: ViewBox) -> None:
        self.viewbox_changed.emit(vb.x, vb.y, vb.width, vb.height)
        self.zoom_changed.emit(self.controller.zoom_percentage)
        self.update()

    # ----------------------------
    # Qt events
    # ----------------------------

    def paintEvent(self, event) -> None:
        p = QPainter(self)
        try:
            p.fillRect(self.rect(), self.BACKGROUND)
            if not self.controller.is_ready or not self._renderer.isValid():
                return
            p.setRenderHint(QPainter.Antialiasing, True)
            p.setRenderHint(QPainter.TextAntialiasing, True)
            vb = self.controller.viewbox
            self._renderer.setViewBox(QRectF(vb.x, vb.y, vb.width, vb.height))
            self._renderer.render(p, QRectF(self.rect()))
        finally:
            p.end()

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        size = event.size()
        self.controller.set_container_size(size.width(), size.height())
        if not self._fitted_once and self.controller.is_ready:
            self._fitted_once = True
            self.controller.auto_fit()

    def wheelEvent(self, event) -> None:
        pos = event.position()
        ctrl = bool(event.modifiers() & Qt.ControlModifier)
        pixel = event.pixelDelta()
        if not pixel.isNull():
            ev = WheelInput(
                delta_y=-float(pixel.y()),
                delta_mode=DELTA_PIXEL,
                ctrl_key=ctrl,
                precise=True,
                x=pos.x(),
                y=pos.y(),
            )
        else:
            dy = int(event.angleDelta().y())
            if not dy:
                super().wheelEvent(event)
                return
            ev = WheelInput(
                delta_y=-dy / _ANGLE_PER_NOTCH * _PX_PER_NOTCH,
                delta_mode=DELTA_PIXEL,
                ctrl_key=ctrl,
                x=pos.x(),
                y=pos.y(),
            )
        self.controller.handle_wheel(ev)
        event.accept()

    def mousePressEvent(self, event) -> None:
        if event.button() in (Qt.LeftButton, Qt.MiddleButton):
            self._drag_last = event.position()
            self.setCursor(Qt.ClosedHandCursor)
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:
        if self._drag_last is None:
            super().mouseMoveEvent(event)
            return
        pos = event.position()
        self.controller.pan(pos.x() - self._drag_last.x(), pos.y() - self._drag_last.y())
        self._drag_last = pos
        event.accept()

    def mouseReleaseEvent(self, event) -> None:
        if self._drag_last is not None:
            self._drag_last = None
            self.unsetCursor()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event) -> None:
        self.fit_to_template()
        event.accept()

    def keyPressEvent(self, event) -> None:
        key = event.key()
        if key in (Qt.Key_Plus, Qt.Key_Equal):
            self.zoom_in()
        elif key == Qt.Key_Minus:
            self.zoom_out()
        elif key == Qt.Key_0:
            self.reset_zoom()
        elif key == Qt.Key_F:
            self.fit_to_content()
        else:
            super().keyPressEvent(event)
            return
        event.accept()

    def event(self, event) -> bool:
        et = event.type()
        if et in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd, QEvent.TouchCancel):
            return self._touch_event(event)
        if et == QEvent.NativeGesture:
            return self._native_gesture(event)
        return super().event(event)

    def _touch_event(self, event) -> bool:
        pts = event.points()
        if event.type() in (QEvent.TouchEnd, QEvent.TouchCancel) or len(pts) < 2:
            self.controller.end_pinch()
            event.accept()
            return True
        a, b = pts[0].position(), pts[1].position()
        t1, t2 = TouchPoint(a.x(), a.y()), TouchPoint(b.x(), b.y())
        if event.type() == QEvent.TouchBegin:
            self.controller.begin_pinch(t1, t2)
        else:
            self.controller.handle_pinch(t1, t2)
        event.accept()
        return True

    def _native_gesture(self, event) -> bool:
        gt = event.gestureType()
        if gt == Qt.BeginNativeGesture:
            self._native_scale = 1.0
            self.controller.begin_gesture()
        elif gt == Qt.ZoomNativeGesture:
            # value() = delta incremental de escala.
            self._native_scale *= 1.0 + float(event.value())
            pos = event.position()
            self.controller.handle_gesture(self._native_scale, Point(pos.x(), pos.y()))
        elif gt == Qt.EndNativeGesture:
            self.controller.end_gesture()
        else:
            return super().event(event)
        event.accept()
        return True
