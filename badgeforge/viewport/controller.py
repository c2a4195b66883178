# File: badgeforge/viewport/controller.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-05
# Purpose: Estado del viewBox del preview: zoom/pan/auto-fit/reset + input de rueda/pinch/gesture.
# Notes:
# - Única fuente de verdad: el viewBox. zoom = container_w / viewBox.w (derivado, nunca guardado).
# - Contenedor 0x0 (no layouteado): todas las operaciones son no-op (nunca NaN).
# - pan() recibe px y divide por pixels-per-unit; jamás se suman px crudos al viewBox.
from __future__ import annotations

import logging
import math
from typing import Callable, Optional

from badgeforge.core.models import Template, ViewBox
from badgeforge.core.policy import FitPolicy, ZoomPolicy
from badgeforge.geom.kernel import Point, Size, fit_scale, keep_aspect_mapping, safe_number
from badgeforge.viewport.gestures import GestureTracker, PinchTracker, TouchPoint, WheelInput, wheel_zoom_factor

log = logging.getLogger(__name__)

ViewBoxListener = Callable[[ViewBox], None]


class ViewportController:
    def __init__(
        self,
        template_width: Optional[float] = None,
        template_height: Optional[float] = None,
        *,
        zoom_policy: Optional[ZoomPolicy] = None,
        fit_policy: Optional[FitPolicy] = None,
    ) -> None:
        self.zoom_policy = zoom_policy or ZoomPolicy.from_env()
        self.fit_policy = fit_policy or FitPolicy.from_env()

        self._template_w = safe_number(template_width, 0.0)
        self._template_h = safe_number(template_height, 0.0)
        self._container_w = 0.0
        self._container_h = 0.0
        self._viewbox = self._template_box()

        self._pinch = PinchTracker()
        self._gesture = GestureTracker()
        self._listeners: list[ViewBoxListener] = []

    @classmethod
    def for_template(cls, template: Template, **kwargs) -> "ViewportController":
        return cls(template.width, template.height, **kwargs)

    # ----------------------------
    # Estado derivado
    # ----------------------------

    @property
    def viewbox(self) -> ViewBox:
        return self._viewbox

    @property
    def container_size(self) -> Size:
        return Size(self._container_w, self._container_h)

    @property
    def is_ready(self) -> bool:
        """Contenedor con tamaño válido y viewBox utilizable."""
        return self.container_size.is_valid and self._viewbox.is_valid

    @property
    def zoom(self) -> float:
        if not self.is_ready:
            return 1.0
        return self._container_w / self._viewbox.width

    @property
    def pixels_per_unit(self) -> float:
        return self.zoom

    @property
    def zoom_percentage(self) -> int:
        return int(round(self.zoom * 100.0))

    def can_zoom_in(self) -> bool:
        return self.is_ready and self.zoom < self.zoom_policy.max_zoom - 1e-9

    def can_zoom_out(self) -> bool:
        return self.is_ready and self.zoom > self.zoom_policy.min_zoom + 1e-9

    # ----------------------------
    # Listeners
    # ----------------------------

    def subscribe(self, listener: ViewBoxListener) -> Callable[[], None]:
        """Registra un callback (viewBox nuevo). Devuelve la función para desuscribir."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_viewbox(self, vb: ViewBox) -> None:
        if not all(math.isfinite(v) for v in vb.as_tuple()) or not vb.is_valid:
            log.warning("viewBox inválido descartado: %s", vb)
            return
        if self.zoom_policy.clamp_pan:
            vb = self._clamped(vb)
        if vb == self._viewbox:
            return
        self._viewbox = vb
        for cb in list(self._listeners):
            cb(vb)

    # ----------------------------
    # Contenedor / template
    # ----------------------------

    def _template_box(self) -> ViewBox:
        if self._template_w > 0 and self._template_h > 0:
            return ViewBox(0.0, 0.0, self._template_w, self._template_h)
        return ViewBox()

    def set_template_size(self, width: Optional[float], height: Optional[float]) -> None:
        self._template_w = safe_number(width, 0.0)
        self._template_h = safe_number(height, 0.0)
        self.reset_zoom()

    def set_container_size(self, width: float, height: float) -> None:
        """Nuevo tamaño del contenedor: conserva zoom y centro."""
        w = safe_number(width, 0.0)
        h = safe_number(height, 0.0)
        if w <= 0 or h <= 0:
            log.debug("Contenedor sin tamaño (%sx%s): viewport en espera", width, height)
            self._container_w, self._container_h = max(w, 0.0), max(h, 0.0)
            return

        old_w, old_h = self._container_w, self._container_h
        self._container_w, self._container_h = w, h

        if not self._viewbox.is_valid:
            self._set_viewbox(self._template_box())
            return
        if old_w <= 0 or old_h <= 0:
            # Primer tamaño válido: el viewBox actual queda como está.
            return

        vb = self._viewbox
        cx, cy = vb.center
        nw = vb.width * (w / old_w)
        nh = vb.height * (h / old_h)
        self._set_viewbox(ViewBox(cx - nw / 2.0, cy - nh / 2.0, nw, nh))

    # ----------------------------
    # Zoom
    # ----------------------------

    def set_zoom(self, factor: float, anchor: Optional[Point] = None) -> bool:
        """Fija el zoom absoluto (acotado a la política).

        Sin `anchor` conserva el centro del viewBox; con `anchor` (px del contenedor)
        el punto bajo el cursor queda quieto. Conserva el aspect ratio del viewBox.
        """
        if not self.is_ready:
            return False
        z = safe_number(factor, 0.0)
        if z <= 0:
            return False
        z = self.zoom_policy.clamp(z)

        vb = self._viewbox
        nw = self._container_w / z
        nh = nw * (vb.height / vb.width)

        if anchor is None:
            cx, cy = vb.center
            self._set_viewbox(ViewBox(cx - nw / 2.0, cy - nh / 2.0, nw, nh))
            return True

        ax, ay = safe_number(anchor.x), safe_number(anchor.y)
        p = self.screen_to_view(ax, ay)
        s, _, _ = keep_aspect_mapping((0.0, 0.0, nw, nh), self._container_w, self._container_h)
        nx = p.x + ((self._container_w - nw * s) / 2.0 - ax) / s
        ny = p.y + ((self._container_h - nh * s) / 2.0 - ay) / s
        self._set_viewbox(ViewBox(nx, ny, nw, nh))
        return True

    def zoom_by(self, ratio: float, anchor: Optional[Point] = None) -> bool:
        r = safe_number(ratio, 0.0)
        if r <= 0:
            return False
        return self.set_zoom(self.zoom * r, anchor)

    def zoom_in(self) -> bool:
        return self.zoom_by(self.zoom_policy.button_step_ratio)

    def zoom_out(self) -> bool:
        return self.zoom_by(1.0 / self.zoom_policy.button_step_ratio)

    def reset_zoom(self) -> None:
        """viewBox = caja del template (0, 0, w, h). Alcanzable desde cualquier estado."""
        self._pinch.reset()
        self._gesture.reset()
        box = self._template_box()
        if box.is_valid:
            self._set_viewbox(box)

    # ----------------------------
    # Pan
    # ----------------------------

    def pan(self, dx: float, dy: float) -> bool:
        """Arrastre de contenido en px: el contenido sigue al puntero."""
        if not self.is_ready:
            return False
        ppu = self._container_w / self._viewbox.width
        ux = safe_number(dx) / ppu
        uy = safe_number(dy) / ppu
        if ux == 0 and uy == 0:
            return False
        vb = self._viewbox
        self._set_viewbox(ViewBox(vb.x - ux, vb.y - uy, vb.width, vb.height))
        return True

    def _clamped(self, vb: ViewBox) -> ViewBox:
        if self._template_w <= 0 or self._template_h <= 0:
            return vb

        def _axis(pos: float, size: float, extent: float) -> float:
            if size >= extent:
                return (extent - size) / 2.0
            return max(0.0, min(pos, extent - size))

        return ViewBox(
            _axis(vb.x, vb.width, self._template_w),
            _axis(vb.y, vb.height, self._template_h),
            vb.width,
            vb.height,
        )

    # ----------------------------
    # Auto-fit
    # ----------------------------

    def auto_fit(self, content_bounds: Optional[ViewBox] = None, container: Optional[Size] = None) -> bool:
        """Encaja `content_bounds` (default: caja del template) en el contenedor con margen.

        Idempotente: mismas entradas -> mismo viewBox.
        """
        if container is not None:
            cw, ch = safe_number(container.width), safe_number(container.height)
            if cw > 0 and ch > 0:
                self._container_w, self._container_h = cw, ch
        if not self.container_size.is_valid:
            return False

        bounds = content_bounds if content_bounds is not None else self._template_box()
        if not bounds.is_valid:
            return False

        fp = self.fit_policy
        scale = fit_scale(
            Size(bounds.width, bounds.height),
            self.container_size,
            fp.margin_ratio,
            min_scale=fp.min_scale,
            max_scale=fp.max_scale,
        )
        nw = self._container_w / scale
        nh = self._container_h / scale
        cx, cy = bounds.center
        self._set_viewbox(ViewBox(cx - nw / 2.0, cy - nh / 2.0, nw, nh))
        return True

    # ----------------------------
    # Mapeo pantalla <-> viewBox
    # ----------------------------

    def screen_to_view(self, px: float, py: float) -> Point:
        """px del contenedor -> unidades del template (xMidYMid meet, como el <svg>)."""
        if not self.is_ready:
            return Point(0.0, 0.0)
        s, tx, ty = keep_aspect_mapping(self._viewbox.as_tuple(), self._container_w, self._container_h)
        return Point((safe_number(px) - tx) / s, (safe_number(py) - ty) / s)

    def view_to_screen(self, x: float, y: float) -> Point:
        if not self.is_ready:
            return Point(0.0, 0.0)
        s, tx, ty = keep_aspect_mapping(self._viewbox.as_tuple(), self._container_w, self._container_h)
        return Point(safe_number(x) * s + tx, safe_number(y) * s + ty)

    # ----------------------------
    # Input
    # ----------------------------

    def handle_wheel(self, ev: WheelInput) -> bool:
        if not self.is_ready:
            return False
        factor = wheel_zoom_factor(ev, self.zoom_policy)
        if factor == 1.0:
            return False
        return self.set_zoom(self.zoom * factor, ev.anchor)

    def begin_pinch(self, t1: TouchPoint, t2: TouchPoint) -> None:
        if not self.is_ready:
            return
        self._pinch.begin(t1, t2, self.zoom)

    def handle_pinch(self, t1: TouchPoint, t2: TouchPoint) -> bool:
        """Movimiento de 2 dedos. Si no hubo begin_pinch, este evento lo inicia."""
        if not self.is_ready:
            return False
        if not self._pinch.active:
            self._pinch.begin(t1, t2, self.zoom)
            return False
        target = self._pinch.target_zoom(t1, t2)
        if target is None:
            return False
        return self.set_zoom(target, PinchTracker.midpoint(t1, t2))

    def end_pinch(self) -> None:
        self._pinch.reset()

    def begin_gesture(self) -> None:
        if self.is_ready:
            self._gesture.begin(self.zoom)

    def handle_gesture(self, scale: float, anchor: Optional[Point] = None) -> bool:
        target = self._gesture.target_zoom(scale)
        if target is None:
            return False
        return self.set_zoom(target, anchor)

    def end_gesture(self) -> None:
        self._gesture.reset()
