# File: badgeforge/viewport/gestures.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-05
# Purpose: Normalización de input de zoom: rueda (mouse vs trackpad), pinch de 2 dedos, gesture.
# Notes:
# - Sin Qt: el widget traduce sus eventos a WheelInput / TouchPoint.
# - Pinch y gesture multiplican el zoom capturado al INICIO del gesto (no el vivo).
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from badgeforge.core.policy import ZoomPolicy
from badgeforge.geom.kernel import Point, distance, safe_number

# WheelEvent.deltaMode
DELTA_PIXEL = 0
DELTA_LINE = 1
DELTA_PAGE = 2

LINE_HEIGHT_PX = 16.0
PAGE_HEIGHT_PX = 800.0


@dataclass(frozen=True)
class WheelInput:
    delta_y: float
    delta_mode: int = DELTA_PIXEL
    ctrl_key: bool = False
    # Dispositivo de alta resolución (touchpad con pixelDelta en Qt).
    precise: bool = False
    # Posición del cursor en px del contenedor (None = zoom al centro).
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def anchor(self) -> Optional[Point]:
        if self.x is None or self.y is None:
            return None
        return Point(safe_number(self.x), safe_number(self.y))


@dataclass(frozen=True)
class TouchPoint:
    x: float
    y: float

    def as_point(self) -> Point:
        return Point(safe_number(self.x), safe_number(self.y))


def normalized_delta(ev: WheelInput) -> float:
    """deltaY en px (las ruedas en modo línea/página se llevan a px)."""
    dy = safe_number(ev.delta_y, 0.0)
    if ev.delta_mode == DELTA_LINE:
        return dy * LINE_HEIGHT_PX
    if ev.delta_mode == DELTA_PAGE:
        return dy * PAGE_HEIGHT_PX
    return dy


def is_trackpad_wheel(ev: WheelInput) -> bool:
    """Pinch de trackpad: ctrlKey (así lo reportan los navegadores), delta preciso o fraccionario en px."""
    if ev.ctrl_key or ev.precise:
        return True
    if ev.delta_mode != DELTA_PIXEL:
        return False
    dy = safe_number(ev.delta_y, 0.0)
    return not float(dy).is_integer()


def wheel_zoom_factor(ev: WheelInput, policy: ZoomPolicy) -> float:
    """Factor multiplicativo de zoom para un evento de rueda.

    Trackpad: continuo, exp(-dy * sensibilidad). Mouse: paso fijo (+/- wheel_step_ratio).
    """
    dy = normalized_delta(ev)
    if dy == 0:
        return 1.0
    if is_trackpad_wheel(ev):
        return math.exp(-dy * policy.trackpad_sensitivity)
    if dy < 0:
        return 1.0 + policy.wheel_step_ratio
    return 1.0 - policy.wheel_step_ratio


class PinchTracker:
    """Pinch de dos dedos: ratio de distancia contra la distancia inicial."""

    def __init__(self) -> None:
        self._start_distance: float = 0.0
        self._start_zoom: float = 0.0

    @property
    def active(self) -> bool:
        return self._start_distance > 0 and self._start_zoom > 0

    def begin(self, t1: TouchPoint, t2: TouchPoint, zoom: float) -> None:
        d = distance(t1.as_point(), t2.as_point())
        if d <= 0 or zoom <= 0 or not math.isfinite(zoom):
            self.reset()
            return
        self._start_distance = d
        self._start_zoom = zoom

    def target_zoom(self, t1: TouchPoint, t2: TouchPoint) -> Optional[float]:
        if not self.active:
            return None
        d = distance(t1.as_point(), t2.as_point())
        if d <= 0:
            return None
        return self._start_zoom * (d / self._start_distance)

    @staticmethod
    def midpoint(t1: TouchPoint, t2: TouchPoint) -> Point:
        a, b = t1.as_point(), t2.as_point()
        return Point((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)

    def reset(self) -> None:
        self._start_distance = 0.0
        self._start_zoom = 0.0


class GestureTracker:
    """Gestos con escala acumulada (gesturestart/gesturechange o QNativeGestureEvent)."""

    def __init__(self) -> None:
        self._start_zoom: float = 0.0

    @property
    def active(self) -> bool:
        return self._start_zoom > 0

    def begin(self, zoom: float) -> None:
        self._start_zoom = zoom if zoom > 0 and math.isfinite(zoom) else 0.0

    def target_zoom(self, scale: float) -> Optional[float]:
        s = safe_number(scale, 0.0)
        if not self.active or s <= 0:
            return None
        return self._start_zoom * s

    def reset(self) -> None:
        self._start_zoom = 0.0
