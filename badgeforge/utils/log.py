# File: badgeforge/utils/log.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-02
# Purpose: Logging de la app: consola + logs/badgeforge.log, nivel por CLI o BF_LOG_LEVEL.
# Notes:
# - Solo toca handlers propios: si el host (pytest, otra app) ya puso los suyos, se respetan.
# - aiohttp/asyncio se silencian por debajo de WARNING salvo en modo DEBUG explícito.
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FILENAME = "badgeforge.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Librerías que en INFO/DEBUG ensucian la salida de un export.
_NOISY_LOGGERS = ("asyncio", "aiohttp.access", "aiohttp.client", "aiohttp.internal")

_OWN_HANDLERS: list[logging.Handler] = []


def level_from_env(default: int = logging.INFO) -> int:
    """BF_LOG_LEVEL=debug|info|warning|error (o número). Valor inválido -> default."""
    raw = (os.environ.get("BF_LOG_LEVEL") or "").strip()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    lvl = logging.getLevelName(raw.upper())
    return lvl if isinstance(lvl, int) else default


def _drop_own_handlers(root: logging.Logger) -> None:
    for h in _OWN_HANDLERS:
        root.removeHandler(h)
        try:
            h.close()
        except OSError:
            pass
    _OWN_HANDLERS.clear()


def setup_logging(
    log_dir: str | os.PathLike | None = "logs",
    level: Optional[int] = None,
    *,
    force: bool = False,
) -> Optional[Path]:
    """Configura consola + archivo. Devuelve la ruta del log o None si quedó solo consola.

    Nota:
        - Idempotente: sin `force`, una segunda llamada no agrega handlers.
        - `force=True` reemplaza los handlers propios (p.ej. otro --log-dir en la misma sesión).
        - `log_dir=None` desactiva el archivo.
        - No lanza excepción si no puede escribir el archivo; cae a consola.
    """
    root = logging.getLogger()
    if _OWN_HANDLERS and not force:
        return next((Path(h.baseFilename) for h in _OWN_HANDLERS if isinstance(h, logging.FileHandler)), None)
    _drop_own_handlers(root)

    lvl = level if level is not None else level_from_env()
    root.setLevel(lvl)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    ch = logging.StreamHandler()
    ch.setLevel(lvl)
    ch.setFormatter(fmt)
    root.addHandler(ch)
    _OWN_HANDLERS.append(ch)

    log_path: Optional[Path] = None
    if log_dir is not None:
        try:
            d = Path(log_dir)
            d.mkdir(parents=True, exist_ok=True)
            log_path = d / LOG_FILENAME
            fh = logging.FileHandler(log_path, encoding="utf-8")
            fh.setLevel(lvl)
            fh.setFormatter(fmt)
            root.addHandler(fh)
            _OWN_HANDLERS.append(fh)
        except OSError as e:
            log_path = None
            logging.getLogger(__name__).warning("No se pudo inicializar FileHandler en %s: %s", log_dir, e)

    quiet = logging.WARNING if lvl > logging.DEBUG else logging.DEBUG
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)

    return log_path


def reset_logging() -> None:
    """Quita los handlers propios (tests, o antes de re-configurar desde otro host)."""
    _drop_own_handlers(logging.getLogger())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
