# File: badgeforge/app.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-10
# Purpose: Entry-point CLI: `export` (SVG/PNG/WebP/PDF) y `preview` (ventana con zoom/pan).
# Notes: Los errores tipados se reportan con código de salida, sin traceback.
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from badgeforge.core.serialization import load_overrides, load_template
from badgeforge.core.settings import VALID_EXPORT_FORMATS, VALID_EXPORT_SCALES, AppSettings, apply_project_settings
from badgeforge.core.version import APP_NAME, APP_VERSION
from badgeforge.utils.errors import BadgeError, MissingDimensionError
from badgeforge.utils.log import get_logger, setup_logging

log = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MISSING_DIMENSION = 2


def _build_parser(prefs: AppSettings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="badgeforge", description=f"{APP_NAME} v{APP_VERSION}")
    ap.add_argument("--log-dir", default="logs", help="Carpeta de logs (default: ./logs)")
    ap.add_argument("--no-log-file", action="store_true", help="Solo consola, sin logs/badgeforge.log")
    ap.add_argument("-v", "--verbose", action="store_true", help="Logging DEBUG")
    sub = ap.add_subparsers(dest="command", required=True)

    ex = sub.add_parser("export", help="Exporta un template a SVG/PNG/WebP/PDF")
    ex.add_argument("template", help="Ruta al template .json")
    ex.add_argument("--overrides", default="", help="JSON con overrides por layer")
    ex.add_argument("--format", dest="fmt", choices=VALID_EXPORT_FORMATS, default=prefs.export_format)
    ex.add_argument("--scale", type=int, choices=VALID_EXPORT_SCALES, default=prefs.export_scale)
    ex.add_argument("--out", default=prefs.output_dir, help="Archivo o carpeta de salida (default: CWD)")
    ex.add_argument(
        "--no-embed-fonts",
        dest="embed_fonts",
        action="store_false",
        default=prefs.embed_fonts,
        help="No descargar/embeber fuentes web",
    )
    ex.add_argument("--save-defaults", action="store_true", help="Guarda formato/escala/salida como preferencia")

    pv = sub.add_parser("preview", help="Abre el preview interactivo")
    pv.add_argument("template", help="Ruta al template .json")
    pv.add_argument("--overrides", default="", help="JSON con overrides por layer")
    return ap


def _cmd_export(args: argparse.Namespace, prefs: AppSettings) -> int:
    from badgeforge.export.pipeline import ExportPipeline

    template = load_template(args.template)
    overrides = load_overrides(args.overrides) if args.overrides else None

    result = ExportPipeline().export(
        template,
        overrides,
        args.fmt,
        scale=args.scale,
        embed_fonts=args.embed_fonts,
    )
    path = result.save(args.out or None)
    print(path)

    if args.save_defaults:
        prefs.export_format = args.fmt
        prefs.export_scale = args.scale
        prefs.output_dir = str(args.out or "")
        prefs.embed_fonts = bool(args.embed_fonts)
        prefs.save()
    return EXIT_OK


def _cmd_preview(args: argparse.Namespace) -> int:
    from PySide6.QtWidgets import QApplication

    from badgeforge.ui.preview_view import PreviewView

    template = load_template(args.template)
    overrides = load_overrides(args.overrides) if args.overrides else None

    app = QApplication.instance() or QApplication(sys.argv[:1])
    w = PreviewView(template, overrides)
    w.setWindowTitle(f"{APP_NAME} - {template.name or template.id}")
    w.zoom_changed.connect(lambda pct: w.setWindowTitle(f"{APP_NAME} - {template.name or template.id} ({pct}%)"))
    w.resize(960, 640)
    w.show()
    log.info("Preview iniciado: %s", Path(args.template).name)
    return app.exec()


def main(argv: list[str] | None = None) -> int:
    prefs = AppSettings.load()
    args = _build_parser(prefs).parse_args(argv)

    # -v gana; si no, BF_LOG_LEVEL (default INFO).
    setup_logging(
        None if args.no_log_file else args.log_dir,
        level=logging.DEBUG if args.verbose else None,
        force=True,
    )
    # Defaults por proyecto (repo-local): badgeforge_settings.json
    apply_project_settings(logger=log, prefer_env=True)

    try:
        if args.command == "export":
            return _cmd_export(args, prefs)
        return _cmd_preview(args)
    except MissingDimensionError as e:
        log.error("%s", e)
        return EXIT_MISSING_DIMENSION
    except BadgeError as e:
        log.error("%s", e)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
