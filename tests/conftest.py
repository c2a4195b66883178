# File: tests/conftest.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-11
# Purpose: Fixtures compartidas: templates de ejemplo, fetcher de fuentes sin red, env limpio.
# Notes: Qt corre offscreen (CI sin display).
from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from badgeforge.core.models import Template, TemplateLayer
from badgeforge.export.fonts import clear_font_cache
from badgeforge.utils.errors import FontFetchError
from badgeforge.utils.log import reset_logging

BADGE_PATH = "M10 5 H190 A5 5 0 0 1 195 10 V50 A5 5 0 0 1 190 55 H10 A5 5 0 0 1 5 50 V10 A5 5 0 0 1 10 5 Z"

FONT_BYTES = b"wOF2-fake-font-payload"


@pytest.fixture(scope="session", autouse=True)
def qapp():
    # Una sola QApplication para toda la sesión: el raster y los widgets la comparten.
    from PySide6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in list(os.environ):
        if k.startswith("BF_"):
            monkeypatch.delenv(k, raising=False)
    clear_font_cache()
    yield
    clear_font_cache()
    reset_logging()


@pytest.fixture
def hello_template() -> Template:
    return Template(
        id="hello",
        name="Hello Sticker",
        width=200,
        height=60,
        layers=(
            TemplateLayer(
                id="title",
                kind="text",
                position=("50%", "50%"),
                text="Hello",
                font_family="Arial",
                font_size=18,
                fill="#222222",
            ),
        ),
    )


@pytest.fixture
def badge_template() -> Template:
    return Template(
        id="badge",
        name="Name Badge",
        width=200,
        height=60,
        layers=(
            TemplateLayer(id="badge-bg", kind="shape", path=BADGE_PATH, fill="#1e88e5"),
            TemplateLayer(
                id="label",
                kind="text",
                position=("50%", "50%"),
                text="Ada Lovelace",
                font_family="Inter",
                font_size=20,
                fill="#ffffff",
                clip_ref="badge-bg",
            ),
        ),
    )


def stylesheet_for(family: str, *faces: str) -> str:
    """CSS estilo Google Fonts con una @font-face por URL."""
    blocks = []
    for i, url in enumerate(faces):
        blocks.append(
            "/* latin */\n"
            "@font-face {\n"
            f"  font-family: '{family}';\n"
            "  font-style: normal;\n"
            f"  font-weight: {400 + 100 * i};\n"
            "  font-display: swap;\n"
            f"  src: url({url}) format('woff2');\n"
            "  unicode-range: U+0000-00FF, U+0131;\n"
            "}\n"
        )
    return "".join(blocks)


class FakeFetcher:
    """Fetcher en memoria: URLs conocidas responden, el resto falla como la red."""

    def __init__(self, sheets: dict[str, str] | None = None, fonts: dict[str, bytes] | None = None) -> None:
        self.sheets = dict(sheets or {})
        self.fonts = dict(fonts or {})
        self.text_calls: list[str] = []
        self.bytes_calls: list[str] = []

    async def fetch_text(self, url: str) -> str:
        self.text_calls.append(url)
        if url not in self.sheets:
            raise FontFetchError(f"404 {url}")
        return self.sheets[url]

    async def fetch_bytes(self, url: str) -> tuple[bytes, str | None]:
        self.bytes_calls.append(url)
        if url not in self.fonts:
            raise FontFetchError(f"timeout {url}")
        return self.fonts[url], "font/woff2"
