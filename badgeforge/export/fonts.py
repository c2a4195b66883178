# File: badgeforge/export/fonts.py
# Project: BadgeForge (BF)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-08
# Purpose: FontEmbedder: @import url(...) -> @font-face con src en data: URI (base64).
# Notes:
# - Best-effort POR FUENTE: lo que falla conserva su @import original; nunca bloquea el export.
# - Stylesheets y binarios se piden en paralelo (asyncio.gather); binarios cacheados por URL.
# - El fetcher es inyectable (tests sin red). Default: aiohttp.ClientSession.
from __future__ import annotations

import asyncio
import base64
import logging
import re
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Protocol
from urllib.parse import urljoin

import aiohttp

from badgeforge.utils.errors import FontFetchError

log = logging.getLogger(__name__)

# Con UA de navegador moderno, Google Fonts responde WOFF2.
BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

_IMPORT_RE = re.compile(
    r"""@import\s+(?:url\(\s*(['"]?)(?P<u1>[^)'"]+)\1\s*\)|(['"])(?P<u2>[^'"]+)\3)[^;]*;?""",
    re.IGNORECASE,
)
_FONT_FACE_RE = re.compile(r"@font-face\s*\{([^}]*)\}", re.IGNORECASE)
_SRC_DECL_RE = re.compile(r"(?<![\w-])src\s*:\s*([^;]+);?", re.IGNORECASE)
_SRC_URL_RE = re.compile(
    r"""url\(\s*(['"]?)(?P<url>[^)'"]+)\1\s*\)(?:\s*format\(\s*['"]?(?P<fmt>[^)'"]+)['"]?\s*\))?""",
    re.IGNORECASE,
)

_FORMAT_MIME = {
    "woff2": "font/woff2",
    "woff": "font/woff",
    "truetype": "font/ttf",
    "opentype": "font/otf",
}

# LRU por URL: data: URI ya armado. Acotado para exports repetidos en un mismo proceso.
FONT_CACHE_MAX_ENTRIES = 64
_FONT_CACHE: "OrderedDict[str, str]" = OrderedDict()


def clear_font_cache() -> None:
    _FONT_CACHE.clear()


def _cache_get(url: str) -> Optional[str]:
    uri = _FONT_CACHE.get(url)
    if uri is not None:
        _FONT_CACHE.move_to_end(url)
    return uri


def _cache_put(url: str, uri: str) -> None:
    _FONT_CACHE[url] = uri
    _FONT_CACHE.move_to_end(url)
    while len(_FONT_CACHE) > max(1, FONT_CACHE_MAX_ENTRIES):
        evicted, _ = _FONT_CACHE.popitem(last=False)
        log.debug("Cache de fuentes lleno: se descarta %s", evicted)


def font_cache_size() -> int:
    return len(_FONT_CACHE)


# ----------------------------
# Fetchers
# ----------------------------

class FontFetcher(Protocol):
    async def fetch_text(self, url: str) -> str: ...

    async def fetch_bytes(self, url: str) -> tuple[bytes, Optional[str]]: ...


class AiohttpFontFetcher:
    def __init__(self, session: aiohttp.ClientSession) -> None:
        self._session = session

    async def fetch_text(self, url: str) -> str:
        try:
            async with self._session.get(url) as response:
                response.raise_for_status()
                return await response.text()
        except Exception as e:
            raise FontFetchError(f"No se pudo descargar stylesheet {url}: {type(e).__name__}") from e

    async def fetch_bytes(self, url: str) -> tuple[bytes, Optional[str]]:
        try:
            async with self._session.get(url) as response:
                response.raise_for_status()
                data = await response.read()
                return data, response.headers.get("Content-Type")
        except Exception as e:
            raise FontFetchError(f"No se pudo descargar fuente {url}: {type(e).__name__}") from e


# ----------------------------
# Parsing CSS
# ----------------------------

@dataclass(frozen=True)
class ImportRef:
    statement: str
    url: str


@dataclass(frozen=True)
class FontFaceRule:
    body: str
    url: str
    format: Optional[str]

    def descriptors(self) -> str:
        """Declaraciones del bloque salvo src (weight, style, unicode-range, ...)."""
        rest = _SRC_DECL_RE.sub("", self.body)
        decls = [d.strip() for d in rest.split(";") if d.strip()]
        return ";\n  ".join(decls)


def extract_imports(css: str) -> list[ImportRef]:
    out: list[ImportRef] = []
    for m in _IMPORT_RE.finditer(css or ""):
        url = (m.group("u1") or m.group("u2") or "").strip()
        if url:
            out.append(ImportRef(m.group(0), url))
    return out


def extract_font_faces(css: str, base_url: str = "") -> list[FontFaceRule]:
    out: list[FontFaceRule] = []
    for m in _FONT_FACE_RE.finditer(css or ""):
        body = m.group(1)
        src = _SRC_DECL_RE.search(body)
        if not src:
            continue
        um = _SRC_URL_RE.search(src.group(1))
        if not um:
            continue
        url = um.group("url").strip()
        if url.startswith("data:"):
            continue
        out.append(FontFaceRule(body=body, url=urljoin(base_url, url), format=um.group("fmt")))
    return out


def _mime_for(fmt: Optional[str], content_type: Optional[str], url: str) -> str:
    if content_type and content_type.split(";", 1)[0].strip().startswith(("font/", "application/font")):
        return content_type.split(";", 1)[0].strip()
    if fmt and fmt.lower() in _FORMAT_MIME:
        return _FORMAT_MIME[fmt.lower()]
    ext = url.rsplit("?", 1)[0].rsplit(".", 1)[-1].lower()
    return {"woff2": "font/woff2", "woff": "font/woff", "ttf": "font/ttf", "otf": "font/otf"}.get(ext, "font/woff2")


def font_face_css(rule: FontFaceRule, data_uri: str) -> str:
    fmt = f" format('{rule.format}')" if rule.format else ""
    desc = rule.descriptors()
    desc = f"  {desc};\n" if desc else ""
    return f"@font-face {{\n{desc}  src: url('{data_uri}'){fmt};\n}}"


# ----------------------------
# Embedder
# ----------------------------

class FontEmbedder:
    def __init__(self, fetcher: Optional[FontFetcher] = None, *, timeout_s: float = 10.0) -> None:
        self._fetcher = fetcher
        self.timeout_s = float(timeout_s)

    @asynccontextmanager
    async def _open_fetcher(self) -> AsyncIterator[FontFetcher]:
        if self._fetcher is not None:
            yield self._fetcher
            return
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        async with aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": BROWSER_UA}) as session:
            yield AiohttpFontFetcher(session)

    async def _data_uri(self, fetcher: FontFetcher, rule: FontFaceRule) -> str:
        cached = _cache_get(rule.url)
        if cached:
            return cached
        data, content_type = await fetcher.fetch_bytes(rule.url)
        if not data:
            raise FontFetchError(f"Fuente vacía: {rule.url}")
        uri = f"data:{_mime_for(rule.format, content_type, rule.url)};base64,{base64.b64encode(data).decode('ascii')}"
        _cache_put(rule.url, uri)
        return uri

    async def _embed_import(self, fetcher: FontFetcher, ref: ImportRef) -> Optional[str]:
        """CSS de @font-face embebidos para un @import, o None si no se pudo nada."""
        try:
            sheet = await fetcher.fetch_text(ref.url)
        except Exception as e:
            log.warning("Fuente no embebida (se conserva @import): %s", e)
            return None

        rules = extract_font_faces(sheet, ref.url)
        if not rules:
            log.warning("Stylesheet sin @font-face utilizables: %s", ref.url)
            return None

        results = await asyncio.gather(*(self._data_uri(fetcher, r) for r in rules), return_exceptions=True)
        faces: list[str] = []
        for rule, res in zip(rules, results):
            if isinstance(res, Exception):
                log.warning("Cara de fuente omitida (%s): %s", rule.url, res)
                continue
            faces.append(font_face_css(rule, res))

        if not faces:
            return None
        log.debug("Fuente embebida: %s (%d caras)", ref.url, len(faces))
        return "\n".join(faces)

    async def embed(self, css: str) -> str:
        """Reemplaza cada @import por sus @font-face embebidos (los que fallan quedan igual)."""
        refs = extract_imports(css)
        if not refs:
            return css

        async with self._open_fetcher() as fetcher:
            blocks = await asyncio.gather(*(self._embed_import(fetcher, r) for r in refs))

        out = css
        for ref, block in zip(refs, blocks):
            if block:
                out = out.replace(ref.statement, block, 1)
        return out
