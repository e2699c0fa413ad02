from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import httpx
from fpdf import FPDF

from .config import FONT_CACHE_DIR, FONT_DIR, FONT_FETCH_TIMEOUT_S, app_base_url
from .logging_utils import get_logger

log = get_logger(__name__)

FONT_FAMILY = "NotoSansKR"
REGULAR_FILE = "NotoSansKR-Regular.ttf"
BOLD_FILE = "NotoSansKR-Bold.ttf"


class FontResolutionError(RuntimeError):
    pass


@dataclass(frozen=True)
class FontAsset:
    family: str
    regular: Path
    bold: Path
    source: str

    def add_to(self, pdf: FPDF) -> None:
        # There is no italic cut; slanted styles reuse the upright files.
        pdf.add_font(self.family, style="", fname=str(self.regular))
        pdf.add_font(self.family, style="I", fname=str(self.regular))
        pdf.add_font(self.family, style="B", fname=str(self.bold))
        pdf.add_font(self.family, style="BI", fname=str(self.bold))


# Process-wide state: set once, never cleared. The lock only guards the async
# resolution path; concurrent threads each running their own event loop are
# not supported.
_registered_font: FontAsset | None = None
_register_lock = asyncio.Lock()


def registered_font() -> FontAsset | None:
    return _registered_font


def fonts_registered() -> bool:
    return _registered_font is not None


def _existing_pair(directory: Path, source: str) -> FontAsset | None:
    regular = directory / REGULAR_FILE
    bold = directory / BOLD_FILE
    if regular.is_file() and bold.is_file():
        return FontAsset(family=FONT_FAMILY, regular=regular, bold=bold, source=source)
    return None


def _do_register(asset: FontAsset) -> FontAsset:
    global _registered_font
    if _registered_font is not None:
        return _registered_font
    _registered_font = asset
    log.info("Fonts registered successfully (%s, source=%s)", asset.family, asset.source)
    return asset


def register_fonts() -> FontAsset | None:
    """Register bundled fonts when present. Never touches the network."""
    if _registered_font is not None:
        return _registered_font
    asset = _existing_pair(FONT_DIR, "local")
    if asset is None:
        return None
    return _do_register(asset)


async def _download_fonts(
    base_url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout_s: float = FONT_FETCH_TIMEOUT_S,
) -> tuple[bytes, bytes]:
    regular_url = f"{base_url}/fonts/{REGULAR_FILE}"
    bold_url = f"{base_url}/fonts/{BOLD_FILE}"
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout_s), transport=transport, follow_redirects=True) as client:
        try:
            regular_resp, bold_resp = await asyncio.gather(client.get(regular_url), client.get(bold_url))
        except httpx.TimeoutException as e:
            raise FontResolutionError(f"Font download timed out after {timeout_s:.1f}s ({type(e).__name__}).") from e
        except httpx.HTTPError as e:
            msg = str(e).strip() or repr(e)
            raise FontResolutionError(f"Font download failed ({type(e).__name__}): {msg}") from e

    if not regular_resp.is_success or not bold_resp.is_success:
        raise FontResolutionError(
            f"Font download failed: regular={regular_resp.status_code}, bold={bold_resp.status_code}"
        )
    if not regular_resp.content or not bold_resp.content:
        raise FontResolutionError(
            f"Font download returned an empty payload: regular={len(regular_resp.content)}B, bold={len(bold_resp.content)}B"
        )
    return regular_resp.content, bold_resp.content


async def register_fonts_async(*, transport: httpx.AsyncBaseTransport | None = None) -> FontAsset:
    """Resolve the Korean font pair and register it once per process.

    Bundled files win, then the temp-dir cache of an earlier download, then
    both weights are fetched from ``<base>/fonts/``. Either fetch failing
    fails the whole resolution; nothing is cached in that case.
    """
    if _registered_font is not None:
        return _registered_font

    async with _register_lock:
        if _registered_font is not None:
            return _registered_font

        asset = _existing_pair(FONT_DIR, "local") or _existing_pair(FONT_CACHE_DIR, "cache")
        if asset is not None:
            return _do_register(asset)

        base_url = app_base_url()
        log.warning("Downloading fonts from %s/fonts/ -> %s", base_url, FONT_CACHE_DIR)
        regular_bytes, bold_bytes = await _download_fonts(base_url, transport=transport)

        FONT_CACHE_DIR.mkdir(parents=True, exist_ok=True)
        regular_path = FONT_CACHE_DIR / REGULAR_FILE
        bold_path = FONT_CACHE_DIR / BOLD_FILE
        regular_path.write_bytes(regular_bytes)
        bold_path.write_bytes(bold_bytes)
        log.warning("Saved fonts: regular=%dB, bold=%dB", len(regular_bytes), len(bold_bytes))

        return _do_register(FontAsset(family=FONT_FAMILY, regular=regular_path, bold=bold_path, source="remote"))
