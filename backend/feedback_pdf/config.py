from __future__ import annotations

import os
import tempfile
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


REPO_ROOT = _repo_root()

FONT_DIR = Path(os.getenv("FEEDBACK_PDF_FONT_DIR", str(REPO_ROOT / "backend" / "assets" / "fonts")))
FONT_CACHE_DIR = Path(os.getenv("FEEDBACK_PDF_FONT_CACHE_DIR", str(Path(tempfile.gettempdir()) / "pdf-fonts")))
FONT_FETCH_TIMEOUT_S = float(os.getenv("FEEDBACK_PDF_FONT_TIMEOUT_S", "20"))

# Used when neither an explicit app URL nor a platform deployment URL is set.
FALLBACK_APP_URL = "https://sales-funnelbank.vercel.app"

DEFAULT_TITLE = "AI 피드백 리포트"
FOOTER_LABEL = os.getenv("FEEDBACK_PDF_FOOTER_LABEL", "마그네틱 세일즈 마스터클래스 | AI 피드백 리포트")

LOG_LEVEL = os.getenv("FEEDBACK_PDF_LOG_LEVEL", "INFO")


def app_base_url() -> str:
    explicit = (os.getenv("FEEDBACK_PDF_APP_URL") or "").strip()
    if explicit:
        return explicit.rstrip("/")
    production = (os.getenv("VERCEL_PROJECT_PRODUCTION_URL") or "").strip()
    if production:
        return f"https://{production}".rstrip("/")
    preview = (os.getenv("VERCEL_URL") or "").strip()
    if preview:
        return f"https://{preview}".rstrip("/")
    return FALLBACK_APP_URL
