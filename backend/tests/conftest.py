from __future__ import annotations

import asyncio

import pytest

from feedback_pdf import fonts


@pytest.fixture(autouse=True)
def isolated_fonts(monkeypatch, tmp_path):
    local_dir = tmp_path / "bundled-fonts"
    cache_dir = tmp_path / "pdf-fonts"
    monkeypatch.setattr(fonts, "FONT_DIR", local_dir)
    monkeypatch.setattr(fonts, "FONT_CACHE_DIR", cache_dir)
    monkeypatch.setattr(fonts, "_registered_font", None)
    monkeypatch.setattr(fonts, "_register_lock", asyncio.Lock())
    monkeypatch.setenv("FEEDBACK_PDF_APP_URL", "https://fonts.example.test")
    return local_dir, cache_dir
