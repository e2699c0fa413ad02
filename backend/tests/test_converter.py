import asyncio
import glob
import os
import shutil
from pathlib import Path

import pytest

from feedback_pdf import converter, fonts
from feedback_pdf.fonts import BOLD_FILE, REGULAR_FILE, FontResolutionError

# Any TrueType pair will do; the bundled Korean faces are not shipped with the repo.
_FONT_GLOBS = (
    "/usr/share/fonts/**/*.ttf",
    "/usr/local/share/fonts/**/*.ttf",
    "/Library/Fonts/*.ttf",
    str(Path.home() / ".fonts" / "**" / "*.ttf"),
    str(Path.home() / ".rbenv/versions/*/lib/ruby/*/rdoc/generator/template/darkfish/fonts/*.ttf"),
)

DOC = """# Heading with *slant*

Body with **bold**, *italic*, `code` and [a link](https://example.com).

- first item
- 2024. marker-shaped item

> Quoted **bold** text

| Name | Score |
|---|---|
| alpha | 90 |

```
print("hi")
```
"""


def _system_font_pair() -> tuple[str, str]:
    patterns = list(_FONT_GLOBS)
    extra = os.getenv("FEEDBACK_PDF_TEST_FONT_DIR")
    if extra:
        patterns.insert(0, str(Path(extra) / "*.ttf"))
    candidates: list[str] = []
    for pattern in patterns:
        candidates.extend(sorted(glob.glob(pattern, recursive=True)))
    upright = [p for p in candidates if "italic" not in Path(p).name.lower() and "emoji" not in Path(p).name.lower()]
    regular = [p for p in upright if "bold" not in Path(p).name.lower()]
    if not regular:
        pytest.skip("no TrueType font available on this machine")
    preferred = [p for p in regular if "regular" in Path(p).name.lower()] or regular
    bold = [p for p in upright if "bold" in Path(p).name.lower()] or preferred
    return preferred[0], bold[0]


async def _no_font():
    return None


def test_md_to_pdf_returns_pdf_bytes(monkeypatch):
    monkeypatch.setattr(converter, "register_fonts_async", _no_font)
    pdf_bytes = asyncio.run(
        converter.md_to_pdf(
            "# 제목\n\n본문 **굵게** 입니다.\n\n- 하나\n- 둘",
            title="Report",
            score=88,
            created_at="2024-03-05T14:07:09",
        )
    )
    assert pdf_bytes.startswith(b"%PDF")


def test_md_to_pdf_handles_empty_markdown(monkeypatch):
    monkeypatch.setattr(converter, "register_fonts_async", _no_font)
    pdf_bytes = asyncio.run(converter.md_to_pdf(""))
    assert pdf_bytes.startswith(b"%PDF")


def test_default_title_is_applied(monkeypatch):
    seen = {}

    def fake_render(plans, *, font, footer_label):
        seen["plans"] = plans
        return b"%PDF-fake"

    monkeypatch.setattr(converter, "register_fonts_async", _no_font)
    monkeypatch.setattr(converter, "render_pages", fake_render)
    asyncio.run(converter.md_to_pdf("Hello", title="   ", subtitle=""))
    header = seen["plans"][0].header
    assert header.title == converter.DEFAULT_TITLE
    assert header.subtitle is None


def test_font_failure_aborts_before_rendering(monkeypatch):
    async def failing():
        raise FontResolutionError("Font download failed: regular=200, bold=404")

    def fake_render(*args, **kwargs):
        raise AssertionError("render must not run without fonts")

    monkeypatch.setattr(converter, "register_fonts_async", failing)
    monkeypatch.setattr(converter, "render_pages", fake_render)
    with pytest.raises(FontResolutionError, match="bold=404"):
        asyncio.run(converter.md_to_pdf("# Title\n\nHello"))


def test_md_to_pdf_embeds_the_resolved_font(isolated_fonts):
    regular, bold = _system_font_pair()
    local_dir, _ = isolated_fonts
    local_dir.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(regular, local_dir / REGULAR_FILE)
    shutil.copyfile(bold, local_dir / BOLD_FILE)

    pdf_bytes = asyncio.run(
        converter.md_to_pdf(
            DOC,
            title="Report",
            subtitle="Weekly review",
            score=50,
            created_at="2024-03-05T14:07:09",
            footer_label="Feedback report",
        )
    )
    assert pdf_bytes.startswith(b"%PDF")
    assert b"/FontFile2" in pdf_bytes
    assert fonts.registered_font().source == "local"
