import inspect
from dataclasses import fields

from feedback_pdf import pdf_render, pdf_styles
from feedback_pdf.pdf_styles import H1, H2, H3, H4, TextStyle, heading_style, hex_rgb

# Names consumed inside pdf_styles itself rather than by the renderer.
_INTERNAL_NAMES = {"RGB", "HEADING_STYLES", "H1", "H2", "H3", "H4"}


def test_depth_five_and_six_reuse_depth_four_style():
    assert heading_style(5) is heading_style(4)
    assert heading_style(6) is heading_style(4)
    assert heading_style(4) is H4


def test_depths_one_to_four_are_distinct():
    styles = [heading_style(d) for d in (1, 2, 3, 4)]
    assert styles == [H1, H2, H3, H4]
    assert len({(s.font_size, s.border_bottom_width, s.color) for s in styles}) == 4


def test_only_top_two_headings_have_bottom_border():
    assert H1.border_bottom_width == 2
    assert H2.border_bottom_width == 1
    assert H3.border_bottom_width == 0
    assert H4.border_bottom_width == 0


def test_hex_rgb():
    assert hex_rgb("#a855f7") == (168, 85, 247)
    assert hex_rgb("#ccc") == (204, 204, 204)


def test_every_style_constant_is_used_by_the_renderer():
    source = inspect.getsource(pdf_render)
    names = [n for n in vars(pdf_styles) if n.isupper() and n not in _INTERNAL_NAMES]
    assert [n for n in names if f"st.{n}" not in source] == []


def test_every_text_style_field_is_read_by_the_renderer():
    source = inspect.getsource(pdf_render)
    assert [f.name for f in fields(TextStyle) if f".{f.name}" not in source] == []
