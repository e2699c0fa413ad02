from __future__ import annotations

from dataclasses import dataclass

# All sizes are in PDF points (the renderer runs FPDF with unit="pt").

RGB = tuple[int, int, int]


def hex_rgb(value: str) -> RGB:
    raw = value.lstrip("#")
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    return int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16)


@dataclass(frozen=True)
class TextStyle:
    font_size: float
    color: str = "#1a1a2e"
    bold: bool = False
    line_height: float = 1.6
    margin_top: float = 0.0
    margin_bottom: float = 0.0
    border_bottom_width: float = 0.0
    border_bottom_color: str = "#000000"
    padding_bottom: float = 0.0


PAGE_FORMAT = "A4"
PAGE_PADDING = 40.0
TEXT_COLOR = "#1a1a2e"
# Bottom margin keeps body text clear of the footer band.
PAGE_BOTTOM_MARGIN = 48.0

HEADER_TITLE = TextStyle(font_size=22, bold=True, color="#a855f7", margin_bottom=4, line_height=1.3)
HEADER_SUBTITLE = TextStyle(font_size=12, color="#666666", margin_bottom=2, line_height=1.4)
HEADER_PADDING_BOTTOM = 16.0
HEADER_BORDER_WIDTH = 2.0
HEADER_BORDER_COLOR = "#a855f7"
HEADER_MARGIN_BOTTOM = 24.0
CREATED_AT_LABEL = "생성일"

SCORE_BOX_FILL = "#f3e8ff"
SCORE_BOX_RADIUS = 8.0
SCORE_BOX_PADDING = 16.0
SCORE_BOX_MARGIN_BOTTOM = 20.0
SCORE_LABEL = TextStyle(font_size=14, color="#7c3aed")
SCORE_LABEL_GAP = 8.0
SCORE_VALUE = TextStyle(font_size=28, bold=True, color="#7c3aed")
SCORE_MAX = TextStyle(font_size=14, color="#9ca3af")
SCORE_LABEL_TEXT = "총점"
SCORE_MAX_TEXT = " / 100"

H1 = TextStyle(
    font_size=20,
    bold=True,
    margin_top=16,
    margin_bottom=12,
    color="#1a1a2e",
    border_bottom_width=2,
    border_bottom_color="#1a1a2e",
    padding_bottom=4,
    line_height=1.3,
)
H2 = TextStyle(
    font_size=16,
    bold=True,
    margin_top=14,
    margin_bottom=8,
    color="#16213e",
    border_bottom_width=1,
    border_bottom_color="#e0e0e0",
    padding_bottom=3,
    line_height=1.3,
)
H3 = TextStyle(font_size=13, bold=True, margin_top=10, margin_bottom=6, color="#0f3460", line_height=1.3)
H4 = TextStyle(font_size=11, bold=True, margin_top=8, margin_bottom=4, color="#533483", line_height=1.3)

HEADING_STYLES: dict[int, TextStyle] = {1: H1, 2: H2, 3: H3, 4: H4}


def heading_style(depth: int) -> TextStyle:
    # Depth 5 and 6 share the depth-4 look.
    if depth <= 3:
        return HEADING_STYLES.get(depth, H1)
    return H4


PARAGRAPH = TextStyle(font_size=10, margin_bottom=4, line_height=1.6)

INLINE_CODE_SIZE = 9.0
INLINE_CODE_COLOR = "#e74c3c"
LINK_COLOR = "#2563eb"

LIST_ITEM_MARGIN_BOTTOM = 3.0
LIST_ITEM_PADDING_LEFT = 10.0
LIST_MARKER_WIDTH = 15.0
LIST_TEXT = TextStyle(font_size=10, line_height=1.5)
BULLET = "•"

CODE_BLOCK = TextStyle(font_size=9, line_height=1.4)
CODE_BLOCK_FILL = "#f5f5f5"
CODE_BLOCK_PADDING = 8.0
CODE_BLOCK_MARGIN = 4.0
CODE_BLOCK_BORDER_COLOR = "#e0e0e0"
CODE_BLOCK_BORDER_WIDTH = 1.0
MONO_FONT = "Courier"

HR_COLOR = "#cccccc"
HR_WIDTH = 1.0
HR_MARGIN = 10.0

BLOCKQUOTE_RULE_WIDTH = 3.0
BLOCKQUOTE_RULE_COLOR = "#533483"
BLOCKQUOTE_PADDING_LEFT = 10.0
BLOCKQUOTE_MARGIN = 6.0
BLOCKQUOTE_COLOR = "#555555"

TABLE_MARGIN = 6.0
TABLE_BORDER_COLOR = "#dddddd"
TABLE_HEADER_FILL = "#f0f0f0"
TABLE_HEADER_BORDER_WIDTH = 2.0
TABLE_HEADER_BORDER_COLOR = "#999999"
TABLE_ROW_BORDER_WIDTH = 1.0
TABLE_CELL_PADDING = 4.0
TABLE_CELL = TextStyle(font_size=9, line_height=1.4)
TABLE_CELL_HEADER = TextStyle(font_size=9, bold=True, line_height=1.4)

SPACER_HEIGHT = 4.0

FOOTER_FONT_SIZE = 8.0
FOOTER_COLOR = "#9ca3af"
FOOTER_BORDER_COLOR = "#e5e7eb"
FOOTER_BOTTOM = 24.0
FOOTER_PADDING_TOP = 8.0
FOOTER_LINE_HEIGHT = 10.0
