from __future__ import annotations

from datetime import datetime
from typing import Sequence

from fpdf import FPDF
from fpdf.enums import MethodReturnValue, WrapMode, XPos, YPos

from . import pdf_styles as st
from .config import FOOTER_LABEL
from .fonts import FontAsset
from .md_nodes import (
    Blockquote,
    Bold,
    CodeBlock,
    CodeSpan,
    Heading,
    InlineSpan,
    Italic,
    Link,
    ListBlock,
    Node,
    PagePlan,
    Paragraph,
    ReportMeta,
    Section,
    Spacer,
    Table,
    ThematicBreak,
    spans_text,
)

# Words are only broken at spaces; nothing is ever hyphenated.
_WRAP = WrapMode.WORD

_ASCII_REPLACEMENTS = {
    chr(0x00A0): " ",
    chr(0x2007): " ",
    chr(0x2009): " ",
    chr(0x200B): "",
    "‐": "-",
    "‑": "-",
    "‒": "-",
    "–": "-",
    "—": "--",
    "―": "--",
    "−": "-",
    "…": "...",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "·": "*",
    "•": "*",
    "→": "->",
    "←": "<-",
}


def _needs_unicode(text: str) -> bool:
    if not text:
        return False
    return any(ord(ch) > 0x00FF for ch in text)


def _normalize_ascii(text: str) -> str:
    out = text
    for key, val in _ASCII_REPLACEMENTS.items():
        out = out.replace(key, val)
    return out


def _sanitize_pdf_text(text: str, *, allow_unicode: bool) -> str:
    if allow_unicode:
        return text
    cleaned = _normalize_ascii(text)
    return cleaned.encode("latin-1", "replace").decode("latin-1")


def format_created_at(value: str) -> str:
    """Render an ISO-8601 timestamp the way ko-KR locale strings look."""
    raw = str(value or "").strip()
    if not raw:
        return ""
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    meridiem = "오전" if dt.hour < 12 else "오후"
    hour = dt.hour % 12 or 12
    return f"{dt.year}. {dt.month}. {dt.day}. {meridiem} {hour}:{dt.minute:02d}:{dt.second:02d}"


def plan_pages(meta: ReportMeta, sections: Sequence[Section]) -> list[PagePlan]:
    """Assign every section to its own page; only the first carries the header bands.

    Empty input still yields one page: the header bands with an empty
    section. This is the only plan whose section may be empty.
    """
    if not sections:
        return [PagePlan(index=0, section=(), header=meta, show_score=meta.score is not None)]
    plans: list[PagePlan] = []
    for index, section in enumerate(sections):
        first = index == 0
        plans.append(
            PagePlan(
                index=index,
                section=tuple(section),
                header=meta if first else None,
                show_score=first and meta.score is not None,
            )
        )
    return plans


def render_pages(
    plans: Sequence[PagePlan],
    *,
    font: FontAsset | None,
    footer_label: str = FOOTER_LABEL,
) -> bytes:
    """Lay out the planned pages and return the PDF bytes.

    Footers are stamped with ``page / {nb}``; fpdf2 resolves the total page
    alias when the document is emitted, after every page exists. Without a
    font asset the core Helvetica face is used and text is reduced to
    Latin-1.
    """
    pdf = FPDF(orientation="P", unit="pt", format=st.PAGE_FORMAT)
    pdf.alias_nb_pages()
    pdf.set_margins(st.PAGE_PADDING, st.PAGE_PADDING, st.PAGE_PADDING)
    pdf.set_auto_page_break(auto=True, margin=st.PAGE_BOTTOM_MARGIN)

    if font is not None:
        font.add_to(pdf)
        body_face = font.family
        allow_unicode = True
    else:
        body_face = "Helvetica"
        allow_unicode = False

    meta = next((p.header for p in plans if p.header is not None), None)
    if meta is not None:
        pdf.set_title(_sanitize_pdf_text(meta.title, allow_unicode=allow_unicode))

    def safe(text: str, *, face: str | None = None) -> str:
        unicode_ok = allow_unicode and (face is None or face == body_face)
        return _sanitize_pdf_text(text, allow_unicode=unicode_ok)

    def set_text_color(color: str) -> None:
        pdf.set_text_color(*st.hex_rgb(color))

    # [rule_x, top_y] of every blockquote still being written.
    open_quotes: list[list[float]] = []

    def close_quote_rules(self: FPDF) -> None:
        bottom = self.h - self.b_margin
        for quote in open_quotes:
            if bottom > quote[1]:
                self.set_draw_color(*st.hex_rgb(st.BLOCKQUOTE_RULE_COLOR))
                self.set_line_width(st.BLOCKQUOTE_RULE_WIDTH)
                self.line(quote[0], quote[1], quote[0], bottom)
            quote[1] = self.t_margin

    def footer(self: FPDF) -> None:
        # Runs before every page break, so quotes spanning it get their rule here.
        close_quote_rules(self)
        line_y = self.h - st.FOOTER_BOTTOM - st.FOOTER_LINE_HEIGHT - st.FOOTER_PADDING_TOP
        self.set_draw_color(*st.hex_rgb(st.FOOTER_BORDER_COLOR))
        self.set_line_width(1)
        self.line(st.PAGE_PADDING, line_y, self.w - st.PAGE_PADDING, line_y)
        self.set_xy(st.PAGE_PADDING, line_y + st.FOOTER_PADDING_TOP)
        self.set_font(body_face, "", st.FOOTER_FONT_SIZE)
        self.set_text_color(*st.hex_rgb(st.FOOTER_COLOR))
        label = safe(f"{footer_label} | {self.page_no()} / {{nb}}")
        self.cell(self.w - 2 * st.PAGE_PADDING, st.FOOTER_LINE_HEIGHT, label, align="C")

    pdf.footer = footer.__get__(pdf, FPDF)

    def measure_lines(text: str, width: float, style: str, size: float, line_height: float) -> int:
        pdf.set_font(body_face, style, size)
        lines = pdf.multi_cell(
            width,
            line_height,
            safe(text),
            wrapmode=_WRAP,
            dry_run=True,
            output=MethodReturnValue.LINES,
        )
        return max(1, len(lines or []))

    def ensure_room(height: float) -> None:
        # A block taller than a whole page is left to the automatic break.
        if pdf.will_page_break(height) and pdf.get_y() > pdf.t_margin + 0.5:
            pdf.add_page()

    def write_spans(
        spans: Sequence[InlineSpan],
        *,
        size: float,
        line_height: float,
        color: str,
        bold: bool = False,
        italic: bool = False,
    ) -> None:
        for span in spans:
            text = span.text
            if not text:
                continue
            if text == "\n":
                pdf.ln(line_height)
                continue
            style = ""
            if bold or isinstance(span, Bold):
                style += "B"
            if italic or isinstance(span, Italic):
                style += "I"
            face = body_face
            span_size = size
            span_color = color
            link = ""
            if isinstance(span, CodeSpan):
                face = body_face if _needs_unicode(text) else st.MONO_FONT
                style = ""
                span_size = st.INLINE_CODE_SIZE
                span_color = st.INLINE_CODE_COLOR
            elif isinstance(span, Link):
                span_color = st.LINK_COLOR
                link = span.href
            pdf.set_font(face, style, span_size)
            set_text_color(span_color)
            pdf.write(line_height, safe(text, face=face), link=link)
        pdf.ln(line_height)

    def write_header_band(header: ReportMeta) -> None:
        width = pdf.epw
        title_style = st.HEADER_TITLE
        pdf.set_font(body_face, "B", title_style.font_size)
        set_text_color(title_style.color)
        pdf.multi_cell(
            width,
            title_style.font_size * title_style.line_height,
            safe(header.title),
            wrapmode=_WRAP,
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )
        pdf.ln(title_style.margin_bottom)
        sub_style = st.HEADER_SUBTITLE
        sub_lines: list[str] = []
        if header.subtitle:
            sub_lines.append(header.subtitle)
        if header.created_at:
            sub_lines.append(f"{st.CREATED_AT_LABEL}: {format_created_at(header.created_at)}")
        for line in sub_lines:
            pdf.set_font(body_face, "", sub_style.font_size)
            set_text_color(sub_style.color)
            pdf.multi_cell(
                width,
                sub_style.font_size * sub_style.line_height,
                safe(line),
                wrapmode=_WRAP,
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )
            pdf.ln(sub_style.margin_bottom)
        rule_y = pdf.get_y() + st.HEADER_PADDING_BOTTOM
        pdf.set_draw_color(*st.hex_rgb(st.HEADER_BORDER_COLOR))
        pdf.set_line_width(st.HEADER_BORDER_WIDTH)
        pdf.line(pdf.l_margin, rule_y, pdf.w - pdf.r_margin, rule_y)
        pdf.set_y(rule_y + st.HEADER_BORDER_WIDTH)
        pdf.ln(st.HEADER_MARGIN_BOTTOM)

    def write_score_box(score: int) -> None:
        parts = [
            (st.SCORE_LABEL_TEXT, st.SCORE_LABEL),
            (str(score), st.SCORE_VALUE),
            (st.SCORE_MAX_TEXT, st.SCORE_MAX),
        ]
        widths: list[float] = []
        for text, style in parts:
            pdf.set_font(body_face, "B" if style.bold else "", style.font_size)
            widths.append(pdf.get_string_width(safe(text)))
        total = sum(widths) + st.SCORE_LABEL_GAP
        box_h = st.SCORE_VALUE.font_size + 2 * st.SCORE_BOX_PADDING
        ensure_room(box_h)
        x = pdf.l_margin
        y = pdf.get_y()
        pdf.set_fill_color(*st.hex_rgb(st.SCORE_BOX_FILL))
        pdf.rect(x, y, pdf.epw, box_h, style="F", round_corners=True, corner_radius=st.SCORE_BOX_RADIUS)
        # Shared baseline, as the three parts are aligned on it.
        baseline = y + st.SCORE_BOX_PADDING + st.SCORE_VALUE.font_size * 0.8
        cursor = x + (pdf.epw - total) / 2
        for index, ((text, style), width) in enumerate(zip(parts, widths)):
            pdf.set_font(body_face, "B" if style.bold else "", style.font_size)
            set_text_color(style.color)
            pdf.text(cursor, baseline, safe(text))
            cursor += width
            if index == 0:
                cursor += st.SCORE_LABEL_GAP
        pdf.set_y(y + box_h)
        pdf.ln(st.SCORE_BOX_MARGIN_BOTTOM)

    def write_heading(node: Heading) -> None:
        style = st.heading_style(node.depth)
        line_height = style.font_size * style.line_height
        if pdf.get_y() > pdf.t_margin + 0.5:
            pdf.ln(style.margin_top)
        lines = measure_lines(spans_text(node.spans), pdf.epw, "B", style.font_size, line_height)
        block_h = lines * line_height + style.padding_bottom + style.border_bottom_width
        ensure_room(block_h)
        pdf.set_x(pdf.l_margin)
        write_spans(node.spans, size=style.font_size, line_height=line_height, color=style.color, bold=True)
        if style.border_bottom_width:
            rule_y = pdf.get_y() + style.padding_bottom
            pdf.set_draw_color(*st.hex_rgb(style.border_bottom_color))
            pdf.set_line_width(style.border_bottom_width)
            pdf.line(pdf.l_margin, rule_y, pdf.w - pdf.r_margin, rule_y)
            pdf.set_y(rule_y + style.border_bottom_width)
        pdf.ln(style.margin_bottom)

    def write_paragraph(node: Paragraph, *, italic: bool, color: str) -> None:
        style = st.PARAGRAPH
        line_height = style.font_size * style.line_height
        pdf.set_x(pdf.l_margin)
        if node.spans:
            write_spans(node.spans, size=style.font_size, line_height=line_height, color=color, italic=italic)
        pdf.ln(style.margin_bottom)

    def write_list(node: ListBlock, *, italic: bool, color: str) -> None:
        style = st.LIST_TEXT
        line_height = style.font_size * style.line_height
        for index, item in enumerate(node.items):
            marker = f"{index + 1}." if node.ordered else st.BULLET
            marker_x = pdf.l_margin + st.LIST_ITEM_PADDING_LEFT
            text_x = marker_x + st.LIST_MARKER_WIDTH
            text_w = pdf.w - pdf.r_margin - text_x
            lines = measure_lines(spans_text(item.spans), text_w, "", style.font_size, line_height)
            ensure_room(lines * line_height)
            y = pdf.get_y()
            pdf.set_font(body_face, "", style.font_size)
            set_text_color(color)
            pdf.set_xy(marker_x, y)
            pdf.cell(st.LIST_MARKER_WIDTH, line_height, safe(marker))
            prev_left = pdf.l_margin
            pdf.set_left_margin(text_x)
            pdf.set_xy(text_x, y)
            write_spans(item.spans, size=style.font_size, line_height=line_height, color=color, italic=italic)
            pdf.set_left_margin(prev_left)
            pdf.set_x(prev_left)
            pdf.ln(st.LIST_ITEM_MARGIN_BOTTOM)

    def write_code_block(node: CodeBlock) -> None:
        style = st.CODE_BLOCK
        text = node.text or " "
        face = body_face if _needs_unicode(text) else st.MONO_FONT
        pdf.ln(st.CODE_BLOCK_MARGIN)
        pdf.set_font(face, "", style.font_size)
        set_text_color(st.TEXT_COLOR)
        pdf.set_fill_color(*st.hex_rgb(st.CODE_BLOCK_FILL))
        pdf.set_draw_color(*st.hex_rgb(st.CODE_BLOCK_BORDER_COLOR))
        pdf.set_line_width(st.CODE_BLOCK_BORDER_WIDTH)
        pdf.set_x(pdf.l_margin)
        pdf.multi_cell(
            pdf.epw,
            style.font_size * style.line_height,
            safe(text, face=face),
            border=1,
            fill=True,
            padding=st.CODE_BLOCK_PADDING,
            wrapmode=_WRAP,
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )
        pdf.ln(st.CODE_BLOCK_MARGIN)

    def write_blockquote(node: Blockquote) -> None:
        pdf.ln(st.BLOCKQUOTE_MARGIN)
        prev_left = pdf.l_margin
        quote = [prev_left + st.BLOCKQUOTE_RULE_WIDTH / 2, pdf.get_y()]
        open_quotes.append(quote)
        pdf.set_left_margin(prev_left + st.BLOCKQUOTE_RULE_WIDTH + st.BLOCKQUOTE_PADDING_LEFT)
        pdf.set_x(pdf.l_margin)
        for child in node.children:
            write_node(child, italic=True, color=st.BLOCKQUOTE_COLOR)
        open_quotes.pop()
        pdf.set_left_margin(prev_left)
        pdf.set_x(prev_left)
        end_y = pdf.get_y()
        # Earlier pages were ruled by the footer; this is the last segment.
        if end_y > quote[1]:
            pdf.set_draw_color(*st.hex_rgb(st.BLOCKQUOTE_RULE_COLOR))
            pdf.set_line_width(st.BLOCKQUOTE_RULE_WIDTH)
            pdf.line(quote[0], quote[1], quote[0], end_y)
        pdf.ln(st.BLOCKQUOTE_MARGIN)

    def write_hr() -> None:
        pdf.ln(st.HR_MARGIN)
        y = pdf.get_y()
        pdf.set_draw_color(*st.hex_rgb(st.HR_COLOR))
        pdf.set_line_width(st.HR_WIDTH)
        pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
        pdf.set_y(y + st.HR_WIDTH)
        pdf.ln(st.HR_MARGIN)

    def write_table(node: Table) -> None:
        cols = max([len(node.header)] + [len(r) for r in node.rows])
        if cols == 0:
            return
        pdf.ln(st.TABLE_MARGIN)
        col_w = pdf.epw / cols
        pad = st.TABLE_CELL_PADDING
        inner_w = col_w - 2 * pad
        rows: list[tuple[list[str], bool]] = []
        if node.header:
            rows.append((list(node.header), True))
        rows.extend((list(r), False) for r in node.rows)

        first_row = True
        for cells, is_header in rows:
            cells = cells + [""] * (cols - len(cells))
            style = st.TABLE_CELL_HEADER if is_header else st.TABLE_CELL
            font_style = "B" if style.bold else ""
            line_height = style.font_size * style.line_height
            max_lines = max(
                measure_lines(cell, inner_w, font_style, style.font_size, line_height) for cell in cells
            )
            row_h = max_lines * line_height + 2 * pad
            page_before = pdf.page_no()
            ensure_room(row_h)
            x0 = pdf.l_margin
            y = pdf.get_y()
            if is_header:
                pdf.set_fill_color(*st.hex_rgb(st.TABLE_HEADER_FILL))
                pdf.rect(x0, y, pdf.epw, row_h, style="F")

            pdf.set_font(body_face, font_style, style.font_size)
            set_text_color(st.TEXT_COLOR)
            for c_index, cell in enumerate(cells):
                pdf.set_xy(x0 + c_index * col_w + pad, y + pad)
                pdf.multi_cell(inner_w, line_height, safe(cell), wrapmode=_WRAP)

            pdf.set_draw_color(*st.hex_rgb(st.TABLE_BORDER_COLOR))
            pdf.set_line_width(st.TABLE_ROW_BORDER_WIDTH)
            if first_row or pdf.page_no() != page_before:
                pdf.line(x0, y, x0 + pdf.epw, y)
            pdf.line(x0, y, x0, y + row_h)
            pdf.line(x0 + pdf.epw, y, x0 + pdf.epw, y + row_h)
            if is_header:
                pdf.set_draw_color(*st.hex_rgb(st.TABLE_HEADER_BORDER_COLOR))
                pdf.set_line_width(st.TABLE_HEADER_BORDER_WIDTH)
            pdf.line(x0, y + row_h, x0 + pdf.epw, y + row_h)
            pdf.set_xy(x0, y + row_h)
            first_row = False
        pdf.ln(st.TABLE_MARGIN)

    def write_node(node: Node, *, italic: bool = False, color: str = st.TEXT_COLOR) -> None:
        if isinstance(node, Heading):
            write_heading(node)
        elif isinstance(node, Paragraph):
            write_paragraph(node, italic=italic, color=color)
        elif isinstance(node, ListBlock):
            write_list(node, italic=italic, color=color)
        elif isinstance(node, CodeBlock):
            write_code_block(node)
        elif isinstance(node, Blockquote):
            write_blockquote(node)
        elif isinstance(node, ThematicBreak):
            write_hr()
        elif isinstance(node, Table):
            write_table(node)
        elif isinstance(node, Spacer):
            pdf.ln(st.SPACER_HEIGHT)

    for plan in plans:
        pdf.add_page()
        if plan.header is not None:
            write_header_band(plan.header)
            if plan.show_score and plan.header.score is not None:
                write_score_box(plan.header.score)
        for node in plan.section:
            write_node(node)

    return bytes(pdf.output())
