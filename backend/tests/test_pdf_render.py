import re

from fpdf import FPDF

from feedback_pdf import pdf_styles as st
from feedback_pdf.md_nodes import (
    Blockquote,
    Bold,
    CodeBlock,
    CodeSpan,
    Heading,
    Italic,
    Link,
    ListBlock,
    ListItem,
    Paragraph,
    ReportMeta,
    Spacer,
    Table,
    Text,
    ThematicBreak,
)
from feedback_pdf.md_parser import parse_md
from feedback_pdf.paginate import split_into_sections
from feedback_pdf.pdf_render import (
    _sanitize_pdf_text,
    format_created_at,
    plan_pages,
    render_pages,
)


def _page_count(pdf_bytes: bytes) -> int:
    match = re.search(rb"/Count (\d+)", pdf_bytes)
    assert match is not None
    return int(match.group(1))


def test_format_created_at_afternoon():
    assert format_created_at("2024-03-05T14:07:09") == "2024. 3. 5. 오후 2:07:09"


def test_format_created_at_morning_and_midnight():
    assert format_created_at("2024-11-20T09:05:03") == "2024. 11. 20. 오전 9:05:03"
    assert format_created_at("2024-11-20T00:30:00") == "2024. 11. 20. 오전 12:30:00"


def test_format_created_at_keeps_unparseable_input():
    assert format_created_at("last tuesday") == "last tuesday"
    assert format_created_at("") == ""


def test_plan_single_section_has_header_without_score():
    meta = ReportMeta(title="Title")
    sections = split_into_sections(parse_md("# Title\n\nHello"))
    plans = plan_pages(meta, sections)
    assert len(plans) == 1
    assert plans[0].header == meta
    assert plans[0].show_score is False


def test_only_first_page_carries_header_and_score():
    meta = ReportMeta(title="Report", subtitle="sub", score=87, created_at="2024-03-05T14:07:09")
    sections = split_into_sections(parse_md("# A\n\none\n\n# B\n\ntwo\n\n## C\n\nthree"))
    plans = plan_pages(meta, sections)
    assert [p.index for p in plans] == [0, 1, 2]
    assert plans[0].header == meta and plans[0].show_score is True
    assert all(p.header is None and p.show_score is False for p in plans[1:])


def test_plan_for_empty_document_is_one_header_page():
    plans = plan_pages(ReportMeta(title="Empty"), [])
    assert len(plans) == 1
    assert plans[0].section == ()
    assert plans[0].header is not None


def test_sanitize_without_unicode_font():
    text = "a" + chr(0x00A0) + "b" + chr(0x200B) + "c " + chr(0x2014) + " 한글"
    assert _sanitize_pdf_text(text, allow_unicode=False) == "a bc -- ??"
    assert _sanitize_pdf_text(text, allow_unicode=True) == text


def test_render_every_node_kind_without_custom_font():
    section = (
        Heading(1, (Text("Heading"),)),
        Paragraph((Text("plain "), Bold("bold"), Text(" "), Italic("it"), Text("\n"), CodeSpan("x = 1"))),
        Paragraph((Link(text="link", href="https://example.com"),)),
        Paragraph((Text("<custom/>"),), fallback_of="html_block"),
        Spacer(),
        ListBlock(ordered=False, items=(ListItem((Text("one"),)), ListItem((Bold("two"),)))),
        ListBlock(ordered=True, items=(ListItem((Text("first"),)),)),
        CodeBlock(lang="python", text="print(1)\nprint(2)"),
        Blockquote((Heading(3, (Text("Quoted"),)), Paragraph((Text("quote body"),)))),
        ThematicBreak(),
        Table(header=("Name", "Score"), rows=(("alpha", "90"), ("beta",))),
        Heading(5, (Text("small"),)),
    )
    meta = ReportMeta(title="AI 피드백 리포트", subtitle="sub", score=72, created_at="2024-03-05T14:07:09Z")
    pdf_bytes = render_pages(plan_pages(meta, [section]), font=None)
    assert pdf_bytes.startswith(b"%PDF")
    assert _page_count(pdf_bytes) >= 1


def test_each_section_starts_a_new_page():
    sections = split_into_sections(parse_md("# A\n\none\n\n# B\n\ntwo\n\n# C\n\nthree"))
    pdf_bytes = render_pages(plan_pages(ReportMeta(title="T"), sections), font=None)
    assert _page_count(pdf_bytes) == 3


def test_long_section_overflows_onto_more_pages():
    body = "\n\n".join(f"Paragraph number {i} " + "word " * 60 for i in range(20))
    sections = split_into_sections(parse_md(body))
    assert len(sections) == 1
    pdf_bytes = render_pages(plan_pages(ReportMeta(title="T"), sections), font=None)
    assert _page_count(pdf_bytes) > 1


def test_blockquote_rule_is_drawn_on_every_page_it_spans(monkeypatch):
    drawn = []
    original_line = FPDF.line

    def recording_line(self, x1, y1, x2, y2):
        drawn.append((self.page, x1, y1, x2, y2))
        return original_line(self, x1, y1, x2, y2)

    monkeypatch.setattr(FPDF, "line", recording_line)
    quote = Blockquote(tuple(Paragraph((Text("word " * 80),)) for _ in range(30)))
    pdf_bytes = render_pages(plan_pages(ReportMeta(title="T"), [(quote,)]), font=None)

    pages = _page_count(pdf_bytes)
    assert pages > 1
    rule_x = st.PAGE_PADDING + st.BLOCKQUOTE_RULE_WIDTH / 2
    ruled_pages = [page for page, x1, y1, x2, y2 in drawn if x1 == x2 == rule_x and y2 > y1]
    assert ruled_pages == list(range(1, pages + 1))
