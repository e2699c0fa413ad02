from __future__ import annotations

from .config import DEFAULT_TITLE, FOOTER_LABEL
from .fonts import register_fonts_async
from .logging_utils import get_logger
from .md_nodes import ReportMeta
from .md_parser import parse_md
from .paginate import split_into_sections
from .pdf_render import plan_pages, render_pages

log = get_logger(__name__)


async def md_to_pdf(
    markdown: str,
    *,
    title: str | None = None,
    subtitle: str | None = None,
    score: int | None = None,
    created_at: str | None = None,
    footer_label: str = FOOTER_LABEL,
) -> bytes:
    """Convert a markdown feedback report into PDF bytes.

    Raises ``FontResolutionError`` when no Korean font can be resolved; no
    partial document is produced in that case.
    """
    nodes = parse_md(markdown)
    sections = split_into_sections(nodes)
    font = await register_fonts_async()

    meta = ReportMeta(
        title=(title or "").strip() or DEFAULT_TITLE,
        subtitle=(subtitle or "").strip() or None,
        score=score,
        created_at=(created_at or "").strip() or None,
    )
    plans = plan_pages(meta, sections)
    pdf_bytes = render_pages(plans, font=font, footer_label=footer_label)
    log.info("PDF generated: %d bytes, %d nodes, %d sections", len(pdf_bytes), len(nodes), len(sections))
    return pdf_bytes
