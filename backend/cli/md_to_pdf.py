from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from feedback_pdf.converter import md_to_pdf
from feedback_pdf.fonts import FontResolutionError


def log(msg: str) -> None:
    print(msg, file=sys.stderr)


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig")


def _score(value: str) -> int:
    score = int(value)
    if not 0 <= score <= 100:
        raise argparse.ArgumentTypeError("score must be within 0..100")
    return score


def main() -> int:
    ap = argparse.ArgumentParser(description="Convert a markdown feedback report into a paginated A4 PDF.")
    ap.add_argument("input", type=Path, help="Markdown file to convert")
    ap.add_argument("-o", "--output", type=Path, default=None, help="Output PDF path (defaults to INPUT with .pdf)")
    ap.add_argument("--title", type=str, default=None, help="Header title on the first page")
    ap.add_argument("--subtitle", type=str, default=None, help="Header subtitle on the first page")
    ap.add_argument("--score", type=_score, default=None, help="Total score (0-100) shown under the header")
    ap.add_argument("--created-at", type=str, default=None, help="ISO-8601 creation timestamp")
    args = ap.parse_args()

    src: Path = args.input
    if not src.is_file():
        log(f"ERROR: input not found: {src}")
        return 2
    out: Path = args.output or src.with_suffix(".pdf")

    try:
        pdf_bytes = asyncio.run(
            md_to_pdf(
                read_text(src),
                title=args.title,
                subtitle=args.subtitle,
                score=args.score,
                created_at=args.created_at,
            )
        )
    except FontResolutionError as e:
        log(f"ERROR: font resolution failed: {e}")
        return 2

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(pdf_bytes)
    log(f"Done. {len(pdf_bytes)} bytes written to {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
