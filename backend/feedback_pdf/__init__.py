from __future__ import annotations

from .converter import md_to_pdf

__all__ = ["md_to_pdf"]
