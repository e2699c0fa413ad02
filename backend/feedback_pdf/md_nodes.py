from __future__ import annotations

from dataclasses import dataclass
from typing import Union


# Inline spans carry leaf text only; nested emphasis is flattened by the parser.


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Bold:
    text: str


@dataclass(frozen=True)
class Italic:
    text: str


@dataclass(frozen=True)
class CodeSpan:
    text: str


@dataclass(frozen=True)
class Link:
    text: str
    href: str


InlineSpan = Union[Text, Bold, Italic, CodeSpan, Link]


@dataclass(frozen=True)
class Heading:
    depth: int
    spans: tuple[InlineSpan, ...] = ()

    def __post_init__(self) -> None:
        if not 1 <= self.depth <= 6:
            raise ValueError(f"Heading depth must be within 1..6, got {self.depth}")


@dataclass(frozen=True)
class Paragraph:
    spans: tuple[InlineSpan, ...] = ()
    # Source token type when this paragraph stands in for an unsupported block.
    fallback_of: str | None = None


@dataclass(frozen=True)
class ListItem:
    spans: tuple[InlineSpan, ...] = ()


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class CodeBlock:
    lang: str
    text: str


@dataclass(frozen=True)
class Blockquote:
    children: tuple["Node", ...] = ()


@dataclass(frozen=True)
class ThematicBreak:
    pass


@dataclass(frozen=True)
class Table:
    header: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class Spacer:
    pass


Node = Union[Heading, Paragraph, ListBlock, CodeBlock, Blockquote, ThematicBreak, Table, Spacer]

# A non-empty run of nodes laid out on one page.
Section = tuple[Node, ...]


@dataclass(frozen=True)
class ReportMeta:
    title: str
    subtitle: str | None = None
    score: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class PagePlan:
    """One planned page: its section plus the first-page bands, if any.

    ``section`` is empty only for the header-only page of an empty document.
    """

    index: int
    section: Section
    header: ReportMeta | None = None
    show_score: bool = False


def spans_text(spans: tuple[InlineSpan, ...] | list[InlineSpan]) -> str:
    return "".join(s.text for s in spans)
