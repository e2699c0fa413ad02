from __future__ import annotations

from typing import Sequence

from .md_nodes import Heading, Node, Section

MAX_NODES_PER_SECTION = 50


def _starts_section(node: Node) -> bool:
    return isinstance(node, Heading) and node.depth in (1, 2)


def _group_by_heading(nodes: Sequence[Node]) -> list[list[Node]]:
    sections: list[list[Node]] = []
    current: list[Node] = []
    for node in nodes:
        if _starts_section(node) and current:
            sections.append(current)
            current = []
        current.append(node)
    if current:
        sections.append(current)
    return sections


def split_into_sections(nodes: Sequence[Node], max_nodes: int = MAX_NODES_PER_SECTION) -> list[Section]:
    """Group nodes into page-sized sections.

    A new section starts at every H1/H2 unless the current one is still
    empty. Oversized sections are then cut into consecutive chunks of at most
    ``max_nodes``. Chunks are sliced by count only, so a heading can end up
    as the last node of one chunk with its content on the next page.
    """
    if max_nodes < 1:
        raise ValueError("max_nodes must be positive")
    final: list[Section] = []
    for section in _group_by_heading(nodes):
        for start in range(0, len(section), max_nodes):
            chunk = tuple(section[start : start + max_nodes])
            assert chunk, "pagination produced an empty section"
            final.append(chunk)
    return final
