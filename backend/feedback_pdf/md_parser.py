from __future__ import annotations

import re

from markdown_it import MarkdownIt
from markdown_it.token import Token

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
    ListItem,
    Node,
    Paragraph,
    Spacer,
    Table,
    Text,
    ThematicBreak,
)
from .sanitize import strip_emoji

_BREAK_TYPES = {"softbreak", "hardbreak"}
_LIST_MARKER_RE = re.compile(r"^[ \t]*(?:[-+*]|\d{1,9}[.)])(?:[ \t]+|$)")
_QUOTE_PREFIX_RE = re.compile(r"^ {0,3}> ?")
_INLINE_WRAPPERS = {
    "strong_open": "strong_close",
    "em_open": "em_close",
    "link_open": "link_close",
}


def _build_markdown_parser() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": True, "breaks": False})
    md.enable("table")
    md.enable("strikethrough")
    return md


_MD_PARSER: MarkdownIt | None = None


def _get_markdown_parser() -> MarkdownIt:
    global _MD_PARSER
    if _MD_PARSER is None:
        _MD_PARSER = _build_markdown_parser()
    return _MD_PARSER


def _collect_block(tokens: list[Token], start_idx: int, open_type: str, close_type: str) -> tuple[list[Token], int]:
    """Return the tokens strictly inside the block opened at ``start_idx`` and the index after its close."""
    depth = 0
    i = start_idx
    if tokens[i].type == open_type:
        depth = 1
        i += 1
    inner_start = i
    while i < len(tokens):
        t = tokens[i].type
        if t == open_type:
            depth += 1
        elif t == close_type:
            depth -= 1
            if depth == 0:
                break
        i += 1
    return tokens[inner_start:i], i + 1


def _flatten_text(tokens: list[Token]) -> str:
    parts: list[str] = []
    for tok in tokens:
        if tok.content:
            parts.append(tok.content)
        elif tok.type in _BREAK_TYPES:
            parts.append("\n")
    return "".join(parts)


def parse_inline(token: Token | None) -> list[InlineSpan]:
    """Map the children of an ``inline`` token to styled spans.

    Anything nested inside bold/italic/link is flattened into that span's
    text. Unknown children keep their content as plain text; children with
    no content are dropped.
    """
    if token is None:
        return []
    children = token.children or []
    if not children:
        return [Text(token.content)] if token.content else []

    spans: list[InlineSpan] = []
    i = 0
    while i < len(children):
        child = children[i]
        t = child.type
        if t in _INLINE_WRAPPERS:
            inner, i = _collect_block(children, i, t, _INLINE_WRAPPERS[t])
            text = _flatten_text(inner)
            if not text:
                continue
            if t == "strong_open":
                spans.append(Bold(text))
            elif t == "em_open":
                spans.append(Italic(text))
            else:
                spans.append(Link(text=text, href=str(child.attrGet("href") or "")))
            continue
        if t == "text":
            if child.content:
                spans.append(Text(child.content))
        elif t == "code_inline":
            spans.append(CodeSpan(child.content))
        elif t in _BREAK_TYPES:
            spans.append(Text("\n"))
        elif child.content:
            spans.append(Text(child.content))
        i += 1
    return spans


def _source_text(lines: list[str], token: Token) -> str:
    if token.map:
        start, end = token.map
        return "\n".join(lines[start:end]).rstrip()
    return (token.content or "").rstrip("\n")


def parse_list_item_text(text: str) -> list[InlineSpan]:
    """Re-lex a list item's raw markdown into spans.

    Only top-level blocks are read. Paragraphs become inline spans; any other
    block keeps its source text verbatim, so a line that merely looks like a
    list marker (``2024. 목표``) is never reduced to its body. Falls back to
    the verbatim string when there is no paragraph to style.
    """
    tokens = _get_markdown_parser().parse(text)
    lines = text.split("\n")
    blocks: list[list[InlineSpan]] = []
    has_paragraph = False
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.level != 0 or tok.nesting == -1:
            i += 1
            continue
        if tok.type == "paragraph_open" and i + 1 < len(tokens) and tokens[i + 1].type == "inline":
            blocks.append(parse_inline(tokens[i + 1]))
            has_paragraph = True
            i += 3
            continue
        raw = _source_text(lines, tok)
        if raw:
            blocks.append([Text(raw)])
        i += 1

    if not has_paragraph:
        return [Text(text)]
    spans: list[InlineSpan] = []
    for block in blocks:
        if not block:
            continue
        if spans:
            spans.append(Text("\n"))
        spans.extend(block)
    return spans if spans else [Text(text)]


def _item_raw_text(tokens: list[Token]) -> str:
    lines: list[str] = []
    for tok in tokens:
        if tok.type in {"inline", "fence", "code_block", "html_block"} and tok.content:
            lines.append(tok.content.rstrip("\n"))
    return "\n".join(lines)


def _item_source(lines: list[str], item: Token, inner: list[Token]) -> str:
    """Return an item's own markdown: its source lines minus the marker and the continuation indent."""
    if not item.map:
        return _item_raw_text(inner)
    start, end = item.map
    item_lines = lines[start:end]
    if not item_lines:
        return _item_raw_text(inner)
    match = _LIST_MARKER_RE.match(item_lines[0])
    indent = match.end() if match else 0
    out = [item_lines[0][indent:]]
    for line in item_lines[1:]:
        leading = len(line) - len(line.lstrip(" "))
        out.append(line[min(indent, leading):])
    return "\n".join(out).rstrip()


def _list_items(tokens: list[Token], lines: list[str]) -> tuple[ListItem, ...]:
    items: list[ListItem] = []
    i = 0
    while i < len(tokens):
        if tokens[i].type != "list_item_open":
            i += 1
            continue
        item = tokens[i]
        inner, i = _collect_block(tokens, i, "list_item_open", "list_item_close")
        items.append(ListItem(tuple(parse_list_item_text(_item_source(lines, item, inner)))))
    return tuple(items)


def _unquote(lines: list[str]) -> list[str]:
    return [_QUOTE_PREFIX_RE.sub("", line, count=1) for line in lines]


def _cell_text(token: Token) -> str:
    if token.children:
        return "".join(child.content for child in token.children).strip()
    return (token.content or "").strip()


def _parse_table(tokens: list[Token], start_idx: int) -> tuple[Table, int]:
    header: list[str] = []
    rows: list[list[str]] = []
    in_head = False
    current_row: list[str] | None = None
    cell_text = ""
    i = start_idx + 1
    while i < len(tokens):
        tok = tokens[i]
        if tok.type == "table_close":
            break
        if tok.type == "thead_open":
            in_head = True
        elif tok.type == "thead_close":
            in_head = False
        elif tok.type == "tr_open":
            current_row = []
        elif tok.type in {"th_open", "td_open"}:
            cell_text = ""
        elif tok.type == "inline" and current_row is not None:
            cell_text = _cell_text(tok)
        elif tok.type in {"th_close", "td_close"} and current_row is not None:
            current_row.append(cell_text)
        elif tok.type == "tr_close" and current_row is not None:
            if in_head:
                header = current_row
            else:
                rows.append(current_row)
            current_row = None
        i += 1
    table = Table(header=tuple(header), rows=tuple(tuple(r) for r in rows))
    return table, i + 1


def _fallback_paragraph(token_type: str, text: str) -> Paragraph:
    spans = (Text(text),) if text else ()
    return Paragraph(spans=spans, fallback_of=token_type)


def _block_to_node(tokens: list[Token], i: int, lines: list[str]) -> tuple[Node, int]:
    tok = tokens[i]
    t = tok.type

    if t == "heading_open":
        inline = tokens[i + 1] if i + 1 < len(tokens) else None
        depth = int(tok.tag[1]) if tok.tag and tok.tag.startswith("h") else 2
        return Heading(depth=depth, spans=tuple(parse_inline(inline))), i + 3

    if t == "paragraph_open":
        inline = tokens[i + 1] if i + 1 < len(tokens) else None
        return Paragraph(spans=tuple(parse_inline(inline))), i + 3

    if t in {"bullet_list_open", "ordered_list_open"}:
        close = t.replace("_open", "_close")
        inner, next_i = _collect_block(tokens, i, t, close)
        return ListBlock(ordered=t == "ordered_list_open", items=_list_items(inner, lines)), next_i

    if t in {"fence", "code_block"}:
        info = str(tok.info or "").strip()
        lang = info.split(None, 1)[0] if info else ""
        return CodeBlock(lang=lang, text=(tok.content or "").rstrip("\n")), i + 1

    if t == "blockquote_open":
        inner, next_i = _collect_block(tokens, i, "blockquote_open", "blockquote_close")
        return Blockquote(children=tuple(_tokens_to_nodes(inner, _unquote(lines)))), next_i

    if t == "hr":
        return ThematicBreak(), i + 1

    if t == "table_open":
        return _parse_table(tokens, i)

    if tok.nesting == 1 and t.endswith("_open"):
        inner, next_i = _collect_block(tokens, i, t, t[: -len("_open")] + "_close")
        return _fallback_paragraph(t[: -len("_open")], _item_raw_text(inner)), next_i

    return _fallback_paragraph(t, (tok.content or "").strip()), i + 1


def _tokens_to_nodes(tokens: list[Token], lines: list[str]) -> list[Node]:
    nodes: list[Node] = []
    prev_end: int | None = None
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.nesting == -1:
            i += 1
            continue
        node, i = _block_to_node(tokens, i, lines)
        start = tok.map[0] if tok.map else None
        # A blank source line between siblings is kept as a spacer; headings swallow theirs.
        if nodes and prev_end is not None and start is not None and start > prev_end:
            if not isinstance(nodes[-1], Heading):
                nodes.append(Spacer())
        nodes.append(node)
        prev_end = tok.map[1] if tok.map else None
    return nodes


def parse_md(markdown: str) -> list[Node]:
    """Sanitize and parse markdown into a flat list of block nodes."""
    cleaned = strip_emoji(str(markdown or "")).replace("\r\n", "\n").replace("\r", "\n")
    tokens = _get_markdown_parser().parse(cleaned)
    return _tokens_to_nodes(tokens, cleaned.split("\n"))
