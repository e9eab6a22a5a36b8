"""
Google Docs to Markdown Renderer

Converts an already-fetched Google Docs document (`documents.get` JSON, or a
`{"body": ..., "lists": ...}` subset for a single tab) into Markdown.

Handles headings, paragraphs, bold/italic/strikethrough/underline, links,
monospace runs as inline code, ordered and unordered lists with nesting,
tables and section breaks. The renderer is pure and never raises for
well-formed input; missing pieces degrade to plain text or an empty string.
"""

import re
from typing import Any

# Font families treated as inline code (includes the compiler's code font)
CODE_FONT_FAMILIES = frozenset({"Roboto Mono", "Courier New", "Consolas", "monospace"})

SECTION_BREAK_MARKDOWN = "\n---\n\n"
MAX_HEADING_LEVEL = 6


def docs_json_to_markdown(doc_data: dict[str, Any]) -> str:
    """
    Convert Google Docs JSON structure to a Markdown string.

    Args:
        doc_data: The raw `documents.get` response, or a dict with `body` and `lists`.

    Returns:
        The document content as Markdown, without leading/trailing whitespace.
    """
    body = (doc_data or {}).get("body") or {}
    content = body.get("content")
    if not content:
        return ""

    lists: dict[str, Any] = doc_data.get("lists") or {}
    parts: list[str] = []

    for element in content:
        if "paragraph" in element:
            parts.append(_convert_paragraph(element["paragraph"], lists))
        elif "table" in element:
            parts.append(_convert_table(element["table"]))
        elif "sectionBreak" in element:
            parts.append(SECTION_BREAK_MARKDOWN)

    return "".join(parts).strip()


# =============================================================================
# Paragraphs
# =============================================================================


def _convert_paragraph(paragraph: dict[str, Any], lists: dict[str, Any]) -> str:
    heading_level = get_heading_level(paragraph)
    list_info = get_list_info(paragraph, lists)
    text = extract_formatted_text(paragraph.get("elements") or []).strip()

    if heading_level and text:
        return f"{'#' * min(heading_level, MAX_HEADING_LEVEL)} {text}\n\n"

    if list_info and text:
        ordered, nesting_level = list_info
        indent = "  " * nesting_level
        # Ordered items always use "1."; Markdown renderers renumber them
        marker = "1." if ordered else "-"
        return f"{indent}{marker} {text}\n"

    if text:
        return f"{text}\n\n"

    return "\n"


def get_heading_level(paragraph: dict[str, Any]) -> int | None:
    """Map TITLE -> 1, SUBTITLE -> 2, HEADING_N -> N; anything else -> None."""
    style_type = (paragraph.get("paragraphStyle") or {}).get("namedStyleType")
    if not style_type:
        return None

    if style_type == "TITLE":
        return 1
    if style_type == "SUBTITLE":
        return 2

    match = re.match(r"^HEADING_(\d)$", style_type)
    return int(match.group(1)) if match else None


def get_list_info(paragraph: dict[str, Any], lists: dict[str, Any]) -> tuple[bool, int] | None:
    """
    Return (ordered, nesting_level) for a bulleted paragraph, else None.

    A nesting level is ordered when its registry entry has a glyphType (e.g.
    DECIMAL, ALPHA, ROMAN) rather than a glyphSymbol. Unknown lists default
    to unordered.
    """
    bullet = paragraph.get("bullet")
    if not bullet:
        return None

    nesting_level = bullet.get("nestingLevel") or 0
    list_id = bullet.get("listId")
    ordered = False

    list_entry = (lists.get(list_id) if list_id else None) or {}
    nesting_levels = (list_entry.get("listProperties") or {}).get("nestingLevels") or []
    if 0 <= nesting_level < len(nesting_levels):
        glyph_type = (nesting_levels[nesting_level] or {}).get("glyphType")
        if glyph_type and glyph_type != "GLYPH_TYPE_UNSPECIFIED":
            ordered = True

    return ordered, nesting_level


# =============================================================================
# Text runs
# =============================================================================


def extract_formatted_text(elements: list[dict[str, Any]]) -> str:
    return "".join(convert_text_run(element["textRun"]) for element in elements if element.get("textRun"))


def convert_text_run(text_run: dict[str, Any]) -> str:
    """Render one text run with its inline Markdown markers."""
    text: str = text_run.get("content") or ""
    style = text_run.get("textStyle")
    if not style:
        return text

    trailing_newline = text.endswith("\n")
    content = text[:-1] if trailing_newline else text
    suffix = "\n" if trailing_newline else ""

    # Code spans cannot nest other markup, so monospace runs only get backticks
    if is_code_styled(style):
        return f"`{content}`{suffix}" if content else text

    if not content:
        return text

    formatted = content
    if style.get("bold") and style.get("italic"):
        formatted = f"***{formatted}***"
    elif style.get("bold"):
        formatted = f"**{formatted}**"
    elif style.get("italic"):
        formatted = f"*{formatted}*"

    if style.get("strikethrough"):
        formatted = f"~~{formatted}~~"

    link_url = (style.get("link") or {}).get("url")
    if style.get("underline") and not style.get("link"):
        formatted = f"<u>{formatted}</u>"

    if link_url:
        formatted = f"[{formatted}]({link_url})"

    return formatted + suffix


def is_code_styled(style: dict[str, Any]) -> bool:
    font_family = (style.get("weightedFontFamily") or {}).get("fontFamily")
    return isinstance(font_family, str) and font_family in CODE_FONT_FAMILIES


# =============================================================================
# Tables
# =============================================================================


def _convert_table(table: dict[str, Any]) -> str:
    rows = table.get("tableRows") or []
    if not rows:
        return ""

    lines = ["\n"]
    is_first_row = True

    for row in rows:
        cells = row.get("tableCells")
        if not cells:
            continue

        lines.append("|" + "".join(f" {extract_cell_text(cell)} |" for cell in cells) + "\n")

        # Header separator after the first row
        if is_first_row:
            lines.append("|" + " --- |" * len(cells) + "\n")
            is_first_row = False

    return "".join(lines) + "\n"


def extract_cell_text(cell: dict[str, Any]) -> str:
    """Plain text of a table cell with newlines collapsed to spaces."""
    text = ""
    for element in cell.get("content") or []:
        for paragraph_element in (element.get("paragraph") or {}).get("elements") or []:
            content = (paragraph_element.get("textRun") or {}).get("content")
            if content:
                text += content.replace("\n", " ").strip()
    return text
