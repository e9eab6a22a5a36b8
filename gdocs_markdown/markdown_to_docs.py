"""
Markdown to Google Docs Converter

This module compiles Markdown into Google Docs API `batchUpdate` requests. It
supports headings (with optional TITLE promotion of the first H1), bold,
italic, strikethrough, inline code, links, nested bullet/numbered/task lists,
fenced and indented code blocks, and horizontal rules.

The compiler follows the "Index Tracker" pattern: a single running cursor
starts at the caller's start index and advances by the length of every
inserted string. All style, paragraph and bullet ranges are recorded against
that cursor and emitted after the insertions, so the requests are only valid
when applied strictly in the returned order.

Example:
    >>> converter = MarkdownToDocsConverter()
    >>> requests = converter.convert("# Hello World\n\nThis is **bold** text.")
    >>> # requests contains insertText ... + updateTextStyle + updateParagraphStyle
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from markdown_it import MarkdownIt

from gdocs_markdown.config import ConversionOptions, validate_start_index
from gdocs_markdown.errors import MarkdownConversionError, MarkdownStructureError, ValidationError
from gdocs_markdown.operations import (
    HEADING_STYLE_MAP,
    NAMED_STYLE_TITLE,
    BulletPreset,
    CreateParagraphBullets,
    EditOperation,
    InsertText,
    TextStyle,
    UpdateParagraphStyle,
    UpdateTextStyle,
    to_requests,
)

if TYPE_CHECKING:
    from markdown_it.token import Token

logger = logging.getLogger(__name__)

# Inline code / code block styling constants
CODE_FONT_FAMILY = "Roboto Mono"
CODE_TEXT_COLOR = "#188038"
CODE_BACKGROUND_COLOR = "#F1F3F4"

# "[ ] ", "[x] " or "[X] " at the start of a list item's first text
TASK_PREFIX_RE = re.compile(r"^\[( |x|X)\]\s+")

# Wrapper tokens that are traversed without emitting requests
_STRUCTURAL_TOKENS = frozenset(
    {
        "table_open",
        "table_close",
        "thead_open",
        "thead_close",
        "tbody_open",
        "tbody_close",
        "tr_open",
        "tr_close",
        "th_open",
        "th_close",
        "td_open",
        "td_close",
        "blockquote_open",
        "blockquote_close",
    }
)

_FORMATTING_ATTRIBUTES = ("bold", "italic", "strikethrough", "code", "link")


def create_parser() -> MarkdownIt:
    """Create the markdown-it parser: CommonMark + GFM tables, strikethrough and linkify."""
    return MarkdownIt("commonmark", {"html": False, "linkify": True}).enable(["table", "strikethrough", "linkify"])


# =============================================================================
# Conversion state
# =============================================================================


@dataclass
class FormattingState:
    """A partial inline style; None means "not set by this entry"."""

    bold: bool | None = None
    italic: bool | None = None
    strikethrough: bool | None = None
    code: bool | None = None
    link: str | None = None

    def has(self, attribute: str) -> bool:
        return getattr(self, attribute) is not None

    def has_formatting(self) -> bool:
        return bool(self.bold or self.italic or self.strikethrough or self.code) or self.link is not None


@dataclass
class TextRange:
    start_index: int
    end_index: int
    formatting: FormattingState


@dataclass
class ParagraphRange:
    start_index: int
    end_index: int
    named_style_type: str | None = None


@dataclass
class ListState:
    kind: str  # "bullet" or "ordered"
    level: int


@dataclass
class PendingListItem:
    start_index: int
    nesting_level: int
    bullet_preset: BulletPreset
    end_index: int | None = None
    task_prefix_processed: bool = False


@dataclass
class ConversionContext:
    """
    Mutable state of one compilation call.

    A fresh context is created for every call and threaded through the token
    handlers, so concurrent or repeated conversions never share state.
    """

    current_index: int
    tab_id: str | None = None
    first_heading_as_title: bool = False
    insert_operations: list[InsertText] = field(default_factory=list)
    format_operations: list[EditOperation] = field(default_factory=list)
    text_ranges: list[TextRange] = field(default_factory=list)
    formatting_stack: list[FormattingState] = field(default_factory=list)
    list_stack: list[ListState] = field(default_factory=list)
    paragraph_ranges: list[ParagraphRange] = field(default_factory=list)
    pending_list_items: list[PendingListItem] = field(default_factory=list)
    open_list_items: list[int] = field(default_factory=list)
    hr_ranges: list[tuple[int, int]] = field(default_factory=list)
    current_heading_level: int | None = None
    current_heading_start: int | None = None
    title_consumed: bool = False

    def current_list_item(self) -> PendingListItem | None:
        if not self.open_list_items:
            return None
        return self.pending_list_items[self.open_list_items[-1]]

    def last_insert_ends_with(self, suffix: str) -> bool:
        if not self.insert_operations:
            return False
        return self.insert_operations[-1].text.endswith(suffix)


# =============================================================================
# Public API
# =============================================================================


def compile_tokens(
    tokens: Sequence[Token],
    start_index: int = 1,
    tab_id: str | None = None,
    options: ConversionOptions | None = None,
) -> list[EditOperation]:
    """
    Compile a markdown-it token stream into Google Docs edit operations.

    Args:
        tokens: Flat block-level token stream (inline tokens carry children).
        start_index: The 1-based document index where content is inserted.
        tab_id: Optional tab ID attached to every operation.
        options: Conversion options (e.g. first_heading_as_title).

    Returns:
        All insertText operations in generation order, followed by text
        styles, paragraph styles, horizontal rule borders and bullets.

    Raises:
        MarkdownStructureError: If the token stream nests illegally.
        MarkdownConversionError: For an invalid start_index or any other failure during compilation.
    """
    try:
        validate_start_index(start_index)
    except ValidationError as e:
        raise MarkdownConversionError(f"Failed to convert markdown: {e}") from e

    options = options or ConversionOptions()

    context = ConversionContext(
        current_index=start_index,
        tab_id=tab_id,
        first_heading_as_title=options.first_heading_as_title,
    )

    try:
        for token in tokens:
            _process_token(token, context)

        _finalize_formatting(context)
    except MarkdownConversionError:
        raise
    except Exception as e:
        raise MarkdownConversionError(f"Failed to convert markdown: {e}") from e

    logger.debug(
        f"Compiled {len(context.insert_operations)} insert and {len(context.format_operations)} format "
        f"operations, cursor={context.current_index}"
    )
    return [*context.insert_operations, *context.format_operations]


def convert_markdown_to_operations(
    markdown: str,
    start_index: int = 1,
    tab_id: str | None = None,
    options: ConversionOptions | None = None,
) -> list[EditOperation]:
    """Parse Markdown and compile it; empty or whitespace-only input yields []."""
    return MarkdownToDocsConverter(options).convert_to_operations(markdown, start_index, tab_id)


def convert_markdown_to_requests(
    markdown: str,
    start_index: int = 1,
    tab_id: str | None = None,
    options: ConversionOptions | None = None,
) -> list[dict[str, Any]]:
    """Parse Markdown and compile it into Google Docs API request dicts."""
    return to_requests(convert_markdown_to_operations(markdown, start_index, tab_id, options))


class MarkdownToDocsConverter:
    """
    Converts Markdown text into Google Docs API batchUpdate requests.

    The converter owns only the parser and the conversion options; each call
    to `convert()` compiles into its own `ConversionContext`, so one instance
    can be reused (and shared) across conversions.

    Example:
        >>> converter = MarkdownToDocsConverter(ConversionOptions(first_heading_as_title=True))
        >>> requests = converter.convert("# Title\n\n**Bold** text", start_index=1)
    """

    def __init__(self, options: ConversionOptions | None = None) -> None:
        self.md = create_parser()
        self.options = options or ConversionOptions()

    def parse(self, markdown_text: str) -> list[Token]:
        return self.md.parse(markdown_text)

    def convert_to_operations(
        self, markdown_text: str, start_index: int = 1, tab_id: str | None = None
    ) -> list[EditOperation]:
        if not markdown_text or not markdown_text.strip():
            return []
        return compile_tokens(self.parse(markdown_text), start_index, tab_id, self.options)

    def convert(self, markdown_text: str, start_index: int = 1, tab_id: str | None = None) -> list[dict[str, Any]]:
        """
        Convert Markdown text to Google Docs API requests.

        Args:
            markdown_text: The Markdown string to convert.
            start_index: The starting index in the document (1-based).
            tab_id: Optional tab to target.

        Returns:
            A list of Google Docs API request dictionaries ready for batchUpdate.
        """
        return to_requests(self.convert_to_operations(markdown_text, start_index, tab_id))


# =============================================================================
# Token dispatch
# =============================================================================


def _process_token(token: Token, context: ConversionContext) -> None:
    token_type = token.type

    if token_type == "inline":
        for child in token.children or []:
            _process_token(child, context)
    elif token_type == "heading_open":
        _handle_heading_open(token, context)
    elif token_type == "heading_close":
        _handle_heading_close(context)
    elif token_type == "paragraph_close":
        _handle_paragraph_close(context)
    elif token_type == "text":
        _handle_text(token.content, context)
    elif token_type == "code_inline":
        _handle_code_inline(token, context)
    elif token_type == "strong_open":
        context.formatting_stack.append(FormattingState(bold=True))
    elif token_type == "strong_close":
        _pop_formatting(context, "bold")
    elif token_type == "em_open":
        context.formatting_stack.append(FormattingState(italic=True))
    elif token_type == "em_close":
        _pop_formatting(context, "italic")
    elif token_type == "s_open":
        context.formatting_stack.append(FormattingState(strikethrough=True))
    elif token_type == "s_close":
        _pop_formatting(context, "strikethrough")
    elif token_type == "link_open":
        href = token.attrGet("href")
        if href:
            context.formatting_stack.append(FormattingState(link=str(href)))
    elif token_type == "link_close":
        _pop_formatting(context, "link")
    elif token_type == "bullet_list_open":
        _handle_list_open("bullet", context)
    elif token_type == "ordered_list_open":
        _handle_list_open("ordered", context)
    elif token_type in ("bullet_list_close", "ordered_list_close"):
        _handle_list_close(context)
    elif token_type == "list_item_open":
        _handle_list_item_open(context)
    elif token_type == "list_item_close":
        _handle_list_item_close(context)
    elif token_type == "softbreak":
        # Soft line breaks become spaces in Google Docs
        _insert_text(" ", context)
    elif token_type == "hardbreak":
        _insert_text("\n", context)
    elif token_type in ("fence", "code_block"):
        _handle_code_block(token, context)
    elif token_type == "hr":
        _handle_horizontal_rule(context)
    elif token_type in _STRUCTURAL_TOKENS or token_type == "paragraph_open":
        pass
    else:
        logger.debug(f"Ignoring token: type={token_type}")


def _insert_text(text: str, context: ConversionContext) -> None:
    """Record an insertText at the cursor and advance the cursor."""
    context.insert_operations.append(InsertText(context.current_index, text, context.tab_id))
    context.current_index += len(text)


# =============================================================================
# Headings and paragraphs
# =============================================================================


def _heading_level(token: Token) -> int | None:
    match = re.match(r"h(\d)", token.tag or "")
    return int(match.group(1)) if match else None


def _handle_heading_open(token: Token, context: ConversionContext) -> None:
    level = _heading_level(token)
    if level:
        context.current_heading_level = level
        context.current_heading_start = context.current_index
        logger.debug(f"Heading open: level={level}, start_index={context.current_index}")


def _handle_heading_close(context: ConversionContext) -> None:
    level = context.current_heading_level
    start = context.current_heading_start
    if level is None or start is None:
        logger.warning("heading_close without matching heading_open")
        return

    # Empty headings keep their paragraph but get no style range
    if context.current_index > start:
        # Only the very first H1 of the document is promoted to TITLE
        use_title = context.first_heading_as_title and not context.title_consumed and level == 1
        if use_title:
            context.title_consumed = True
            named_style = NAMED_STYLE_TITLE
        else:
            named_style = HEADING_STYLE_MAP.get(f"h{min(level, 6)}")

        context.paragraph_ranges.append(ParagraphRange(start, context.current_index, named_style))
        logger.debug(f"Heading close: {named_style} range [{start}, {context.current_index})")
    else:
        logger.debug(f"Skipping style for empty h{level} at index {start}")

    _insert_text("\n", context)
    context.current_heading_level = None
    context.current_heading_start = None


def _handle_paragraph_close(context: ConversionContext) -> None:
    if not context.last_insert_ends_with("\n"):
        _insert_text("\n", context)

    list_item = context.current_list_item()
    if list_item is not None:
        paragraph_end = context.current_index - 1 if context.last_insert_ends_with("\n") else context.current_index
        if paragraph_end > list_item.start_index:
            list_item.end_index = paragraph_end


def _handle_horizontal_rule(context: ConversionContext) -> None:
    if not context.last_insert_ends_with("\n"):
        _insert_text("\n", context)

    start = context.current_index
    _insert_text("\n", context)
    context.hr_ranges.append((start, context.current_index))
    logger.debug(f"Inserted horizontal rule at index {start}")


# =============================================================================
# Lists
# =============================================================================


def _handle_list_open(kind: str, context: ConversionContext) -> None:
    context.list_stack.append(ListState(kind, len(context.list_stack)))
    logger.debug(f"List open: type={kind}, nesting_level={len(context.list_stack) - 1}")


def _handle_list_close(context: ConversionContext) -> None:
    if not context.list_stack:
        logger.warning("list_close without matching list_open")
        return
    popped = context.list_stack.pop()
    logger.debug(f"List close: type={popped.kind}, nesting_level={popped.level}")


def _handle_list_item_open(context: ConversionContext) -> None:
    if not context.list_stack:
        raise MarkdownStructureError("List item found outside of list context", token_type="list_item_open")

    current_list = context.list_stack[-1]
    item_start = context.current_index

    # The Docs API derives nesting from leading TABs when bullets are created
    if current_list.level > 0:
        _insert_text("\t" * current_list.level, context)

    preset = BulletPreset.ORDERED if current_list.kind == "ordered" else BulletPreset.UNORDERED
    context.pending_list_items.append(PendingListItem(item_start, current_list.level, preset))
    context.open_list_items.append(len(context.pending_list_items) - 1)
    logger.debug(f"List item open: start_index={item_start}, nesting_level={current_list.level}")


def _handle_list_item_close(context: ConversionContext) -> None:
    if not context.open_list_items:
        logger.warning("list_item_close without matching list_item_open")
        return

    list_item = context.pending_list_items[context.open_list_items.pop()]
    if list_item.end_index is None:
        end = context.current_index - 1 if context.last_insert_ends_with("\n") else context.current_index
        if end > list_item.start_index:
            list_item.end_index = end

    if not context.last_insert_ends_with("\n"):
        _insert_text("\n", context)


# =============================================================================
# Text and code
# =============================================================================


def _handle_text(text: str, context: ConversionContext) -> None:
    if not text:
        return

    list_item = context.current_list_item()
    if list_item is not None and not list_item.task_prefix_processed:
        list_item.task_prefix_processed = True
        match = TASK_PREFIX_RE.match(text)
        if match:
            list_item.bullet_preset = BulletPreset.CHECKBOX
            text = text[match.end() :]
            if not text:
                return

    start = context.current_index
    _insert_text(text, context)

    formatting = _merge_formatting_stack(context.formatting_stack)
    if formatting.has_formatting():
        context.text_ranges.append(TextRange(start, context.current_index, formatting))


def _handle_code_inline(token: Token, context: ConversionContext) -> None:
    # Code spans are literal; a leading "[ ] " inside one is not a task marker
    list_item = context.current_list_item()
    if list_item is not None:
        list_item.task_prefix_processed = True

    context.formatting_stack.append(FormattingState(code=True))
    _handle_text(token.content, context)
    _pop_formatting(context, "code")


def _handle_code_block(token: Token, context: ConversionContext) -> None:
    """
    Insert a fenced or indented code block one line at a time.

    Every line gets its own monospace range; empty lines are inserted as a
    single space so that no range is zero-length.
    """
    content = token.content or ""
    if content.endswith("\n"):
        content = content[:-1]
    lines = content.split("\n") if content else [""]

    for line in lines:
        start = context.current_index
        _insert_text(line or " ", context)
        context.text_ranges.append(TextRange(start, context.current_index, FormattingState(code=True)))
        _insert_text("\n", context)

    if not context.last_insert_ends_with("\n\n"):
        _insert_text("\n", context)

    logger.debug(f"Inserted code block: {len(lines)} line(s), cursor={context.current_index}")


# =============================================================================
# Formatting stack
# =============================================================================


def _merge_formatting_stack(stack: list[FormattingState]) -> FormattingState:
    """Merge the stack bottom-up; the most recent entry wins per attribute."""
    merged = FormattingState()
    for state in stack:
        for attribute in _FORMATTING_ATTRIBUTES:
            if state.has(attribute):
                setattr(merged, attribute, getattr(state, attribute))
    return merged


def _pop_formatting(context: ConversionContext, attribute: str) -> None:
    """Remove the most recently pushed entry carrying `attribute`, if any."""
    for i in range(len(context.formatting_stack) - 1, -1, -1):
        if context.formatting_stack[i].has(attribute):
            del context.formatting_stack[i]
            return
    logger.warning(f"No {attribute} style found on stack to pop")


# =============================================================================
# Finalization
# =============================================================================


def _finalize_formatting(context: ConversionContext) -> None:
    tab_id = context.tab_id
    operations = context.format_operations

    # Character-level formatting; links are always a separate request
    for text_range in context.text_ranges:
        formatting = text_range.formatting
        if formatting.bold or formatting.italic or formatting.strikethrough or formatting.code:
            style = TextStyle(
                bold=True if formatting.bold else None,
                italic=True if formatting.italic else None,
                strikethrough=True if formatting.strikethrough else None,
                font_family=CODE_FONT_FAMILY if formatting.code else None,
                foreground_color=CODE_TEXT_COLOR if formatting.code else None,
                background_color=CODE_BACKGROUND_COLOR if formatting.code else None,
            )
            operations.append(UpdateTextStyle(text_range.start_index, text_range.end_index, style, tab_id))

        if formatting.link:
            operations.append(
                UpdateTextStyle(
                    text_range.start_index, text_range.end_index, TextStyle(link_url=formatting.link), tab_id
                )
            )

    # Paragraph-level formatting (headings / title)
    for paragraph_range in context.paragraph_ranges:
        if paragraph_range.named_style_type:
            operations.append(
                UpdateParagraphStyle.named_style(
                    paragraph_range.start_index,
                    paragraph_range.end_index,
                    paragraph_range.named_style_type,
                    tab_id,
                )
            )

    for start, end in context.hr_ranges:
        operations.append(UpdateParagraphStyle.horizontal_rule(start, end, tab_id))

    operations.extend(_merge_list_items(context.pending_list_items, tab_id))


def _merge_list_items(items: list[PendingListItem], tab_id: str | None) -> list[CreateParagraphBullets]:
    """
    Merge adjacent list items of the same preset into bullet ranges.

    Items merge only when the next one starts at most one index (the
    separating newline) after the previous range ends. Any content in
    between, or a different preset, starts a new range so that intervening
    paragraphs never become bullets. Ranges are returned bottom-to-top so
    TAB consumption by createParagraphBullets does not shift later ranges.
    """
    valid_items = sorted(
        (item for item in items if item.end_index is not None and item.end_index > item.start_index),
        key=lambda item: item.start_index,
    )

    merged: list[list[Any]] = []  # [start, end, preset]
    for item in valid_items:
        if merged and merged[-1][2] == item.bullet_preset and item.start_index <= merged[-1][1] + 1:
            merged[-1][1] = max(merged[-1][1], item.end_index)
        else:
            merged.append([item.start_index, item.end_index, item.bullet_preset])

    merged.sort(key=lambda entry: entry[0], reverse=True)
    logger.debug(f"Merged {len(valid_items)} list item(s) into {len(merged)} bullet range(s)")
    return [CreateParagraphBullets(start, end, preset, tab_id) for start, end, preset in merged]
