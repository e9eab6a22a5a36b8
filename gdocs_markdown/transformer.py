"""
Public API for bidirectional Markdown <-> Google Docs conversion.

Main entry points:
    extract_markdown()                - Fetch a Google Doc (or tab) and return Markdown
    insert_markdown()                 - Convert Markdown and insert it at an index
    append_markdown()                 - Convert Markdown and insert it at the end of the body
    replace_document_with_markdown()  - Delete the body, then insert Markdown

Each function takes an authenticated Google Docs service object (as built by
googleapiclient) and runs the blocking `.execute` calls in a worker thread.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from googleapiclient.errors import HttpError

from gdocs_markdown.batch import (
    BatchUpdateMetadata,
    count_requests_by_type,
    execute_batch_update,
    execute_batch_update_with_splitting,
)
from gdocs_markdown.config import get_settings, validate_document_id, validate_start_index
from gdocs_markdown.docs_to_markdown import docs_json_to_markdown
from gdocs_markdown.errors import ValidationError, handle_http_error
from gdocs_markdown.markdown_to_docs import convert_markdown_to_requests

logger = logging.getLogger(__name__)


@dataclass
class InsertMarkdownResult:
    """Debug metadata returned by insert_markdown().

    Attributes:
        total_requests: Number of Docs API requests generated from the Markdown.
        requests_by_type: Breakdown by request kind (insertText, updateTextStyle, ...).
        parse_elapsed_ms: Time spent parsing and compiling.
        batch_update: Metadata from the phased batch execution.
        total_elapsed_ms: Wall-clock time for the whole operation.
    """

    total_requests: int = 0
    requests_by_type: dict[str, int] = field(default_factory=dict)
    parse_elapsed_ms: int = 0
    batch_update: BatchUpdateMetadata = field(default_factory=BatchUpdateMetadata)
    total_elapsed_ms: int = 0


def format_insert_result(result: InsertMarkdownResult) -> str:
    """Format an InsertMarkdownResult into a concise human-readable summary."""
    by_type = ", ".join(f"{count} {kind}" for kind, count in result.requests_by_type.items())
    lines = [
        f"Markdown insert completed in {result.total_elapsed_ms}ms",
        f"  Parse: {result.parse_elapsed_ms}ms",
        f"  Requests: {result.total_requests} total ({by_type})",
        f"  API calls: {result.batch_update.total_api_calls} batchUpdate calls in "
        f"{result.batch_update.total_elapsed_ms}ms",
    ]
    for phase, metadata in result.batch_update.phases.items():
        if metadata.requests > 0:
            lines.append(
                f"    {phase.capitalize()} phase: {metadata.requests} requests, "
                f"{metadata.api_calls} calls, {metadata.elapsed_ms}ms"
            )
    return "\n".join(lines)


def find_tab_by_id(doc_data: dict[str, Any], tab_id: str) -> dict[str, Any] | None:
    """Find a tab (searching nested child tabs) by its ID."""
    pending = list(doc_data.get("tabs") or [])
    while pending:
        tab = pending.pop(0)
        if (tab.get("tabProperties") or {}).get("tabId") == tab_id:
            return tab
        pending[0:0] = tab.get("childTabs") or []
    return None


def _document_tab(doc_data: dict[str, Any], tab_id: str) -> dict[str, Any]:
    tab = find_tab_by_id(doc_data, tab_id)
    if tab is None:
        raise ValidationError(f'Tab with ID "{tab_id}" not found in document.')
    document_tab = tab.get("documentTab")
    if not document_tab:
        raise ValidationError(f'Tab "{tab_id}" does not have content (may not be a document tab).')
    return document_tab


async def _get_document(service: Any, document_id: str, tab_id: str | None, fields: str | None = None) -> dict:
    kwargs: dict[str, Any] = {"documentId": document_id, "includeTabsContent": bool(tab_id)}
    if fields:
        kwargs["fields"] = fields
    try:
        return await asyncio.to_thread(service.documents().get(**kwargs).execute)
    except HttpError as error:
        raise handle_http_error(error, document_id) from error


def _body_content(doc_data: dict[str, Any], tab_id: str | None) -> list[dict[str, Any]]:
    if tab_id:
        body = _document_tab(doc_data, tab_id).get("body") or {}
    else:
        body = doc_data.get("body") or {}
    content = body.get("content")
    if not content:
        raise ValidationError("No content found in document/tab")
    return content


async def extract_markdown(service: Any, document_id: str, tab_id: str | None = None) -> str:
    """
    Fetch a Google Document and return its content as Markdown.

    Args:
        service: Authenticated Google Docs service.
        document_id: The document ID (from the URL).
        tab_id: Optional tab to extract instead of the document body.

    Returns:
        The document (or tab) content as Markdown.
    """
    document_id = validate_document_id(document_id)
    logger.info(f"[extract_markdown] Doc={document_id}, tab={tab_id}")

    doc_data = await _get_document(service, document_id, tab_id)

    if tab_id:
        document_tab = _document_tab(doc_data, tab_id)
        return docs_json_to_markdown({"body": document_tab.get("body"), "lists": document_tab.get("lists")})

    return docs_json_to_markdown({"body": doc_data.get("body"), "lists": doc_data.get("lists")})


async def insert_markdown(
    service: Any,
    document_id: str,
    markdown: str,
    start_index: int = 1,
    tab_id: str | None = None,
    first_heading_as_title: bool | None = None,
) -> InsertMarkdownResult:
    """
    Convert Markdown to Google Docs formatting and insert it into a document.

    Handles parsing, request generation and phased batch execution. An empty
    conversion performs no API call.

    Args:
        service: Authenticated Google Docs service.
        document_id: The document ID.
        markdown: The Markdown content to insert.
        start_index: 1-based index where content is inserted.
        tab_id: Optional tab to target.
        first_heading_as_title: Style the first H1 as TITLE (defaults to the configured value).

    Returns:
        InsertMarkdownResult with request counts and timing.
    """
    document_id = validate_document_id(document_id)
    validate_start_index(start_index)
    settings = get_settings()

    overall_start = time.perf_counter()
    options = settings.conversion_options(first_heading_as_title)
    requests = convert_markdown_to_requests(markdown, start_index, tab_id, options)
    parse_elapsed_ms = round((time.perf_counter() - overall_start) * 1000)

    result = InsertMarkdownResult(
        total_requests=len(requests),
        requests_by_type=count_requests_by_type(requests),
        parse_elapsed_ms=parse_elapsed_ms,
    )
    logger.info(f"[insert_markdown] Doc={document_id}, start={start_index}, tab={tab_id}, requests={len(requests)}")

    if requests:
        result.batch_update = await execute_batch_update_with_splitting(
            service, document_id, requests, settings.max_batch_size
        )

    result.total_elapsed_ms = round((time.perf_counter() - overall_start) * 1000)
    return result


async def append_markdown(
    service: Any,
    document_id: str,
    markdown: str,
    tab_id: str | None = None,
    add_newline_if_needed: bool = False,
    first_heading_as_title: bool | None = None,
) -> InsertMarkdownResult:
    """Convert Markdown and insert it at the end of the document (or tab) body."""
    document_id = validate_document_id(document_id)
    doc_data = await _get_document(service, document_id, tab_id, None if tab_id else "body(content(endIndex))")
    content = _body_content(doc_data, tab_id)

    start_index = max(content[-1].get("endIndex", 2) - 1, 1)
    logger.info(f"[append_markdown] Doc={document_id}, end index={start_index}")

    if add_newline_if_needed and start_index > 1:
        location: dict[str, Any] = {"index": start_index}
        if tab_id:
            location["tabId"] = tab_id
        await execute_batch_update(service, document_id, [{"insertText": {"location": location, "text": "\n\n"}}])
        start_index += 2

    return await insert_markdown(service, document_id, markdown, start_index, tab_id, first_heading_as_title)


async def replace_document_with_markdown(
    service: Any,
    document_id: str,
    markdown: str,
    tab_id: str | None = None,
    preserve_title: bool = False,
    first_heading_as_title: bool | None = None,
) -> InsertMarkdownResult:
    """
    Replace the document (or tab) body with content parsed from Markdown.

    The existing content is deleted in its own batchUpdate call so the
    compiled indices can assume an empty body. With `preserve_title`, the
    first paragraph is kept and the Markdown is inserted after it.
    """
    document_id = validate_document_id(document_id)
    doc_data = await _get_document(
        service, document_id, tab_id, None if tab_id else "body(content(startIndex,endIndex,paragraph))"
    )
    content = _body_content(doc_data, tab_id)

    start_index = 1
    end_index = content[-1].get("endIndex", 1) - 1

    if preserve_title:
        for element in content:
            if "paragraph" in element and element.get("endIndex"):
                start_index = element["endIndex"]
                break

    if end_index > start_index:
        delete_range: dict[str, Any] = {"startIndex": start_index, "endIndex": end_index}
        if tab_id:
            delete_range["tabId"] = tab_id
        logger.info(f"[replace_document_with_markdown] Deleting [{start_index}, {end_index}) in {document_id}")
        await execute_batch_update(service, document_id, [{"deleteContentRange": {"range": delete_range}}])

    return await insert_markdown(service, document_id, markdown, start_index, tab_id, first_heading_as_title)
