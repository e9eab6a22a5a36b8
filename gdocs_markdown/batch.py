"""
Phased batchUpdate execution for compiled Markdown requests.

Compiled requests address indices that assume every earlier request has
already been applied. The executor therefore sends all delete-phase requests,
then all insert-phase requests, then all format-phase requests, splitting
each phase into consecutive chunks that preserve the original order.
"""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from googleapiclient.errors import HttpError

from gdocs_markdown.config import get_settings
from gdocs_markdown.errors import ValidationError, handle_http_error

logger = logging.getLogger(__name__)

PHASE_DELETE = "delete"
PHASE_INSERT = "insert"
PHASE_FORMAT = "format"
PHASE_ORDER = (PHASE_DELETE, PHASE_INSERT, PHASE_FORMAT)

DELETE_PHASE_REQUESTS = frozenset({"deleteContentRange", "deleteParagraphBullets"})
INSERT_PHASE_REQUESTS = frozenset({"insertText", "insertTable", "insertInlineImage", "insertPageBreak"})


@dataclass
class PhaseMetadata:
    """Counts and timing for one phase of a split batch update."""

    requests: int = 0
    api_calls: int = 0
    elapsed_ms: int = 0


@dataclass
class BatchUpdateMetadata:
    """Summary of a split batch update across the three phases."""

    total_requests: int = 0
    phases: dict[str, PhaseMetadata] = field(default_factory=lambda: {phase: PhaseMetadata() for phase in PHASE_ORDER})
    total_api_calls: int = 0
    total_elapsed_ms: int = 0


def request_kind(request: dict[str, Any]) -> str:
    """Return the action name of a request, e.g. "insertText"."""
    if not request:
        raise ValidationError("Empty request has no action")
    return next(iter(request))


def request_phase(request: dict[str, Any]) -> str:
    kind = request_kind(request)
    if kind in DELETE_PHASE_REQUESTS:
        return PHASE_DELETE
    if kind in INSERT_PHASE_REQUESTS:
        return PHASE_INSERT
    return PHASE_FORMAT


def split_into_phases(requests: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Group requests by phase, keeping their relative order within each phase."""
    phases: dict[str, list[dict[str, Any]]] = {phase: [] for phase in PHASE_ORDER}
    for request in requests:
        phases[request_phase(request)].append(request)
    return phases


def chunk_requests(requests: list[dict[str, Any]], max_batch_size: int) -> list[list[dict[str, Any]]]:
    """Split requests into consecutive chunks of at most `max_batch_size`."""
    if max_batch_size < 1:
        raise ValidationError("max_batch_size must be at least 1")
    return [requests[i : i + max_batch_size] for i in range(0, len(requests), max_batch_size)]


def count_requests_by_type(requests: list[dict[str, Any]]) -> dict[str, int]:
    return dict(Counter(request_kind(request) for request in requests))


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


async def execute_batch_update(service: Any, document_id: str, requests: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Send one documents.batchUpdate call.

    Raises:
        APIError: (or a subclass) when the Docs API rejects the call.
    """
    try:
        return await asyncio.to_thread(
            service.documents().batchUpdate(documentId=document_id, body={"requests": requests}).execute
        )
    except HttpError as error:
        logger.error(f"batchUpdate failed for document {document_id}: {error}")
        raise handle_http_error(error, document_id) from error


async def execute_batch_update_with_splitting(
    service: Any,
    document_id: str,
    requests: list[dict[str, Any]],
    max_batch_size: int | None = None,
) -> BatchUpdateMetadata:
    """
    Execute requests as three ordered phases, each split into chunks.

    Args:
        service: Authenticated Google Docs service.
        document_id: Target document.
        requests: Requests in the order produced by the compiler.
        max_batch_size: Requests per API call (defaults to the configured size).

    Returns:
        BatchUpdateMetadata with per-phase request/API-call counts and timing.
    """
    if max_batch_size is None:
        max_batch_size = get_settings().max_batch_size

    overall_start = time.perf_counter()
    metadata = BatchUpdateMetadata(total_requests=len(requests))

    for phase, phase_requests in split_into_phases(requests).items():
        if not phase_requests:
            continue

        phase_start = time.perf_counter()
        phase_metadata = metadata.phases[phase]
        phase_metadata.requests = len(phase_requests)

        for chunk in chunk_requests(phase_requests, max_batch_size):
            await execute_batch_update(service, document_id, chunk)
            phase_metadata.api_calls += 1
            logger.debug(f"[{phase}] applied {len(chunk)} request(s) to {document_id}")

        phase_metadata.elapsed_ms = _elapsed_ms(phase_start)
        metadata.total_api_calls += phase_metadata.api_calls
        logger.info(
            f"[batch_update] {phase} phase: {phase_metadata.requests} requests in "
            f"{phase_metadata.api_calls} call(s), {phase_metadata.elapsed_ms}ms"
        )

    metadata.total_elapsed_ms = _elapsed_ms(overall_start)
    return metadata
