"""
Unit tests for phased batchUpdate execution.
"""

from types import SimpleNamespace

import pytest
from googleapiclient.errors import HttpError

from gdocs_markdown.batch import (
    PHASE_DELETE,
    PHASE_FORMAT,
    PHASE_INSERT,
    chunk_requests,
    count_requests_by_type,
    execute_batch_update,
    execute_batch_update_with_splitting,
    request_phase,
    split_into_phases,
)
from gdocs_markdown.errors import (
    APIError,
    PermissionDeniedError,
    RateLimitError,
    ResourceNotFoundError,
    ValidationError,
)


def http_error(status, reason="Error"):
    return HttpError(SimpleNamespace(status=status, reason=reason), b'{"error": {"message": "boom"}}')


def insert(i):
    return {"insertText": {"location": {"index": i}, "text": "x"}}


def bold(i):
    return {"updateTextStyle": {"range": {"startIndex": i, "endIndex": i + 1}, "textStyle": {"bold": True}}}


DELETE = {"deleteContentRange": {"range": {"startIndex": 1, "endIndex": 5}}}


class TestPhaseSplitting:
    """Tests for grouping requests into delete/insert/format phases."""

    def test_request_phase_classification(self):
        assert request_phase(DELETE) == PHASE_DELETE
        assert request_phase({"deleteParagraphBullets": {}}) == PHASE_DELETE
        assert request_phase(insert(1)) == PHASE_INSERT
        assert request_phase({"insertTable": {}}) == PHASE_INSERT
        assert request_phase(bold(1)) == PHASE_FORMAT
        assert request_phase({"createParagraphBullets": {}}) == PHASE_FORMAT

    def test_empty_request_raises(self):
        with pytest.raises(ValidationError):
            request_phase({})

    def test_order_within_phase_is_preserved(self):
        requests = [bold(5), insert(1), DELETE, bold(2), insert(2)]
        phases = split_into_phases(requests)
        assert phases[PHASE_DELETE] == [DELETE]
        assert phases[PHASE_INSERT] == [insert(1), insert(2)]
        assert phases[PHASE_FORMAT] == [bold(5), bold(2)]

    def test_count_requests_by_type(self):
        assert count_requests_by_type([insert(1), insert(2), bold(1)]) == {"insertText": 2, "updateTextStyle": 1}


class TestChunking:
    def test_chunks_are_consecutive(self):
        requests = [insert(i) for i in range(7)]
        chunks = chunk_requests(requests, 3)
        assert [len(chunk) for chunk in chunks] == [3, 3, 1]
        assert [r for chunk in chunks for r in chunk] == requests

    def test_empty_input(self):
        assert chunk_requests([], 5) == []

    def test_invalid_size_raises(self):
        with pytest.raises(ValidationError):
            chunk_requests([insert(1)], 0)


class TestExecuteBatchUpdate:
    @pytest.mark.asyncio
    async def test_sends_single_call(self, mock_docs_service, batch_calls):
        result = await execute_batch_update(mock_docs_service, "doc123", [insert(1)])

        assert result == {"replies": []}
        assert batch_calls(mock_docs_service) == [[insert(1)]]
        call = mock_docs_service.documents.return_value.batchUpdate.call_args
        assert call.kwargs["documentId"] == "doc123"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_class",
        [(404, ResourceNotFoundError), (403, PermissionDeniedError), (429, RateLimitError), (500, APIError)],
    )
    async def test_http_errors_are_mapped(self, mock_docs_service, status, error_class):
        mock_docs_service.documents.return_value.batchUpdate.return_value.execute.side_effect = http_error(status)

        with pytest.raises(error_class) as exc_info:
            await execute_batch_update(mock_docs_service, "doc123", [insert(1)])

        assert exc_info.value.status_code == status
        assert isinstance(exc_info.value.__cause__, HttpError)


class TestExecuteWithSplitting:
    """Tests for three-phase chunked execution."""

    @pytest.mark.asyncio
    async def test_phases_run_in_order(self, mock_docs_service, batch_calls):
        requests = [insert(1), bold(1), DELETE, insert(2)]

        metadata = await execute_batch_update_with_splitting(mock_docs_service, "doc123", requests)

        assert batch_calls(mock_docs_service) == [[DELETE], [insert(1), insert(2)], [bold(1)]]
        assert metadata.total_requests == 4
        assert metadata.total_api_calls == 3
        assert metadata.phases[PHASE_DELETE].requests == 1
        assert metadata.phases[PHASE_INSERT].requests == 2
        assert metadata.phases[PHASE_FORMAT].api_calls == 1

    @pytest.mark.asyncio
    async def test_empty_phases_make_no_calls(self, mock_docs_service, batch_calls):
        metadata = await execute_batch_update_with_splitting(mock_docs_service, "doc123", [insert(1)])

        assert batch_calls(mock_docs_service) == [[insert(1)]]
        assert metadata.phases[PHASE_DELETE].api_calls == 0
        assert metadata.phases[PHASE_FORMAT].api_calls == 0

    @pytest.mark.asyncio
    async def test_no_requests_no_calls(self, mock_docs_service, batch_calls):
        metadata = await execute_batch_update_with_splitting(mock_docs_service, "doc123", [])

        assert batch_calls(mock_docs_service) == []
        assert metadata.total_api_calls == 0

    @pytest.mark.asyncio
    async def test_each_phase_is_chunked(self, mock_docs_service, batch_calls):
        inserts = [insert(i) for i in range(1, 6)]
        formats = [bold(i) for i in range(1, 4)]

        metadata = await execute_batch_update_with_splitting(
            mock_docs_service, "doc123", inserts + formats, max_batch_size=2
        )

        assert [len(call) for call in batch_calls(mock_docs_service)] == [2, 2, 1, 2, 1]
        assert [r for call in batch_calls(mock_docs_service) for r in call] == inserts + formats
        assert metadata.phases[PHASE_INSERT].api_calls == 3
        assert metadata.phases[PHASE_FORMAT].api_calls == 2

    @pytest.mark.asyncio
    async def test_default_batch_size_comes_from_environment(self, mock_docs_service, batch_calls, env_override):
        env_override(GDOCS_MARKDOWN_MAX_BATCH_SIZE="3")

        await execute_batch_update_with_splitting(mock_docs_service, "doc123", [insert(i) for i in range(1, 8)])

        assert [len(call) for call in batch_calls(mock_docs_service)] == [3, 3, 1]

    @pytest.mark.asyncio
    async def test_failure_stops_execution(self, mock_docs_service, batch_calls):
        mock_docs_service.documents.return_value.batchUpdate.return_value.execute.side_effect = http_error(500)

        with pytest.raises(APIError):
            await execute_batch_update_with_splitting(mock_docs_service, "doc123", [insert(1), bold(1)])

        assert len(batch_calls(mock_docs_service)) == 1
