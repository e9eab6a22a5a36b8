"""Shared pytest fixtures for gdocs-markdown tests."""

from unittest.mock import MagicMock

import pytest

from gdocs_markdown.config import reload_settings

_ENV_VARS = (
    "GDOCS_MARKDOWN_MAX_BATCH_SIZE",
    "GDOCS_MARKDOWN_FIRST_HEADING_AS_TITLE",
    "GDOCS_MARKDOWN_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test against default settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reload_settings()
    yield
    monkeypatch.undo()
    reload_settings()


@pytest.fixture
def env_override(monkeypatch):
    """Helper to override environment variables and reload settings."""

    def _override(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)
        return reload_settings()

    return _override


@pytest.fixture
def mock_docs_service():
    """Create a mock Google Docs service with an empty document."""
    service = MagicMock()
    service.documents.return_value.get.return_value.execute.return_value = {
        "documentId": "doc123",
        "body": {
            "content": [
                {"endIndex": 1, "sectionBreak": {}},
                {"startIndex": 1, "endIndex": 2, "paragraph": {"elements": [{"textRun": {"content": "\n"}}]}},
            ]
        },
    }
    service.documents.return_value.batchUpdate.return_value.execute.return_value = {"replies": []}
    return service


@pytest.fixture
def batch_calls():
    """Return a helper listing the request lists sent to documents().batchUpdate, in call order."""

    def _calls(service) -> list[list[dict]]:
        return [call.kwargs["body"]["requests"] for call in service.documents.return_value.batchUpdate.call_args_list]

    return _calls


_LIST_GLYPHS = {
    "NUMBERED_DECIMAL_ALPHA_ROMAN": {"glyphType": "DECIMAL"},
    "BULLET_DISC_CIRCLE_SQUARE": {"glyphSymbol": "●"},
    "BULLET_CHECKBOX": {"glyphType": "GLYPH_TYPE_UNSPECIFIED"},
}


def apply_requests_to_document(requests: list[dict]) -> dict:
    """
    Apply compiled requests to an empty in-memory document.

    Supports insertText, updateTextStyle, updateParagraphStyle (named styles)
    and createParagraphBullets, and returns `documents.get`-shaped JSON
    (body content + lists) suitable for the Markdown renderer.
    """
    chars: list[str] = []
    for request in requests:
        if "insertText" in request:
            offset = request["insertText"]["location"]["index"] - 1
            chars[offset:offset] = list(request["insertText"]["text"])

    styles: list[dict] = [{} for _ in chars]

    paragraphs: list[dict] = []
    start = 0
    for i, char in enumerate(chars):
        if char == "\n":
            paragraphs.append({"start": start, "end": i + 1, "style": {}, "bullet": None})
            start = i + 1
    if start < len(chars):
        paragraphs.append({"start": start, "end": len(chars), "style": {}, "bullet": None})

    def overlapping(range_dict):
        lo, hi = range_dict["startIndex"] - 1, range_dict["endIndex"] - 1
        return [p for p in paragraphs if p["start"] < hi and p["end"] > lo]

    for request in requests:
        if "updateTextStyle" in request:
            body = request["updateTextStyle"]
            for i in range(body["range"]["startIndex"] - 1, body["range"]["endIndex"] - 1):
                styles[i].update(body["textStyle"])
        elif "updateParagraphStyle" in request:
            body = request["updateParagraphStyle"]
            named = body["paragraphStyle"].get("namedStyleType")
            if named:
                for paragraph in overlapping(body["range"]):
                    paragraph["style"]["namedStyleType"] = named
        elif "createParagraphBullets" in request:
            body = request["createParagraphBullets"]
            for paragraph in overlapping(body["range"]):
                paragraph["bullet"] = body["bulletPreset"]

    content = []
    for paragraph in paragraphs:
        start, end = paragraph["start"], paragraph["end"]
        element: dict = {"paragraphStyle": dict(paragraph["style"]), "elements": []}
        if paragraph["bullet"]:
            # createParagraphBullets consumes leading TABs as nesting
            nesting = 0
            while start < end and chars[start] == "\t":
                nesting += 1
                start += 1
            element["bullet"] = {"listId": paragraph["bullet"], "nestingLevel": nesting}

        run_start = start
        for i in range(start, end + 1):
            if i == end or (i > run_start and styles[i] != styles[run_start]):
                if i > run_start:
                    element["elements"].append(
                        {"textRun": {"content": "".join(chars[run_start:i]), "textStyle": dict(styles[run_start])}}
                    )
                run_start = i
        content.append({"startIndex": paragraph["start"] + 1, "endIndex": paragraph["end"] + 1, "paragraph": element})

    lists = {
        preset: {"listProperties": {"nestingLevels": [dict(glyph) for _ in range(9)]}}
        for preset, glyph in _LIST_GLYPHS.items()
    }
    return {"body": {"content": content}, "lists": lists}


@pytest.fixture
def apply_requests():
    return apply_requests_to_document
