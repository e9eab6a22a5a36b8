"""
Bidirectional Markdown <-> Google Docs conversion.

This package compiles Markdown into Google Docs API batchUpdate requests and
renders fetched Google Docs documents back into Markdown.
"""

from gdocs_markdown.batch import (
    BatchUpdateMetadata,
    PhaseMetadata,
    chunk_requests,
    execute_batch_update,
    execute_batch_update_with_splitting,
    split_into_phases,
)
from gdocs_markdown.config import (
    ConversionOptions,
    TransformerSettings,
    configure_logging,
    get_settings,
)
from gdocs_markdown.docs_to_markdown import docs_json_to_markdown
from gdocs_markdown.errors import (
    APIError,
    GDocsMarkdownError,
    MarkdownConversionError,
    MarkdownStructureError,
    PermissionDeniedError,
    RateLimitError,
    ResourceNotFoundError,
    ValidationError,
)
from gdocs_markdown.markdown_to_docs import (
    MarkdownToDocsConverter,
    compile_tokens,
    convert_markdown_to_operations,
    convert_markdown_to_requests,
    create_parser,
)
from gdocs_markdown.operations import (
    BulletPreset,
    CreateParagraphBullets,
    EditOperation,
    InsertText,
    TextStyle,
    UpdateParagraphStyle,
    UpdateTextStyle,
    to_requests,
)
from gdocs_markdown.transformer import (
    InsertMarkdownResult,
    append_markdown,
    extract_markdown,
    find_tab_by_id,
    format_insert_result,
    insert_markdown,
    replace_document_with_markdown,
)

__all__ = [
    "APIError",
    "append_markdown",
    "BatchUpdateMetadata",
    "BulletPreset",
    "chunk_requests",
    "compile_tokens",
    "configure_logging",
    "ConversionOptions",
    "convert_markdown_to_operations",
    "convert_markdown_to_requests",
    "create_parser",
    "CreateParagraphBullets",
    "docs_json_to_markdown",
    "EditOperation",
    "execute_batch_update",
    "execute_batch_update_with_splitting",
    "extract_markdown",
    "find_tab_by_id",
    "format_insert_result",
    "GDocsMarkdownError",
    "get_settings",
    "insert_markdown",
    "InsertMarkdownResult",
    "InsertText",
    "MarkdownConversionError",
    "MarkdownStructureError",
    "MarkdownToDocsConverter",
    "PermissionDeniedError",
    "PhaseMetadata",
    "RateLimitError",
    "replace_document_with_markdown",
    "ResourceNotFoundError",
    "split_into_phases",
    "TextStyle",
    "to_requests",
    "TransformerSettings",
    "UpdateParagraphStyle",
    "UpdateTextStyle",
    "ValidationError",
]
