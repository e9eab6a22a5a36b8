"""
Google Docs edit operations produced by the Markdown compiler.

Each operation is an immutable dataclass that knows how to encode itself as a
single Google Docs API `batchUpdate` request via `to_request()`. The closed
union `EditOperation` covers every request kind the compiler emits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Named paragraph styles
NAMED_STYLE_TITLE = "TITLE"

# Named style mappings for headings (h1 -> HEADING_1, etc.)
HEADING_STYLE_MAP: dict[str, str] = {
    "h1": "HEADING_1",
    "h2": "HEADING_2",
    "h3": "HEADING_3",
    "h4": "HEADING_4",
    "h5": "HEADING_5",
    "h6": "HEADING_6",
}

# Horizontal rule styling constants
# Google Docs has no native HR, so the rule is an empty paragraph with a bottom border
HR_BORDER_WIDTH_PT = 1.0
HR_BORDER_COLOR = {"red": 0.75, "green": 0.75, "blue": 0.75}
HR_PADDING_BELOW_PT = 6.0


class BulletPreset(str, Enum):
    """Bullet list presets for createParagraphBullets."""

    UNORDERED = "BULLET_DISC_CIRCLE_SQUARE"
    ORDERED = "NUMBERED_DECIMAL_ALPHA_ROMAN"
    CHECKBOX = "BULLET_CHECKBOX"


def hex_to_rgb(color: str) -> dict[str, float]:
    """Convert a #RRGGBB string to a Docs rgbColor dict with 0-1 components."""
    if not isinstance(color, str) or not color.startswith("#") or len(color) != 7:
        raise ValueError(f"Color must be a hex string like '#RRGGBB', got {color!r}")
    try:
        red, green, blue = (int(color[i : i + 2], 16) / 255 for i in (1, 3, 5))
    except ValueError as e:
        raise ValueError(f"Color must be a hex string like '#RRGGBB', got {color!r}") from e
    return {"red": red, "green": green, "blue": blue}


def build_range(start_index: int, end_index: int, tab_id: str | None = None) -> dict[str, Any]:
    """Build a Docs Range, attaching the tab ID when targeting a tab."""
    range_dict: dict[str, Any] = {"startIndex": start_index, "endIndex": end_index}
    if tab_id:
        range_dict["tabId"] = tab_id
    return range_dict


def build_location(index: int, tab_id: str | None = None) -> dict[str, Any]:
    """Build a Docs Location, attaching the tab ID when targeting a tab."""
    location: dict[str, Any] = {"index": index}
    if tab_id:
        location["tabId"] = tab_id
    return location


@dataclass(frozen=True)
class TextStyle:
    """
    Character-level style payload for updateTextStyle.

    Only attributes that are not None are encoded, and the field mask lists
    exactly those attributes.
    """

    bold: bool | None = None
    italic: bool | None = None
    strikethrough: bool | None = None
    font_family: str | None = None
    foreground_color: str | None = None
    background_color: str | None = None
    link_url: str | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.bold,
                self.italic,
                self.strikethrough,
                self.font_family,
                self.foreground_color,
                self.background_color,
                self.link_url,
            )
        )

    def to_api(self) -> tuple[dict[str, Any], list[str]]:
        """Return the textStyle dict and its field names."""
        text_style: dict[str, Any] = {}
        fields: list[str] = []

        if self.bold is not None:
            text_style["bold"] = self.bold
            fields.append("bold")
        if self.italic is not None:
            text_style["italic"] = self.italic
            fields.append("italic")
        if self.strikethrough is not None:
            text_style["strikethrough"] = self.strikethrough
            fields.append("strikethrough")
        if self.font_family is not None:
            text_style["weightedFontFamily"] = {"fontFamily": self.font_family}
            fields.append("weightedFontFamily")
        if self.foreground_color is not None:
            text_style["foregroundColor"] = {"color": {"rgbColor": hex_to_rgb(self.foreground_color)}}
            fields.append("foregroundColor")
        if self.background_color is not None:
            text_style["backgroundColor"] = {"color": {"rgbColor": hex_to_rgb(self.background_color)}}
            fields.append("backgroundColor")
        if self.link_url is not None:
            text_style["link"] = {"url": self.link_url}
            fields.append("link")

        return text_style, fields


@dataclass(frozen=True)
class InsertText:
    """Insert `text` at `index`."""

    index: int
    text: str
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return {"insertText": {"location": build_location(self.index, self.tab_id), "text": self.text}}


@dataclass(frozen=True)
class UpdateTextStyle:
    """Apply a character style to the range [start_index, end_index)."""

    start_index: int
    end_index: int
    style: TextStyle
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        text_style, fields = self.style.to_api()
        return {
            "updateTextStyle": {
                "range": build_range(self.start_index, self.end_index, self.tab_id),
                "textStyle": text_style,
                "fields": ",".join(fields),
            }
        }


@dataclass(frozen=True)
class UpdateParagraphStyle:
    """Apply a paragraph style to the paragraphs overlapping [start_index, end_index)."""

    start_index: int
    end_index: int
    paragraph_style: dict[str, Any] = field(default_factory=dict)
    fields: str = ""
    tab_id: str | None = None

    @classmethod
    def named_style(
        cls, start_index: int, end_index: int, named_style_type: str, tab_id: str | None = None
    ) -> UpdateParagraphStyle:
        return cls(start_index, end_index, {"namedStyleType": named_style_type}, "namedStyleType", tab_id)

    @classmethod
    def horizontal_rule(cls, start_index: int, end_index: int, tab_id: str | None = None) -> UpdateParagraphStyle:
        """Thin solid bottom border used as a horizontal rule placeholder."""
        border = {
            "color": {"color": {"rgbColor": dict(HR_BORDER_COLOR)}},
            "width": {"magnitude": HR_BORDER_WIDTH_PT, "unit": "PT"},
            "padding": {"magnitude": HR_PADDING_BELOW_PT, "unit": "PT"},
            "dashStyle": "SOLID",
        }
        return cls(start_index, end_index, {"borderBottom": border}, "borderBottom", tab_id)

    @property
    def named_style_type(self) -> str | None:
        return self.paragraph_style.get("namedStyleType")

    def to_request(self) -> dict[str, Any]:
        return {
            "updateParagraphStyle": {
                "range": build_range(self.start_index, self.end_index, self.tab_id),
                "paragraphStyle": self.paragraph_style,
                "fields": self.fields,
            }
        }


@dataclass(frozen=True)
class CreateParagraphBullets:
    """Turn the paragraphs overlapping [start_index, end_index) into a list."""

    start_index: int
    end_index: int
    bullet_preset: BulletPreset
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return {
            "createParagraphBullets": {
                "range": build_range(self.start_index, self.end_index, self.tab_id),
                "bulletPreset": BulletPreset(self.bullet_preset).value,
            }
        }


EditOperation = Union[InsertText, UpdateTextStyle, UpdateParagraphStyle, CreateParagraphBullets]


def to_requests(operations: list[EditOperation]) -> list[dict[str, Any]]:
    """Encode operations as Google Docs API requests, preserving order."""
    return [operation.to_request() for operation in operations]
