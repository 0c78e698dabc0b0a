"""
Classification of declared media types.

The crawl engine only expands resources whose Content-Type header names one
of a fixed set of textual formats. Everything else ends that branch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class TextType(Enum):
    """Textual subtypes that are parsed for further links."""
    PLAIN = 'plain'
    HTML = 'html'
    CSS = 'css'
    JAVASCRIPT = 'javascript'
    XML = 'xml'
    MARKDOWN = 'markdown'
    CSV = 'csv'
    RICHTEXT = 'richtext'
    TAB_SEPARATED_VALUES = 'tab-separated-values'


@dataclass(frozen=True)
class Text:
    subtype: TextType

    @property
    def expandable(self) -> bool:
        return True


@dataclass(frozen=True)
class Other:
    """Any declared type outside the allow-list, kept verbatim."""
    raw: str

    @property
    def expandable(self) -> bool:
        return False


@dataclass(frozen=True)
class Unknown:
    """The header was missing or could not be read as text."""

    @property
    def expandable(self) -> bool:
        return False


ContentType = Union[Text, Other, Unknown]

_TEXT_TYPES = {f"text/{text_type.value}": text_type for text_type in TextType}


def classify(header: Optional[Union[str, bytes]]) -> ContentType:
    """
    Map a Content-Type header value to Text, Other or Unknown.

    Parameters after ``;`` (charset, boundary) are ignored and the media type
    is compared case-insensitively.
    """
    if header is None:
        return Unknown()

    if isinstance(header, bytes):
        try:
            header = header.decode('ascii')
        except UnicodeDecodeError:
            return Unknown()

    essence = header.split(';', 1)[0].strip().lower()
    if not essence:
        return Unknown()

    text_type = _TEXT_TYPES.get(essence)
    if text_type is not None:
        return Text(text_type)

    return Other(header)
