import base64
import re
import zlib
from datetime import datetime

from .errors import LinkValidationError
from .models import Link

LINKDATE_FORMAT = "%Y%m%d_%H%M%S"

# A bare "&" or a markup character; "&" that already starts a character
# reference is left alone so escaping twice changes nothing.
_UNSAFE = re.compile(r"&(?!#\d+;|#[xX][0-9a-fA-F]+;|[A-Za-z][A-Za-z0-9]*;)|[<>\"']")
_REPLACEMENTS = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
}
_TAG_SEPARATORS = re.compile(r"[\s,]+")
_DAY = re.compile(r"^\d{8}$")


def small_hash(text: str) -> str:
    """
    Short, stable token for a string, used as a public permalink:
    the CRC-32 of the text as 4 big-endian bytes, URL-safe base64, no padding.
    """
    digest = zlib.crc32(text.encode("utf-8")).to_bytes(4, "big")
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def escape_markup(text: str) -> str:
    return _UNSAFE.sub(lambda m: _REPLACEMENTS[m.group(0)[0]], text)


def sanitize_link(link: Link) -> None:
    """Escape the text fields of a link in place before it is rendered."""
    link.url = escape_markup(link.url.strip())
    link.title = escape_markup(link.title)
    link.description = escape_markup(link.description)
    link.tags = escape_markup(link.tags)


def split_tags(expression: str) -> list[str]:
    return [t for t in _TAG_SEPARATORS.split(expression) if t]


def linkdate_from(dt: datetime) -> str:
    return dt.strftime(LINKDATE_FORMAT)


def check_day(day: str) -> str:
    if not isinstance(day, str) or not _DAY.match(day):
        raise LinkValidationError(f"Day must be in the form YYYYMMDD, got {day!r}")
    return day
