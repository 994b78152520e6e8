import math
import re
from dataclasses import dataclass, field
from typing import List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from bot_config import PAGE_SIZE

MAX_LABEL = 30
BYTES_PER_MB = 1024 * 1024

WATCH = "watch"
NEXT = "next"
PREV = "prev"

QUERY_RE = re.compile(r"matching '([^']*)'")


@dataclass
class Page:
    number: int
    total_pages: int
    match_count: int
    buttons: List[list] = field(default_factory=list)
    has_prev: bool = False
    has_next: bool = False

    @property
    def markup(self) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup(self.buttons)


def format_size(size_bytes) -> str:
    if not size_bytes:
        return "0 MB"
    return f"{size_bytes / BYTES_PER_MB:.2f} MB"


def truncate(caption: str, limit: int = MAX_LABEL) -> str:
    caption = caption or ""
    if len(caption) <= limit:
        return caption
    return caption[: limit - 3] + "..."


def button_label(record) -> str:
    label = truncate(record.caption)
    if record.size:
        return f"[{format_size(record.size)}] {label}"
    return label


def total_pages(match_count: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(match_count / page_size)


def make_payload(action: str, value) -> str:
    return f"{action}_{value}"


def parse_payload(data: str):
    """Split ``watch_<id>`` / ``next_<page>`` / ``prev_<page>`` payloads.

    Returns ``(action, value)`` or ``None`` for anything unrecognized.
    Page payloads carry the page the user is currently looking at.
    """
    action, sep, value = (data or "").partition("_")
    if not sep or not value:
        return None
    if action == WATCH:
        return action, value
    if action in (NEXT, PREV) and value.isdecimal():
        return action, int(value)
    return None


def render(records, page: int, page_size: int = PAGE_SIZE) -> Optional[Page]:
    """Build the keyboard for one page of results, or None if ``page`` is out of range."""
    pages = total_pages(len(records), page_size)
    if page < 1 or page > pages:
        return None
    start = (page - 1) * page_size
    buttons = [
        [InlineKeyboardButton(button_label(rec), callback_data=make_payload(WATCH, rec.id))]
        for rec in records[start:start + page_size]
    ]
    nav = []
    if page > 1:
        nav.append(InlineKeyboardButton("Prev", callback_data=make_payload(PREV, page)))
    if page < pages:
        nav.append(InlineKeyboardButton("Next", callback_data=make_payload(NEXT, page)))
    if nav:
        buttons.append(nav)
    return Page(
        number=page,
        total_pages=pages,
        match_count=len(records),
        buttons=buttons,
        has_prev=page > 1,
        has_next=page < pages,
    )


def results_text(query: str, page: Page) -> str:
    text = f"Found {page.match_count} videos matching '{query}'. Select one to watch:"
    if page.number > 1 or page.total_pages > 1:
        text = f"Page {page.number}/{page.total_pages}: " + text
    return text


def extract_query(message_text: str) -> Optional[str]:
    m = QUERY_RE.search(message_text or "")
    return m.group(1) if m else None
