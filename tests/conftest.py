from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from access import AllowListPolicy
from catalog import VideoRecord
from search import matches

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class MemoryCatalog:
    """Dict-backed stand-in for the MongoDB catalog."""

    def __init__(self):
        self.records = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    def _tick(self):
        return EPOCH + timedelta(seconds=next(self._clock))

    def _ordered(self):
        return sorted(self.records.values(), key=lambda r: r.updated_at, reverse=True)

    async def setup(self):
        pass

    def close(self):
        pass

    async def find_by_caption_pattern(self, pattern):
        return [r for r in self._ordered() if matches(r.caption, pattern)]

    async def find_by_id(self, video_id):
        return self.records.get(video_id)

    async def find_duplicate(self, caption, size, file_unique_id=None):
        for r in self.records.values():
            if (r.caption, r.size) == (caption, size):
                return r
            if file_unique_id and r.file_unique_id == file_unique_id:
                return r
        return None

    async def count_all(self):
        return len(self.records)

    async def insert(self, record):
        record.id = f"{next(self._ids):024x}"
        record.updated_at = self._tick()
        self.records[record.id] = record
        return record

    async def update_caption(self, video_id, new_caption):
        record = self.records.get(video_id)
        if record is None:
            return None
        record.caption = new_caption
        record.updated_at = self._tick()
        return record

    async def iter_all(self):
        for record in list(self.records.values()):
            yield record

    async def captions(self, limit=5000):
        return [r.caption for r in self._ordered()][:limit]

    def add(self, caption, size=None, file_id=None):
        record = VideoRecord(id=None, file_id=file_id or f"file-{caption}", caption=caption, size=size)
        record.id = f"{next(self._ids):024x}"
        record.updated_at = self._tick()
        self.records[record.id] = record
        return record


@pytest.fixture()
def catalog() -> MemoryCatalog:
    return MemoryCatalog()


@pytest.fixture()
def policy() -> AllowListPolicy:
    return AllowListPolicy(["uploader_one", "uploader_two"])


@pytest.fixture()
def context(catalog, policy):
    ctx = MagicMock()
    ctx.bot_data = {"catalog": catalog, "policy": policy}
    ctx.bot = AsyncMock()
    ctx.application = MagicMock()
    # close scheduled coroutines so they are not reported as never awaited
    ctx.application.create_task.side_effect = lambda coro: coro.close()
    return ctx


@pytest.fixture()
def make_message():
    def _make(text=None, chat_type="private"):
        message = MagicMock()
        message.text = text
        message.chat.type = chat_type
        message.chat.id = 100
        message.chat_id = 100
        message.reply_text = AsyncMock()
        return message

    return _make
