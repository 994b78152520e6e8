import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, ReturnDocument

logger = logging.getLogger(__name__)


def utcnow():
    return datetime.now(timezone.utc)


@dataclass
class VideoRecord:
    id: Optional[str]
    file_id: Optional[str]
    caption: str
    size: Optional[int] = None
    file_unique_id: Optional[str] = None
    updated_at: Optional[datetime] = None
    # channel message holding the video, for records indexed from channel history
    source_chat_id: Optional[int] = None
    source_message_id: Optional[int] = None

    @classmethod
    def from_doc(cls, doc) -> "VideoRecord":
        return cls(
            id=str(doc["_id"]),
            file_id=doc.get("fileId"),
            caption=doc.get("caption", ""),
            size=doc.get("size"),
            file_unique_id=doc.get("fileUniqueId"),
            updated_at=doc.get("updatedAt"),
            source_chat_id=doc.get("sourceChatId"),
            source_message_id=doc.get("sourceMessageId"),
        )

    def to_doc(self) -> dict:
        return {
            "fileId": self.file_id,
            "caption": self.caption,
            "size": self.size,
            "fileUniqueId": self.file_unique_id,
            "updatedAt": self.updated_at,
            "sourceChatId": self.source_chat_id,
            "sourceMessageId": self.source_message_id,
        }


def _object_id(video_id):
    if not ObjectId.is_valid(video_id):
        return None
    return ObjectId(video_id)


class Catalog:
    """MongoDB collection of VideoRecord documents.

    Construct once at startup and hand the instance to whatever needs it;
    ``setup()`` is safe to call any number of times.
    """

    SORT = [("updatedAt", DESCENDING), ("_id", ASCENDING)]

    def __init__(self, uri, db_name, collection="videos", client=None):
        self._client = client or AsyncIOMotorClient(uri)
        self._col = self._client[db_name][collection]
        self._ready = False
        self._lock = asyncio.Lock()

    async def setup(self):
        async with self._lock:
            if self._ready:
                return
            await self._client.admin.command("ping")
            await self._col.create_index([("caption", ASCENDING), ("size", ASCENDING)])
            await self._col.create_index("fileUniqueId", sparse=True)
            await self._col.create_index([("updatedAt", DESCENDING)])
            self._ready = True
            logger.info(f"✅ Catalog ready: {self._col.full_name}")

    def close(self):
        self._client.close()

    async def find_by_caption_pattern(self, pattern) -> List[VideoRecord]:
        cursor = self._col.find(pattern.to_mongo()).sort(self.SORT)
        return [VideoRecord.from_doc(doc) async for doc in cursor]

    async def find_by_id(self, video_id) -> Optional[VideoRecord]:
        oid = _object_id(video_id)
        if oid is None:
            return None
        doc = await self._col.find_one({"_id": oid})
        return VideoRecord.from_doc(doc) if doc else None

    async def find_duplicate(self, caption, size, file_unique_id=None) -> Optional[VideoRecord]:
        keys = [{"caption": caption, "size": size}]
        if file_unique_id:
            keys.append({"fileUniqueId": file_unique_id})
        doc = await self._col.find_one({"$or": keys})
        return VideoRecord.from_doc(doc) if doc else None

    async def count_all(self) -> int:
        return await self._col.count_documents({})

    async def insert(self, record: VideoRecord) -> VideoRecord:
        record.updated_at = record.updated_at or utcnow()
        result = await self._col.insert_one(record.to_doc())
        record.id = str(result.inserted_id)
        return record

    async def update_caption(self, video_id, new_caption) -> Optional[VideoRecord]:
        oid = _object_id(video_id)
        if oid is None:
            return None
        doc = await self._col.find_one_and_update(
            {"_id": oid},
            {"$set": {"caption": new_caption, "updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return VideoRecord.from_doc(doc) if doc else None

    async def iter_all(self):
        async for doc in self._col.find({}).sort("_id", ASCENDING):
            yield VideoRecord.from_doc(doc)

    async def captions(self, limit=5000) -> List[str]:
        cursor = self._col.find({}, {"caption": 1}).sort(self.SORT).limit(limit)
        return [doc.get("caption", "") async for doc in cursor]
