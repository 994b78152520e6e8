import enum
import logging
from dataclasses import dataclass
from typing import Optional

from access import Action
from caption_utils import normalize
from catalog import VideoRecord

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    STORED = "stored"
    DUPLICATE = "duplicate"


@dataclass
class IngestResult:
    outcome: Outcome
    record: VideoRecord
    notify: bool = False


async def ingest(
    catalog,
    policy,
    file_id,
    raw_caption,
    size=None,
    submitter=None,
    file_unique_id=None,
    source_chat_id=None,
    source_message_id=None,
):
    """Store an uploaded video unless the catalog already holds it.

    A submission is a duplicate when a record shares its normalized caption
    and size, or its Telegram ``file_unique_id``. ``notify`` tells the caller
    whether the submitter should hear about the outcome; ordinary uploaders
    never do.

    The duplicate lookup and the insert are separate round-trips, so two
    concurrent uploads of the same file can both be stored.
    """
    caption = normalize(raw_caption)
    existing = await catalog.find_duplicate(caption, size, file_unique_id)
    if existing is not None:
        logger.info(f"Duplicate upload from {submitter or 'anonymous'}: {caption!r} (matches {existing.id})")
        return IngestResult(Outcome.DUPLICATE, existing, notify=policy.allows(submitter, Action.ACK_DUPLICATE))

    record = await catalog.insert(
        VideoRecord(
            id=None,
            file_id=file_id,
            caption=caption,
            size=size,
            file_unique_id=file_unique_id,
            source_chat_id=source_chat_id,
            source_message_id=source_message_id,
        )
    )
    logger.info(f"Stored video {record.id}: {caption!r}")
    return IngestResult(Outcome.STORED, record, notify=policy.allows(submitter, Action.ACK_STORED))
