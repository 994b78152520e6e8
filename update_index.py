"""Backfill the catalog from a channel's history.

Walks every video message of SOURCE_CHANNEL with a Telethon user session and
feeds it through the same duplicate gate as live uploads, so running it
twice stores nothing new.
"""
import asyncio
import logging

from telethon import TelegramClient

from access import AllowListPolicy
from bot_config import (
    API_HASH,
    API_ID,
    MONGODB_COLLECTION,
    MONGODB_DB,
    MONGODB_URI,
    SOURCE_CHANNEL,
    TELETHON_SESSION,
)
from caption_utils import normalize
from catalog import Catalog
from ingest import Outcome, ingest

logger = logging.getLogger(__name__)


def is_video(message) -> bool:
    if message.video:
        return True
    doc = message.document
    return bool(doc and doc.mime_type and doc.mime_type.startswith("video/"))


def raw_caption(message) -> str:
    if message.message:
        return message.message
    return (message.file.name or "") if message.file else ""


async def backfill(client, catalog, channel, limit=None):
    policy = AllowListPolicy([])
    counts = {Outcome.STORED: 0, Outcome.DUPLICATE: 0}
    skipped = 0
    async for message in client.iter_messages(channel, limit=limit):
        if not is_video(message):
            continue
        caption = raw_caption(message)
        if not normalize(caption):
            skipped += 1
            continue
        # Telethon file ids are not valid for the bot, so deliver by copying the channel message
        result = await ingest(
            catalog,
            policy,
            None,
            caption,
            size=message.file.size,
            source_chat_id=message.chat_id,
            source_message_id=message.id,
        )
        counts[result.outcome] += 1
        seen = sum(counts.values())
        if seen % 500 == 0:
            logger.info(f"✅ Processed {seen} videos...")
    logger.info(
        f"📦 Stored {counts[Outcome.STORED]} new, {counts[Outcome.DUPLICATE]} duplicates, {skipped} without caption"
    )
    return counts


async def main():
    if not (API_ID and API_HASH and SOURCE_CHANNEL):
        raise SystemExit("Set API_ID, API_HASH and SOURCE_CHANNEL to backfill the catalog.")
    catalog = Catalog(MONGODB_URI, MONGODB_DB, MONGODB_COLLECTION)
    await catalog.setup()
    channel = int(SOURCE_CHANNEL) if SOURCE_CHANNEL.lstrip("-").isdigit() else SOURCE_CHANNEL
    try:
        async with TelegramClient(TELETHON_SESSION, API_ID, API_HASH) as client:
            me = await client.get_me()
            logger.info(f"✅ Logged in as: {me.username or me.first_name}")
            await backfill(client, catalog, channel)
    finally:
        catalog.close()


def run():
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    asyncio.run(main())


if __name__ == "__main__":
    run()
