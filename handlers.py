import asyncio
import logging

from pymongo.errors import PyMongoError
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ChatMemberStatus, ChatType
from telegram.error import Forbidden, TelegramError
from telegram.ext import ContextTypes

import pagination
from access import Action
from bot_config import BOT_USERNAME, EPHEMERAL_TTL_SEC, REQUIRED_CHANNEL, START_LINKS
from caption_utils import decorate_caption, normalize
from ingest import Outcome, ingest
from search import EmptyQueryError, build_pattern, suggest

logger = logging.getLogger(__name__)

TRY_AGAIN = "Failed to search for videos. Please try again later."
JOINED = {ChatMemberStatus.MEMBER, ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.OWNER}


# --- Ephemeral messages ---
async def delete_later(bot, chat_id, message_id, delay=EPHEMERAL_TTL_SEC):
    await asyncio.sleep(delay)
    try:
        await bot.delete_message(chat_id=chat_id, message_id=message_id)
    except TelegramError as e:
        logger.warning(f"Failed to auto-delete message {message_id} in chat {chat_id}: {e}")


def schedule_delete(context: ContextTypes.DEFAULT_TYPE, message, delay=EPHEMERAL_TTL_SEC, chat_id=None):
    if message is None:
        return None
    # copy_message only returns a MessageId, so the chat has to be passed in
    chat_id = chat_id if chat_id is not None else message.chat_id
    return context.application.create_task(
        delete_later(context.bot, chat_id, message.message_id, delay)
    )


async def deliver(context: ContextTypes.DEFAULT_TYPE, user_id, record):
    caption = decorate_caption(record.caption)
    if record.source_message_id is not None:
        return await context.bot.copy_message(
            chat_id=user_id,
            from_chat_id=record.source_chat_id,
            message_id=record.source_message_id,
            caption=caption,
        )
    return await context.bot.send_video(user_id, record.file_id, caption=caption)


async def safe_answer(query, text=None):
    try:
        await query.answer(text)
    except TelegramError as e:
        logger.warning(f"Failed to answer callback {query.id}: {e}")


# --- Commands ---
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    name = (update.effective_user.first_name if update.effective_user else None) or "user"
    kb = InlineKeyboardMarkup([[InlineKeyboardButton(text, url=url)] for text, url in START_LINKS])
    msg = await update.message.reply_text(
        f"HELLO {name}, I AM A MOVIE BOT. ADD ME TO YOUR MOVIE CHAT GROUP.\n"
        "Send me a movie name to search.",
        reply_markup=kb,
    )
    schedule_delete(context, msg)


async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE):
    catalog = context.bot_data["catalog"]
    try:
        total = await catalog.count_all()
    except PyMongoError as e:
        logger.error(f"Catalog count failed: {e}")
        await update.message.reply_text("Failed to count videos. Please try again later.")
        return
    await update.message.reply_text(f"🗃️ {total} videos in the catalog.")


async def cmd_rewrite(update: Update, context: ContextTypes.DEFAULT_TYPE):
    user = update.effective_user
    policy = context.bot_data["policy"]
    if not policy.allows(user.username if user else None, Action.REWRITE_CAPTIONS):
        await update.message.reply_text("⛔ Unauthorized")
        return
    rewriter = context.bot_data.get("rewriter")
    if rewriter is None:
        await update.message.reply_text("AI captions are not configured (OPENAI_API_KEY is empty).")
        return
    await update.message.reply_text("🔄 Rewriting captions, this takes about a second per video...")
    try:
        summary = await rewriter.rewrite_all(context.bot_data["catalog"])
    except PyMongoError as e:
        logger.error(f"Caption rewrite aborted: {e}")
        await update.message.reply_text("Catalog unavailable, rewrite aborted. Please try again later.")
        return
    await update.message.reply_text(f"✅ {summary}")


# --- Search ---
async def search_text(update: Update, context: ContextTypes.DEFAULT_TYPE):
    catalog = context.bot_data["catalog"]
    try:
        pattern = build_pattern(update.message.text)
    except EmptyQueryError as e:
        await update.message.reply_text(str(e))
        return

    logger.info(f"Searching for: {pattern.tokens}")
    try:
        records = await catalog.find_by_caption_pattern(pattern)
        if not records:
            hints = suggest(pattern.text, await catalog.captions())
            text = f"No movie found with matching name '{pattern.text}'."
            if hints:
                text += "\nDid you mean:\n" + "\n".join(f"👉 {h}" for h in hints)
            msg = await update.message.reply_text(text)
            schedule_delete(context, msg)
            return
    except PyMongoError as e:
        logger.error(f"Error searching for videos: {e}")
        await update.message.reply_text(TRY_AGAIN)
        return

    page = pagination.render(records, 1)
    msg = await update.message.reply_text(pagination.results_text(pattern.text, page), reply_markup=page.markup)
    schedule_delete(context, msg)


async def on_page(update: Update, context: ContextTypes.DEFAULT_TYPE, action, current):
    query = update.callback_query
    target = current + 1 if action == pagination.NEXT else current - 1
    query_text = pagination.extract_query(getattr(query.message, "text", None))
    if not query_text:
        await safe_answer(query, "This search has expired, please search again.")
        return
    try:
        records = await context.bot_data["catalog"].find_by_caption_pattern(build_pattern(query_text))
    except EmptyQueryError:
        await safe_answer(query)
        return
    except PyMongoError as e:
        logger.error(f"Error paging results for {query_text!r}: {e}")
        await safe_answer(query, TRY_AGAIN)
        return

    page = pagination.render(records, target)
    if page is not None:
        try:
            await query.edit_message_text(pagination.results_text(query_text, page), reply_markup=page.markup)
        except TelegramError as e:
            logger.warning(f"Failed to edit results message: {e}")
    await safe_answer(query)


async def is_member(context: ContextTypes.DEFAULT_TYPE, user_id) -> bool:
    if not REQUIRED_CHANNEL:
        return True
    try:
        member = await context.bot.get_chat_member(chat_id=REQUIRED_CHANNEL, user_id=user_id)
    except TelegramError as e:
        logger.error(f"Error checking member status for user {user_id}: {e}")
        return False
    return member.status in JOINED


async def on_watch(update: Update, context: ContextTypes.DEFAULT_TYPE, action, video_id):
    query = update.callback_query
    await safe_answer(query)
    chat_id = query.message.chat.id if query.message else query.from_user.id
    try:
        record = await context.bot_data["catalog"].find_by_id(video_id)
    except PyMongoError as e:
        logger.error(f"Error handling 'watch' action: {e}")
        await context.bot.send_message(chat_id, "Failed to send the video. Please try again later.")
        return
    if record is None:
        await context.bot.send_message(chat_id, "Video not found.")
        return

    user_id = query.from_user.id
    if not await is_member(context, user_id):
        kb = InlineKeyboardMarkup([[InlineKeyboardButton("JOIN CHANNEL", url=f"https://t.me/{REQUIRED_CHANNEL.lstrip('@')}")]])
        msg = await context.bot.send_message(chat_id, "Join our channel first, then tap the video again.", reply_markup=kb)
        schedule_delete(context, msg)
        return

    try:
        sent = await deliver(context, user_id, record)
    except Forbidden:
        kb = InlineKeyboardMarkup([[InlineKeyboardButton("Start the bot", url=f"https://t.me/{BOT_USERNAME}")]])
        await context.bot.send_message(chat_id, "I can't message you yet. Start me in private and try again.", reply_markup=kb)
        return
    except TelegramError as e:
        logger.warning(f"Failed to deliver video {record.id} to {user_id}: {e}")
        await context.bot.send_message(chat_id, "Failed to send the video. Please try again later.")
        return
    schedule_delete(context, sent, chat_id=user_id)
    if query.message and query.message.chat.type != ChatType.PRIVATE:
        msg = await context.bot.send_message(chat_id, f"Sent you the video in private @{BOT_USERNAME}.")
        schedule_delete(context, msg)


ROUTES = {
    pagination.WATCH: on_watch,
    pagination.NEXT: on_page,
    pagination.PREV: on_page,
}


async def cb_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    query = update.callback_query
    parsed = pagination.parse_payload(query.data)
    if parsed is None:
        await safe_answer(query)
        return
    action, value = parsed
    await ROUTES[action](update, context, action, value)


# --- Ingest ---
async def on_video(update: Update, context: ContextTypes.DEFAULT_TYPE):
    msg = update.effective_message
    media = msg.video or msg.document
    if media is None:
        return
    submitter = msg.from_user.username if msg.from_user else None
    raw = msg.caption or getattr(media, "file_name", None) or ""
    if not normalize(raw):
        logger.info(f"Skipping upload without a usable caption from {submitter or 'anonymous'}")
        return
    try:
        result = await ingest(
            context.bot_data["catalog"],
            context.bot_data["policy"],
            media.file_id,
            raw,
            size=media.file_size,
            submitter=submitter,
            file_unique_id=media.file_unique_id,
        )
    except PyMongoError as e:
        logger.error(f"Error saving video data: {e}")
        if context.bot_data["policy"].permitted(submitter):
            await msg.reply_text("Failed to save the video. Please try again later.")
        return
    if not result.notify:
        return
    if result.outcome is Outcome.DUPLICATE:
        await msg.reply_text(f"⚠️ Already exists: {result.record.caption}")
    else:
        await msg.reply_text(f"✅ Saved: {result.record.caption}")


async def on_error(update, context):
    logger.exception("Unhandled Telegram error: %s", context.error)
