import logging

from openai import AsyncOpenAI
from telegram.ext import (
    ApplicationBuilder, CallbackQueryHandler, CommandHandler,
    MessageHandler, filters
)

from access import AllowListPolicy
from bot_config import (
    ALLOWED_UPLOADERS, BOT_TOKEN, MONGODB_COLLECTION, MONGODB_DB, MONGODB_URI,
    OPENAI_API_KEY, OPENAI_MODEL, REWRITE_DELAY_SEC
)
from caption_rewriter import CaptionRewriter
from catalog import Catalog
from handlers import (
    cb_handler, cmd_rewrite, cmd_start, cmd_stats, on_error, on_video,
    search_text
)
from keepalive import start_keepalive

logger = logging.getLogger(__name__)

VIDEO_UPLOADS = filters.VIDEO | filters.Document.VIDEO


async def on_startup(app):
    await app.bot_data["catalog"].setup()
    me = await app.bot.get_me()
    logger.info(f"✅ Logged in as: {me.username}")


async def on_shutdown(app):
    app.bot_data["catalog"].close()


def build_app():
    app = (
        ApplicationBuilder()
        .token(BOT_TOKEN)
        .post_init(on_startup)
        .post_shutdown(on_shutdown)
        .build()
    )
    app.bot_data["catalog"] = Catalog(MONGODB_URI, MONGODB_DB, MONGODB_COLLECTION)
    app.bot_data["policy"] = AllowListPolicy(ALLOWED_UPLOADERS)
    if OPENAI_API_KEY:
        app.bot_data["rewriter"] = CaptionRewriter(
            AsyncOpenAI(api_key=OPENAI_API_KEY), OPENAI_MODEL, delay=REWRITE_DELAY_SEC
        )
    else:
        logger.warning("OPENAI_API_KEY not set, /rewrite is disabled")

    app.add_handler(CommandHandler(["start", "help"], cmd_start))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CommandHandler("rewrite", cmd_rewrite))
    app.add_handler(CallbackQueryHandler(cb_handler))
    app.add_handler(MessageHandler(VIDEO_UPLOADS, on_video))
    app.add_handler(MessageHandler(filters.TEXT & (~filters.COMMAND) & filters.UpdateType.MESSAGE, search_text))
    app.add_error_handler(on_error)
    return app


def setup_logging():
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    for noisy in ("httpx", "motor", "pymongo"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def main():
    setup_logging()
    if not BOT_TOKEN:
        raise SystemExit("BOT_TOKEN is empty. Set it: export BOT_TOKEN='...'")
    app = build_app()
    start_keepalive()
    logger.info("Bot polling started")
    app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
