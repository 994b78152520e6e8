import logging
from threading import Thread

from flask import Flask, jsonify

from bot_config import PORT

logger = logging.getLogger(__name__)

flask_app = Flask(__name__)


@flask_app.route("/")
def home():
    return "🤖 Bot is running."


@flask_app.route("/health")
def health():
    return jsonify(status="ok")


def run_flask(port=PORT):
    flask_app.run(host="0.0.0.0", port=port)


def start_keepalive(port=PORT):
    # Runs in a thread so it won't block the bot's event loop
    thread = Thread(target=run_flask, args=(port,), daemon=True)
    thread.start()
    logger.info(f"Keepalive server listening on :{port}")
    return thread
