from __future__ import annotations

import logging

import pytest

import bot


def test_logging_is_configured_by_main_only(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(bot, "BOT_TOKEN", "")

    with pytest.raises(SystemExit):
        bot.main()

    assert len(calls) == 1
    assert calls[0]["level"] == logging.INFO
    for name in ("httpx", "motor", "pymongo"):
        assert logging.getLogger(name).level == logging.WARNING
