from __future__ import annotations

import pytest

from caption_utils import decorate_caption, normalize

HANDLE = "@moviecastback"

SAMPLES = [
    "",
    "Inception 2010",
    "🔥 Inception (2010) [Hindi] 🔥",
    "Spider.Man.2002.720p.mkv",
    "Join https://t.me/somechannel for more!!",
    "contact @randomuser or @another now",
    "see @MovieCastBack and @spam here",
    "a@b@c .. @ lonely",
    "  tabs\tand\nnewlines  ",
]


@pytest.mark.parametrize("raw", SAMPLES)
def test_normalize_is_idempotent(raw: str) -> None:
    once = normalize(raw, handle=HANDLE)
    assert normalize(once, handle=HANDLE) == once


def test_mentions_become_the_promo_handle() -> None:
    assert normalize("contact @randomuser now", handle=HANDLE) == "contact @moviecastback now"


def test_promo_handle_is_not_duplicated() -> None:
    out = normalize("see @moviecastback here", handle=HANDLE)
    assert out == "see @moviecastback here"
    assert normalize("@a @b @moviecastback x", handle=HANDLE) == "@moviecastback x"
    assert normalize("@a and @b", handle=HANDLE) == "@moviecastback and"


def test_urls_and_punctuation_are_dropped() -> None:
    assert normalize("Watch https://t.me/x now!!", handle=HANDLE) == "Watch now"
    assert normalize("🔥 Inception (2010) [Hindi]", handle=HANDLE) == "Inception 2010 Hindi"


def test_dots_become_spaces() -> None:
    assert normalize("Spider.Man.2002.720p", handle=HANDLE) == "Spider Man 2002 720p"


def test_stop_terms_are_optional() -> None:
    assert normalize("Hindi Movies Pathaan", handle=HANDLE) == "Hindi Movies Pathaan"
    assert normalize("Hindi Movies Pathaan", handle=HANDLE, drop_terms=True) == "Hindi Pathaan"


def test_decorate_caption_keeps_only_promo_handle() -> None:
    assert decorate_caption("Pathaan @moviecastback", handle=HANDLE) == "Pathaan @moviecastback"
    out = decorate_caption("Pathaan 2023 @other", handle=HANDLE)
    assert out.startswith("Pathaan 2023\n\n")
    assert "@other" not in out
    assert out.endswith(f"{HANDLE} 」")
