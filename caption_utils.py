import re

from bot_config import PROMO_HANDLE

URL_RE = re.compile(r"\S+://\S*")
JUNK_RE = re.compile(r"[^\w\s@.]")
MENTION_RE = re.compile(r"@\w+")
SPACES_RE = re.compile(r"\s+")

# Uploader tags that carry no information about the title itself
STOP_TERMS = {"movies", "webseries"}


def _canonicalize_mentions(text: str, handle: str) -> str:
    canonical = handle.lower()
    already_there = any(m.lower() == canonical for m in MENTION_RE.findall(text))
    emitted = False

    def repl(m):
        nonlocal emitted
        is_canonical = m.group(0).lower() == canonical
        if emitted or (already_there and not is_canonical):
            return ""
        emitted = True
        return handle

    return MENTION_RE.sub(repl, text)


def drop_stop_terms(text: str) -> str:
    return " ".join(w for w in text.split() if w.lower() not in STOP_TERMS)


def normalize(raw_text: str, handle: str = PROMO_HANDLE, drop_terms: bool = False) -> str:
    """Clean a caption (or query) for storage and search.

    URLs and most punctuation/emoji are discarded, dots become spaces and
    every @mention collapses into a single copy of the promo handle. The
    result is stable: normalizing it again returns the same string.
    """
    text = URL_RE.sub(" ", raw_text or "")
    text = JUNK_RE.sub("", text)
    text = text.replace(".", " ")
    text = _canonicalize_mentions(text, handle)
    if drop_terms:
        text = drop_stop_terms(text)
    return SPACES_RE.sub(" ", text).strip()


def decorate_caption(caption: str, handle: str = PROMO_HANDLE) -> str:
    """Caption sent along with a delivered video."""
    text = MENTION_RE.sub(lambda m: m.group(0) if m.group(0).lower() == handle.lower() else "", caption or "")
    text = SPACES_RE.sub(" ", text).strip()
    if not MENTION_RE.search(text):
        text += f"\n\nJᴏɪɴ ➥「 {handle} 」"
    return text
