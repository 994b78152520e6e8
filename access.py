import enum


class Action(enum.Enum):
    ACK_DUPLICATE = "ack_duplicate"
    ACK_STORED = "ack_stored"
    REWRITE_CAPTIONS = "rewrite_captions"


class AllowListPolicy:
    """Grants uploader privileges to a fixed set of Telegram usernames."""

    PRIVILEGED = frozenset(Action)

    def __init__(self, usernames):
        self.usernames = {u.lower().lstrip("@") for u in usernames if u}

    def permitted(self, username) -> frozenset:
        if username and username.lower().lstrip("@") in self.usernames:
            return self.PRIVILEGED
        return frozenset()

    def allows(self, username, action: Action) -> bool:
        return action in self.permitted(username)
