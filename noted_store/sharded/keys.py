"""Key naming for the remote key-value backend.

Centralizes the key format so callers never need to construct or
parse remote keys directly.

Log shard keys: {prefix}{user_id}:notes-log:log-{index}
Content keys:   {content_prefix}content/{user_id}/{content_id}

Shard indexes are 0-based and ordered numerically.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _log_base(user_id: str, prefix: str) -> str:
    return f"{prefix}{user_id}:notes-log:log-"


@dataclass(frozen=True)
class ShardKey:
    """A typed log shard key."""

    user_id: str
    index: int
    prefix: str = ""

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Shard index must be non-negative, got {self.index}")

    def format(self) -> str:
        """Render the remote key name."""
        return f"{_log_base(self.user_id, self.prefix)}{self.index}"

    def next(self) -> ShardKey:
        """The shard that follows this one."""
        return ShardKey(self.user_id, self.index + 1, self.prefix)

    @classmethod
    def parse(cls, key: str | bytes, user_id: str, prefix: str = "") -> ShardKey:
        """Parse a remote key name for a user's log.

        Raises ValueError on malformed input.
        """
        if isinstance(key, bytes):
            key = key.decode("utf-8")
        base = _log_base(user_id, prefix)
        suffix = key[len(base):] if key.startswith(base) else ""
        if not suffix.isdigit():
            raise ValueError(f"Malformed log shard key: {key}")
        return cls(user_id, int(suffix), prefix)

    @staticmethod
    def pattern(user_id: str, prefix: str = "") -> str:
        """Glob pattern matching all log shards of a user."""
        return _GLOB_SPECIAL.sub(r"\\\1", _log_base(user_id, prefix)) + "*"


def content_key(user_id: str, content_id: str, prefix: str = "") -> str:
    """Remote key for a content blob."""
    return f"{prefix}content/{user_id}/{content_id}"
