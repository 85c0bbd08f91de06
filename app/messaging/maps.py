"""
Keyed map types for reactions and unread counters.

Both structures are keyed by values only known at runtime (emoji, user id),
so they get small explicit types instead of raw dicts passed around:

    ReactionMap     emoji -> ordered set of user ids
                    An emoji that nobody reacted with is absent. Empty sets
                    are pruned on every mutation and never stored.

    UnreadCounters  participant user id -> non-negative integer
                    A read-only snapshot. A user that is not a current
                    participant is absent and reads as 0.

ReactionMap is persisted on Message.reactions as JSON ({emoji: [ids]});
UnreadCounters is assembled from Participant rows.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class ReactionMap:
    """
    Mutable emoji → user-id set mapping with empty-set pruning.

    Usage:
        reactions = ReactionMap(message.reactions)
        added = reactions.toggle("👍", user.id)
        message.reactions = reactions.to_dict()
    """

    def __init__(self, raw: Mapping[str, Iterable[int]] | None = None):
        self._entries: dict[str, list[int]] = {}
        for emoji, user_ids in (raw or {}).items():
            ids = list(dict.fromkeys(user_ids))
            if ids:
                self._entries[emoji] = ids

    def toggle(self, emoji: str, user_id: int) -> bool:
        """
        Flip user_id's membership in the emoji's set.

        Returns:
            True if the reaction was added, False if it was removed
        """
        ids = self._entries.setdefault(emoji, [])
        if user_id in ids:
            ids.remove(user_id)
            added = False
        else:
            ids.append(user_id)
            added = True

        if not ids:
            del self._entries[emoji]
        return added

    def to_dict(self) -> dict[str, list[int]]:
        """JSON-ready copy of the non-empty entries."""
        return {emoji: list(ids) for emoji, ids in self._entries.items()}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, emoji: object) -> bool:
        return emoji in self._entries

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReactionMap):
            return self.to_dict() == other.to_dict()
        return NotImplemented

    def __repr__(self) -> str:
        return f"ReactionMap({self._entries!r})"


class UnreadCounters:
    """
    Snapshot of per-participant unread counts.

    Usage:
        counters = conversation.unread_counters()
        counters.get(user.id)   # 0 for non-participants
    """

    def __init__(self, counts: Mapping[int, int] | None = None):
        self._counts: dict[int, int] = {
            user_id: max(int(count), 0) for user_id, count in (counts or {}).items()
        }

    def get(self, user_id: int) -> int:
        return self._counts.get(user_id, 0)

    def to_dict(self) -> dict[str, int]:
        """JSON-ready mapping (user ids become string keys)."""
        return {str(user_id): count for user_id, count in self._counts.items()}

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UnreadCounters):
            return self._counts == other._counts
        if isinstance(other, Mapping):
            return self._counts == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"UnreadCounters({self._counts!r})"
