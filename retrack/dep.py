"""
Deps implement the classic observable pattern: one Dep is the set of
observers that read a single (target, key) pair.
"""

from __future__ import annotations


class Dep:
    __slots__ = ("_subs",)

    def __init__(self) -> None:
        # dict as an insertion ordered set
        self._subs: dict["Observer", None] = {}  # noqa: F821

    def add_sub(self, sub: "Observer") -> bool:  # noqa: F821
        if sub in self._subs:
            return False
        self._subs[sub] = None
        return True

    def remove_sub(self, sub: "Observer") -> None:  # noqa: F821
        self._subs.pop(sub, None)

    def subscribers(self) -> list["Observer"]:  # noqa: F821
        return list(self._subs)

    def __len__(self) -> int:
        return len(self._subs)

    def __contains__(self, sub) -> bool:
        return sub in self._subs
