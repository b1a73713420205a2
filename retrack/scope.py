from __future__ import annotations

from typing import Callable, Optional, TypeVar

from .config import logger
from .context import context

T = TypeVar("T")


class EffectScope:
    """
    Lifetime group for observers: every observer created while the scope
    is running is registered in it and stopped together with the scope.
    """

    __slots__ = ("_active", "effects")

    def __init__(self) -> None:
        self._active = True
        self.effects: list[Callable[[], None]] = []

    @property
    def active(self) -> bool:
        return self._active

    def add(self, stop: Callable[[], None]) -> None:
        if self._active:
            self.effects.append(stop)

    def run(self, fn: Callable[[], T]) -> Optional[T]:
        if not self._active:
            logger.warning("Cannot run %r: the scope is stopped", fn)
            return None

        parent_scope = context.active_scope
        context.active_scope = self
        try:
            return fn()
        finally:
            context.active_scope = parent_scope

    def stop(self) -> None:
        if not self._active:
            return

        self._active = False
        effects, self.effects = self.effects, []
        for stop in effects:
            stop()

        if context.config.debug:
            logger.debug("[scope] stopped %d observers", len(effects))


def create_scope() -> EffectScope:
    return EffectScope()
