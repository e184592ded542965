"""Hit points and death tracking for pawns."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_HEALTH = 100


def _name_of(owner: Any) -> str:
    return str(getattr(owner, "name", owner))


class HealthComponent:
    """Tracks current health against a maximum.

    ``on_health_changed`` handlers are called as ``(component, delta, causer)``
    whenever health actually moves (negative delta for damage). ``on_died``
    handlers are called as ``(component,)`` exactly once, on the killing blow.
    """

    def __init__(self, max_health: int = DEFAULT_MAX_HEALTH, owner: Any = None) -> None:
        self.max_health = max_health
        self.owner = owner
        self.current_health = DEFAULT_MAX_HEALTH
        self.is_dead = False
        self.on_died: list[Callable[[HealthComponent], Any]] = []
        self.on_health_changed: list[Callable[[HealthComponent, int, Any], Any]] = []
        self.begin_play()

    def begin_play(self) -> None:
        """Reset to full health and alive."""
        self.current_health = max(1, self.max_health)
        self.is_dead = False

    def apply_damage(self, amount: int, causer: Any = None) -> int:
        """Reduce health by ``amount`` (floored at zero); return the damage applied."""
        if self.is_dead or amount <= 0:
            return 0
        before = self.current_health
        self.current_health = max(0, self.current_health - amount)
        applied = before - self.current_health

        logger.info(
            "[Health] %s -%d (%d/%d)",
            _name_of(self.owner), applied, self.current_health, self.max_health,
        )

        if applied > 0:
            for handler in list(self.on_health_changed):
                handler(self, -applied, causer)

        if self.current_health == 0 and not self.is_dead:
            self.is_dead = True
            logger.info("[Health] %s DIED", _name_of(self.owner))
            for handler in list(self.on_died):
                handler(self)
        return applied

    def apply_heal(self, amount: int) -> int:
        """Raise health by ``amount`` (capped at maximum); return the HP restored."""
        if self.is_dead or amount <= 0:
            return 0
        before = self.current_health
        self.current_health = min(self.max_health, self.current_health + amount)
        restored = self.current_health - before
        if restored > 0:
            logger.info(
                "[Health] %s +%d (%d/%d)",
                _name_of(self.owner), restored, self.current_health, self.max_health,
            )
            for handler in list(self.on_health_changed):
                handler(self, restored, None)
        return restored

    def is_alive(self) -> bool:
        """True until health has reached zero."""
        return not self.is_dead