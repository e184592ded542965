"""Player-facing narrative message log."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinearColor:
    """An RGBA colour with float channels."""

    r: float
    g: float
    b: float
    a: float = 1.0

    def with_alpha(self, alpha: float) -> LinearColor:
        """Return a copy of this colour with a different alpha."""
        return replace(self, a=alpha)


WHITE = LinearColor(1.0, 1.0, 1.0, 1.0)
BLACK = LinearColor(0.0, 0.0, 0.0, 1.0)
RED = LinearColor(1.0, 0.0, 0.0, 1.0)
GREEN = LinearColor(0.0, 1.0, 0.0, 1.0)

PLAYER_COLOR = LinearColor(0.6, 0.9, 1.0, 1.0)
ENEMY_COLOR = LinearColor(1.0, 0.55, 0.55, 1.0)
SYSTEM_COLOR = LinearColor(1.0, 0.95, 0.3, 1.0)

DEFAULT_LIFETIME = 8.0
PERSISTENT = -1.0
DEFAULT_MAX_LINES = 12


@dataclass
class Message:
    """One line of the message log.

    A lifetime of zero or less keeps the message until it is evicted by the
    bus's line cap.
    """

    text: str
    spawned_at: float = 0.0
    lifetime: float = DEFAULT_LIFETIME
    color: LinearColor = field(default=WHITE)

    def is_expired(self, now: float) -> bool:
        """True once the message has outlived its lifetime."""
        return self.lifetime > 0.0 and (now - self.spawned_at) > self.lifetime


class MessageBus:
    """A capped log of narrative messages, newest last.

    ``clock`` returns the current world time in seconds; without one every
    message is stamped at time zero and ``last_push_at`` is never updated.
    """

    def __init__(
        self,
        clock: Callable[[], float] | None = None,
        max_lines: int = DEFAULT_MAX_LINES,
    ) -> None:
        self.clock = clock
        self.max_lines = max_lines
        self._messages: list[Message] = []
        self._last_push_at = -1.0

    def push(
        self,
        text: str,
        color: LinearColor = WHITE,
        lifetime: float = DEFAULT_LIFETIME,
    ) -> Message:
        """Append a message, dropping the oldest ones over the line cap."""
        if self.clock is not None:
            spawned_at = float(self.clock())
            self._last_push_at = spawned_at
        else:
            spawned_at = 0.0
        message = Message(text=text, spawned_at=spawned_at, lifetime=lifetime, color=color)
        self._messages.append(message)

        cap = max(1, self.max_lines)
        if len(self._messages) > cap:
            del self._messages[: len(self._messages) - cap]
        return message

    def active_messages(self) -> list[Message]:
        """Messages that have not aged out, oldest first."""
        now = float(self.clock()) if self.clock is not None else 0.0
        return [m for m in self._messages if not m.is_expired(now)]

    def clear(self) -> None:
        """Forget every retained message."""
        self._messages.clear()

    def deinitialize(self) -> None:
        """Shut the bus down, dropping its messages."""
        logger.info("[Msg] Subsystem deinitialized")
        self._messages.clear()

    @property
    def last_push_at(self) -> float:
        """World time of the most recent push, or -1 before the first."""
        return self._last_push_at


def push(
    bus: MessageBus | None,
    text: str,
    color: LinearColor = WHITE,
    lifetime: float = DEFAULT_LIFETIME,
) -> None:
    """Push onto ``bus`` if there is one."""
    if bus is None:
        return
    bus.push(text, color, lifetime)


def push_info(bus: MessageBus | None, text: str) -> None:
    """Push a persistent white message."""
    push(bus, text, WHITE, PERSISTENT)


def push_player(bus: MessageBus | None, text: str) -> None:
    """Push a persistent light-cyan message attributed to the player."""
    push(bus, text, PLAYER_COLOR, PERSISTENT)


def push_enemy(bus: MessageBus | None, text: str) -> None:
    """Push a persistent light-red message attributed to an enemy."""
    push(bus, text, ENEMY_COLOR, PERSISTENT)


def push_system(bus: MessageBus | None, text: str) -> None:
    """Push a persistent yellow system message."""
    push(bus, text, SYSTEM_COLOR, PERSISTENT)