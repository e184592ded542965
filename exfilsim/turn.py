"""Turn queue and the participants that take turns in it."""

from __future__ import annotations

import enum
import logging
import weakref
from collections.abc import Callable
from typing import Any

from exfilsim.messages import MessageBus, push_system

logger = logging.getLogger(__name__)

_NO_INDEX = -1


class TurnPhase(enum.Enum):
    """Which side is acting."""

    PLAYER = "player"
    ENEMIES = "enemies"
    RESOLVING = "resolving"


class TurnParticipant:
    """Base for actors that take part in the turn loop.

    The default behaviour marks the turn as started and reports it finished
    once ``turn_finished`` is set.
    """

    turn_finished: bool = False

    def begin_turn(self) -> None:
        """Called when this participant's turn becomes active."""
        self.turn_finished = False

    def is_turn_finished(self) -> bool:
        """True once the participant has finished its turn."""
        return self.turn_finished


def _name_of(actor: Any) -> str:
    return "None" if actor is None else str(getattr(actor, "name", actor))


def _dispatch_begin_turn(participant: Any) -> None:
    if participant is None:
        return
    if isinstance(participant, TurnParticipant):
        logger.info("[Turn] Dispatching BeginTurn to %s", _name_of(participant))
        participant.begin_turn()
    else:
        logger.warning(
            "[Turn] Participant %s is not a TurnParticipant; skipping dispatch",
            _name_of(participant),
        )


class TurnSystem:
    """Ordered queue of participants that advances one turn at a time.

    Participants are held weakly; ones that have been collected are skipped
    and pruned when a round begins. Event handlers are plain callables in
    ``on_turn_begin``, ``on_turn_end`` (called with the participant) and
    ``on_phase_changed`` (called with the new ``TurnPhase``).
    """

    def __init__(self, bus: MessageBus | None = None) -> None:
        self.bus = bus
        self._queue: list[weakref.ref] = []
        self._index = _NO_INDEX
        self._phase = TurnPhase.PLAYER
        self._round_counter = 0
        self.on_turn_begin: list[Callable[[Any], Any]] = []
        self.on_turn_end: list[Callable[[Any], Any]] = []
        self.on_phase_changed: list[Callable[[TurnPhase], Any]] = []

    def register_participant(self, participant: Any) -> None:
        """Add a participant to the end of the queue; no-op if already there."""
        if participant is None:
            return
        if any(entry() is participant for entry in self._queue):
            return
        self._queue.append(weakref.ref(participant))

    def unregister_participant(self, participant: Any) -> None:
        """Remove a participant, along with any collected entries."""
        if participant is None:
            return
        self._queue = [
            entry for entry in self._queue
            if entry() is not None and entry() is not participant
        ]

    def begin_round(self) -> None:
        """Start a new round at the first live participant."""
        self._queue = [entry for entry in self._queue if entry() is not None]
        if not self._queue:
            logger.warning("[Turn] BeginRound called with empty queue; ignoring")
            self._index = _NO_INDEX
            return

        self._index = 0
        self._phase = TurnPhase.PLAYER
        self._round_counter += 1
        logger.info("[Turn] BeginRound, %d participants", len(self._queue))
        push_system(self.bus, f"ラウンド {self._round_counter} 開始。")

        self._emit(self.on_phase_changed, self._phase)
        self._begin_current()

    def end_current_turn(self) -> None:
        """End the active turn and advance, wrapping into a new round."""
        ending = self.current_participant
        if ending is not None:
            self._emit(self.on_turn_end, ending)

        size = len(self._queue)
        if size == 0:
            self._index = _NO_INDEX
            logger.info("[Turn] EndCurrentTurn -> queue empty")
            return

        next_actor = None
        for _ in range(size):
            self._index += 1
            if self._index >= len(self._queue):
                self.begin_round()
                logger.info("[Turn] EndCurrentTurn -> next=%s", _name_of(self.current_participant))
                return
            next_actor = self._queue[self._index]()
            if next_actor is not None:
                break

        if next_actor is not None:
            self._emit(self.on_turn_begin, next_actor)
            _dispatch_begin_turn(next_actor)

        logger.info("[Turn] EndCurrentTurn -> next=%s", _name_of(self.current_participant))

    def deinitialize(self) -> None:
        """Drop the queue and the active index."""
        self._queue.clear()
        self._index = _NO_INDEX

    @property
    def current_participant(self) -> Any:
        """The participant whose turn is active, or None."""
        if 0 <= self._index < len(self._queue):
            return self._queue[self._index]()
        return None

    @property
    def current_phase(self) -> TurnPhase:
        """The current turn phase."""
        return self._phase

    @property
    def round_counter(self) -> int:
        """Number of rounds begun so far."""
        return self._round_counter

    def _begin_current(self) -> None:
        current = self.current_participant
        if current is not None:
            self._emit(self.on_turn_begin, current)
            _dispatch_begin_turn(current)

    @staticmethod
    def _emit(handlers: list[Callable[[Any], Any]], value: Any) -> None:
        for handler in list(handlers):
            handler(value)