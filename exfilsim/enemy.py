"""The rifle enemy pawn and the shared nearest-target query."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from exfilsim.health import DEFAULT_MAX_HEALTH, HealthComponent
from exfilsim.inventory import InventoryComponent
from exfilsim.messages import WHITE, LinearColor, MessageBus, push_system
from exfilsim.node import Actor, Node, NodeMover, Vector, teleport_pawn_to_node
from exfilsim.turn import TurnParticipant

logger = logging.getLogger(__name__)

TEAM_RED = LinearColor(0.85, 0.18, 0.18, 1.0)
HIT_FLASH_DURATION = 0.18
DEATH_ANIM_DURATION = 0.5
DEATH_ROLL_RATE = 240.0
CAPSULE_HALF_HEIGHT = 88.0
MAX_WALK_SPEED = 600.0


def _lerp_color(a: LinearColor, b: LinearColor, alpha: float) -> LinearColor:
    return LinearColor(
        a.r + (b.r - a.r) * alpha,
        a.g + (b.g - a.g) * alpha,
        a.b + (b.b - a.b) * alpha,
        a.a + (b.a - a.a) * alpha,
    )


def _clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class RifleEnemy(Actor, TurnParticipant):
    """An enemy pawn that occupies nodes, takes turns and can be killed.

    Its turn is delegated to ``controller`` (any object with ``begin_turn``);
    without one the turn ends at once so the round cannot stall. Taking damage
    flashes the body white; dying vacates its node, drops collision and plays
    a short shrink-and-roll before the body is hidden.
    """

    def __init__(
        self,
        name: str,
        location: Vector | None = None,
        bus: MessageBus | None = None,
        max_health: int = DEFAULT_MAX_HEALTH,
        display_index: int = 0,
    ) -> None:
        super().__init__(name, location)
        self.bus = bus
        self.display_index = display_index
        self.turn_finished = False
        self.controller: Any = None

        self.capsule_half_height = CAPSULE_HALF_HEIGHT
        self.max_walk_speed = MAX_WALK_SPEED
        self.collision_enabled = True
        self.hidden = False
        self.scale = 1.0
        self.roll = 0.0
        self.body_color = TEAM_RED
        self.tick_enabled = False

        self.inventory = self.add_component(InventoryComponent(owner=self))
        self.node_mover = self.add_component(NodeMover(self))
        self.health = self.add_component(HealthComponent(max_health, owner=self))
        self.health.on_died.append(self._handle_died)
        self.health.on_health_changed.append(self._handle_health_changed)

        self._death_anim_elapsed = -1.0
        self._hit_flash_remaining = 0.0

    @property
    def is_dying(self) -> bool:
        """True while the death animation is playing."""
        return self._death_anim_elapsed >= 0.0

    def take_damage(self, amount: float, causer: Any = None) -> float:
        """Apply ``amount`` (rounded down) and return the damage actually taken."""
        if self.health is None or not self.health.is_alive() or amount <= 0.0:
            return 0.0
        applied = self.health.apply_damage(math.floor(amount), causer)
        return float(applied)

    def tick(self, delta: float) -> None:
        """Advance the hit flash and death animation by ``delta`` seconds."""
        if not self.tick_enabled:
            return

        if self._hit_flash_remaining > 0.0:
            pre = self._hit_flash_remaining
            self._hit_flash_remaining = max(0.0, pre - delta)
            norm = _clamp01(pre / HIT_FLASH_DURATION)
            self.body_color = _lerp_color(TEAM_RED, WHITE, norm)

        if self._death_anim_elapsed >= 0.0:
            self._death_anim_elapsed += delta
            t = _clamp01(self._death_anim_elapsed / DEATH_ANIM_DURATION)
            eased = 1.0 - (1.0 - t) ** 2
            self.scale = 1.0 - eased
            self.roll += DEATH_ROLL_RATE * delta
            if t >= 1.0:
                self.hidden = True
                self._death_anim_elapsed = -1.0

        if self._hit_flash_remaining <= 0.0 and self._death_anim_elapsed < 0.0:
            self.tick_enabled = False

    def begin_turn(self) -> None:
        """Start this enemy's turn, handing it to the controller."""
        self.turn_finished = False
        if self.health is not None and self.health.is_dead:
            self.turn_finished = True
            return
        begin = getattr(self.controller, "begin_turn", None)
        if begin is not None:
            begin()
        else:
            logger.warning("[Pawn] %s BeginTurn: no controller possessing this pawn", self.name)
            self.turn_finished = True

    def is_turn_finished(self) -> bool:
        """True once this enemy's turn is over."""
        return self.turn_finished

    def move_to_node(self, target_node: Node | None) -> bool:
        """Move onto ``target_node``; False if the move was refused."""
        return teleport_pawn_to_node(self, target_node)

    def _handle_health_changed(self, source: HealthComponent, delta: int, causer: Any) -> None:
        if delta < 0:
            self._hit_flash_remaining = HIT_FLASH_DURATION
            self.tick_enabled = True

    def _handle_died(self, component: HealthComponent) -> None:
        logger.info("[Health] Rifle enemy %s down — starting death anim", self.name)
        if self.display_index > 0:
            text = f"敵#{self.display_index} が制圧された。"
        else:
            text = "敵が制圧された。"
        push_system(self.bus, text)

        node = self.current_node
        if node is not None and node.occupant is self:
            node.occupant = None
        self.collision_enabled = False
        self.turn_finished = True

        self._death_anim_elapsed = 0.0
        self.tick_enabled = True


def find_nearest_rifle_enemy(actors: Iterable[Any], origin: Vector) -> RifleEnemy | None:
    """The living rifle enemy closest to ``origin``, or None if there is none."""
    nearest: RifleEnemy | None = None
    nearest_dist = math.inf
    for actor in actors:
        if not isinstance(actor, RifleEnemy):
            continue
        if actor.health is not None and actor.health.is_dead:
            continue
        dist = origin.dist_squared(actor.location)
        if dist < nearest_dist:
            nearest_dist = dist
            nearest = actor
    return nearest