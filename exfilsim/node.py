"""Arena nodes, the node graph and moving pawns between nodes."""

from __future__ import annotations

import logging
import math
import weakref
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_MOVE_DURATION = 0.05
DEFAULT_MOVE_DURATION = 0.35
DEFAULT_WALK_SPEED = 600.0
DEFAULT_WALK_TIMEOUT = 3.0
DEFAULT_ARRIVE_THRESHOLD = 30.0


@dataclass(frozen=True)
class Vector:
    """A 3D vector in centimetres."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> Vector:
        return Vector(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def size(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> Vector:
        """Unit vector in the same direction, or the zero vector if too short."""
        length = self.size()
        if length < 1e-8:
            return Vector()
        return self * (1.0 / length)

    def horizontal(self) -> Vector:
        """This vector with its Z component dropped."""
        return Vector(self.x, self.y, 0.0)

    def dist_squared(self, other: Vector) -> float:
        """Squared distance to ``other``."""
        dx, dy, dz = self.x - other.x, self.y - other.y, self.z - other.z
        return dx * dx + dy * dy + dz * dz

    def lerp(self, other: Vector, alpha: float) -> Vector:
        """Linear interpolation from this vector to ``other``."""
        return self + (other - self) * alpha


def smooth_step(a: float, b: float, x: float) -> float:
    """Hermite ease of ``x`` between ``a`` and ``b``, clamped to [0, 1]."""
    if x < a:
        return 0.0
    if x >= b:
        return 1.0
    t = (x - a) / (b - a)
    return t * t * (3.0 - 2.0 * t)


class Actor:
    """Something placed in the world, with a name, a location and components."""

    def __init__(self, name: str, location: Vector | None = None) -> None:
        self.name = name
        self.location = location if location is not None else Vector()
        self.components: list[Any] = []
        self.current_node: Node | None = None

    def add_component(self, component: T) -> T:
        """Attach ``component`` and return it."""
        self.components.append(component)
        return component

    def find_component(self, kind: type[T]) -> T | None:
        """The first attached component of type ``kind``, or None."""
        for component in self.components:
            if isinstance(component, kind):
                return component
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Node(Actor):
    """One cell of the arena graph.

    Holds adjacency to neighbouring nodes and, weakly, the actor occupying it.
    ``on_node_destroyed`` handlers are called with the node once, when it is
    destroyed.
    """

    def __init__(
        self,
        name: str,
        location: Vector | None = None,
        destroyable: bool = False,
    ) -> None:
        super().__init__(name, location)
        self.destroyable = destroyable
        self.is_destroyed = False
        self.visible = True
        self.collision_enabled = True
        self.adjacent: list[Node | None] = []
        self.on_node_destroyed: list[Callable[[Node], Any]] = []
        self._occupant: weakref.ref | None = None

    @property
    def occupant(self) -> Any:
        """The actor on this node, or None."""
        return self._occupant() if self._occupant is not None else None

    @occupant.setter
    def occupant(self, actor: Any) -> None:
        self._occupant = weakref.ref(actor) if actor is not None else None

    def is_occupied(self) -> bool:
        """True if a live actor occupies this node."""
        return self.occupant is not None

    def is_adjacent(self, other: Node | None) -> bool:
        """True if ``other`` is in this node's adjacency list."""
        if other is None:
            return False
        return any(node is other for node in self.adjacent)

    def mark_destroyed(self) -> None:
        """Destroy the node, hiding it and notifying listeners exactly once."""
        if self.is_destroyed:
            return
        self.is_destroyed = True
        self.visible = False
        self.collision_enabled = False
        for handler in list(self.on_node_destroyed):
            handler(self)


class NodeGraph:
    """Collects the nodes of a level and answers simple queries."""

    def __init__(self, nodes: Iterable[Node] | None = None) -> None:
        self.nodes: list[Node | None] = list(nodes) if nodes is not None else []

    def begin_play(self, actors: Iterable[Any]) -> None:
        """Gather every node among ``actors`` if no nodes were given."""
        if self.nodes:
            return
        self.nodes = [actor for actor in actors if isinstance(actor, Node)]

    def find_node_by_name(self, name: str) -> Node | None:
        """The node called ``name``, or None."""
        for node in self.nodes:
            if node is not None and node.name == name:
                return node
        return None

    def neighbors(self, node: Node | None) -> list[Node]:
        """The non-empty adjacency entries of ``node``; empty for None."""
        if node is None:
            return []
        return [neighbor for neighbor in node.adjacent if neighbor is not None]


class NodeMover:
    """Moves its owner smoothly to a target over several ticks.

    Owners that expose ``max_walk_speed`` and ``capsule_half_height`` walk
    horizontally toward a target raised by the half-height, at ``walk_speed``,
    until they arrive or time out. Other owners ease along a straight line
    over the move's duration.
    """

    def __init__(self, owner: Any, default_duration: float = DEFAULT_MOVE_DURATION) -> None:
        self.owner = owner
        self.default_duration = default_duration
        self.walk_speed = DEFAULT_WALK_SPEED
        self.walk_timeout = DEFAULT_WALK_TIMEOUT
        self.arrive_threshold = DEFAULT_ARRIVE_THRESHOLD
        self._moving = False
        self._walking = False
        self._start = Vector()
        self._end = Vector()
        self._saved_walk_speed = 0.0
        self._elapsed = 0.0
        self._duration = default_duration

    @property
    def duration(self) -> float:
        """Duration of the current or last move."""
        return self._duration

    @property
    def target(self) -> Vector:
        """Where the current or last move ends."""
        return self._end

    def start_move(self, target: Vector, duration: float = 0.0) -> None:
        """Begin moving toward ``target``; a non-positive duration uses the default."""
        owner = self.owner
        if owner is None:
            return
        self._start = owner.location
        is_character = hasattr(owner, "max_walk_speed") and hasattr(owner, "capsule_half_height")
        if is_character:
            self._end = target + Vector(0.0, 0.0, owner.capsule_half_height)
            self._saved_walk_speed = owner.max_walk_speed
            owner.max_walk_speed = self.walk_speed
        else:
            self._end = target
        self._walking = is_character
        self._elapsed = 0.0
        chosen = duration if duration > 0.0 else self.default_duration
        self._duration = max(MIN_MOVE_DURATION, chosen)
        self._moving = True

    def tick(self, delta: float) -> None:
        """Advance the move by ``delta`` seconds."""
        if not self._moving:
            return
        owner = self.owner
        if owner is None:
            self._stop()
            return
        self._elapsed += delta

        if self._walking:
            to_target = (self._end - owner.location).horizontal()
            distance = to_target.size()
            if distance < self.arrive_threshold:
                owner.location = self._end
                self._stop()
                return
            if self._elapsed >= self.walk_timeout:
                logger.warning(
                    "[NodeMover] %s timed out at %.0fcm from target; leaving in place",
                    getattr(owner, "name", owner), distance,
                )
                self._stop()
                return
            step = min(owner.max_walk_speed * delta, distance)
            owner.location = owner.location + to_target.normalized() * step
            return

        raw_alpha = min(max(self._elapsed / self._duration, 0.0), 1.0)
        owner.location = self._start.lerp(self._end, smooth_step(0.0, 1.0, raw_alpha))
        if raw_alpha >= 1.0:
            owner.location = self._end
            self._stop()

    def is_moving(self) -> bool:
        """True while a move is in flight."""
        return self._moving

    def _stop(self) -> None:
        if self._walking and self.owner is not None:
            self.owner.max_walk_speed = self._saved_walk_speed
        self._moving = False
        self._walking = False


def teleport_pawn_to_node(pawn: Any, target_node: Node | None) -> bool:
    """Move ``pawn`` onto ``target_node``, updating occupancy on both nodes.

    Refuses destroyed nodes and nodes held by another actor. A pawn carrying
    a ``NodeMover`` moves smoothly; otherwise it is placed at once. A None
    target just vacates the pawn's current node. Returns True if it moved.
    """
    if pawn is None:
        return False
    name = getattr(pawn, "name", pawn)

    if target_node is not None and target_node.is_destroyed:
        logger.warning("[Pawn] %s rejected MoveToNode -> %s (destroyed)", name, target_node.name)
        return False

    if target_node is not None:
        holder = target_node.occupant
        if holder is not None and holder is not pawn:
            logger.warning(
                "[Pawn] %s rejected MoveToNode -> %s (occupied by %s)",
                name, target_node.name, getattr(holder, "name", holder),
            )
            return False

    current = getattr(pawn, "current_node", None)
    if current is not None and current.occupant is pawn:
        current.occupant = None

    pawn.current_node = target_node

    if target_node is not None:
        destination = target_node.location
        mover = pawn.find_component(NodeMover) if hasattr(pawn, "find_component") else None
        if mover is not None:
            mover.start_move(destination, 0.0)
        else:
            pawn.location = destination
        target_node.occupant = pawn

    logger.info(
        "[Pawn] %s MoveToNode -> %s", name, target_node.name if target_node else "None"
    )
    return True