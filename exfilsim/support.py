"""Turn-delayed support requests and their resolution."""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from exfilsim.health import HealthComponent
from exfilsim.messages import MessageBus, push_system
from exfilsim.node import Node, Vector
from exfilsim.turn import TurnSystem

logger = logging.getLogger(__name__)


class SupportType(enum.Enum):
    """Kinds of support the player can call in."""

    PRECISION_STRIKE = "precision_strike"
    SUPPLY_POD = "supply_pod"
    ORBITAL_BARRAGE = "orbital_barrage"


class SupportPhase(enum.Enum):
    """Lifecycle state of a support request."""

    PENDING = "pending"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


SUPPORT_TYPE_NAMES = {
    SupportType.PRECISION_STRIKE: "精密射撃",
    SupportType.SUPPLY_POD: "補給投下",
    SupportType.ORBITAL_BARRAGE: "軌道砲撃",
}
GENERIC_SUPPORT_NAME = "支援"


class UnknownSupportType(LookupError):
    """Raised when support is requested for a type with no definition."""


@dataclass
class SupportDefinition:
    """Static description of one kind of support."""

    support_type: SupportType = SupportType.PRECISION_STRIKE
    delay_turns: int = 2
    radius_cm: float = 150.0
    damage: int = 50
    deals_damage: bool = True
    heal_amount: int = 0
    terrain_destruction_radius_cm: float = 0.0
    allows_friendly_fire: bool = True


@dataclass
class SupportRequest:
    """A queued support call and how many turn ends it still waits for."""

    request_id: uuid.UUID
    definition: SupportDefinition | None
    target_location: Vector = field(default_factory=Vector)
    requested_by: Any = None
    turns_remaining: int = 0
    phase: SupportPhase = SupportPhase.PENDING


@dataclass
class SupportResolution:
    """Side effects produced by resolving one request."""

    request_id: uuid.UUID | None = None
    damage_events_emitted: int = 0
    heal_events_applied: int = 0
    destroyed_nodes: list[Node] = field(default_factory=list)
    friendly_fire_applied: bool = False


def _health_of(actor: Any) -> HealthComponent | None:
    finder = getattr(actor, "find_component", None)
    if finder is None:
        return None
    return finder(HealthComponent)


def _apply_damage(actor: Any, amount: int, causer: Any) -> None:
    take_damage = getattr(actor, "take_damage", None)
    if take_damage is not None:
        take_damage(amount, causer)
        return
    health = _health_of(actor)
    if health is not None:
        health.apply_damage(amount, causer)


class SupportResolver:
    """Applies one support request's damage, healing and terrain destruction.

    ``pawns`` and ``nodes`` are the live collections of the world; they are
    read at every resolution, so callers may keep adding to them.
    """

    def __init__(
        self,
        bus: MessageBus | None = None,
        pawns: Iterable[Any] | None = None,
        nodes: Iterable[Node] | None = None,
    ) -> None:
        self.bus = bus
        self.pawns = pawns if pawns is not None else []
        self.nodes = nodes if nodes is not None else []

    def resolve(self, request: SupportRequest) -> SupportResolution:
        """Carry out ``request`` and describe what it did."""
        out = SupportResolution(request_id=request.request_id)
        definition = request.definition
        if definition is None:
            logger.warning("[SupportResolver] missing definition; resolving as no-op")
            return out

        center = request.target_location
        instigator = request.requested_by

        if definition.deals_damage and definition.damage > 0 and definition.radius_cm > 0.0:
            radius_sq = definition.radius_cm * definition.radius_cm
            damaged: list[Any] = []
            for pawn in list(self.pawns):
                if pawn is None or any(pawn is seen for seen in damaged):
                    continue
                if not getattr(pawn, "collision_enabled", True):
                    continue
                if pawn.location.dist_squared(center) > radius_sq:
                    continue
                damaged.append(pawn)
                _apply_damage(pawn, definition.damage, instigator)
                out.damage_events_emitted += 1
                if pawn is instigator:
                    out.friendly_fire_applied = True

        if definition.heal_amount > 0 and instigator is not None and definition.radius_cm > 0.0:
            radius_sq = definition.radius_cm * definition.radius_cm
            if instigator.location.dist_squared(center) <= radius_sq:
                health = _health_of(instigator)
                if health is not None:
                    restored = health.apply_heal(definition.heal_amount)
                    if restored > 0:
                        out.heal_events_applied += 1
                        push_system(self.bus, f"補給を受領。HP +{restored}。")

        if definition.terrain_destruction_radius_cm > 0.0:
            destroy_sq = definition.terrain_destruction_radius_cm ** 2
            to_destroy = [
                node for node in list(self.nodes)
                if node is not None
                and not node.is_destroyed
                and node.destroyable
                and node.location.dist_squared(center) <= destroy_sq
            ]
            for node in to_destroy:
                node.mark_destroyed()
                out.destroyed_nodes.append(node)
            if to_destroy:
                destroyed_ids = {id(node) for node in to_destroy}
                for node in list(self.nodes):
                    if node is None:
                        continue
                    node.adjacent = [
                        adj for adj in node.adjacent
                        if adj is None or id(adj) not in destroyed_ids
                    ]

        logger.info(
            "[SupportResolver] resolved id=%s pawnsHit=%d healed=%d nodesDestroyed=%d friendlyFire=%d",
            request.request_id, out.damage_events_emitted, out.heal_events_applied,
            len(out.destroyed_nodes), int(out.friendly_fire_applied),
        )
        return out


class SupportSystem:
    """Queue of support requests counted down by turn ends.

    On every turn end each pending request loses one turn; those that reach
    zero are handed to the resolver. ``on_support_submitted`` handlers receive
    each new request, ``on_support_resolved`` handlers each resolution.
    """

    def __init__(
        self,
        bus: MessageBus | None = None,
        resolver: SupportResolver | None = None,
        turn_system: TurnSystem | None = None,
    ) -> None:
        self.bus = bus
        self.resolver = resolver
        self.turn_system = turn_system
        self._requests: list[SupportRequest] = []
        self._definitions: dict[SupportType, SupportDefinition] = {}
        self.on_support_submitted: list[Callable[[SupportRequest], Any]] = []
        self.on_support_resolved: list[Callable[[SupportResolution], Any]] = []
        if turn_system is not None:
            if self.handle_turn_end not in turn_system.on_turn_end:
                turn_system.on_turn_end.append(self.handle_turn_end)
            logger.info("[Support] Subscribed to TurnSystem.OnTurnEnd")

    def deinitialize(self) -> None:
        """Unsubscribe from the turn system and forget all requests and definitions."""
        if self.turn_system is not None:
            self.turn_system.on_turn_end[:] = [
                handler for handler in self.turn_system.on_turn_end
                if handler != self.handle_turn_end
            ]
        self._requests.clear()
        self._definitions.clear()
        logger.info("[Support] Subsystem deinitialized")

    def register_definition(
        self, support_type: SupportType, definition: SupportDefinition | None
    ) -> None:
        """Map ``support_type`` to ``definition``; None is ignored."""
        if definition is None:
            return
        self._definitions[support_type] = definition
        logger.info(
            "[Support] Registered definition for type %s (Delay=%d Radius=%.0f Damage=%d)",
            support_type.name, definition.delay_turns, definition.radius_cm, definition.damage,
        )

    def find_definition(self, support_type: SupportType) -> SupportDefinition | None:
        """The definition registered for ``support_type``, or None."""
        return self._definitions.get(support_type)

    def request_support(
        self,
        support_type: SupportType,
        target_location: Vector,
        requested_by: Any = None,
    ) -> uuid.UUID:
        """Queue a request and return its id.

        Raises ``UnknownSupportType`` if no definition is registered.
        """
        definition = self.find_definition(support_type)
        if definition is None:
            logger.warning(
                "[Support] RequestSupport: no definition registered for type %s", support_type.name
            )
            raise UnknownSupportType(f"no definition registered for {support_type.name}")

        request = SupportRequest(
            request_id=uuid.uuid4(),
            definition=definition,
            target_location=target_location,
            requested_by=requested_by,
            turns_remaining=definition.delay_turns,
            phase=SupportPhase.PENDING,
        )
        self._requests.append(request)
        logger.info(
            "[Support] Submitted: id=%s type=%s delay=%d at (%.0f,%.0f,%.0f)",
            request.request_id, support_type.name, request.turns_remaining,
            target_location.x, target_location.y, target_location.z,
        )
        snapshot = replace(request)
        for handler in list(self.on_support_submitted):
            handler(snapshot)
        return request.request_id

    def pending_requests(self) -> list[SupportRequest]:
        """Copies of the still-pending requests, in submission order."""
        return [replace(r) for r in self._requests if r.phase is SupportPhase.PENDING]

    def cancel_request(self, request_id: uuid.UUID) -> bool:
        """Cancel a pending request; False if none matches."""
        for request in self._requests:
            if request.request_id == request_id and request.phase is SupportPhase.PENDING:
                request.phase = SupportPhase.CANCELLED
                logger.info("[Support] Cancelled: id=%s", request_id)
                return True
        return False

    def handle_turn_end(self, participant: Any = None) -> None:
        """Count every pending request down and resolve those that are due."""
        to_resolve: list[SupportRequest] = []
        for request in self._requests:
            if request.phase is not SupportPhase.PENDING:
                continue
            request.turns_remaining -= 1
            if request.turns_remaining <= 0:
                request.phase = SupportPhase.RESOLVING
                to_resolve.append(request)

        if self.resolver is None:
            if to_resolve:
                logger.warning(
                    "[Support] %d request(s) ready to resolve but no resolver", len(to_resolve)
                )
            return

        for request in to_resolve:
            resolution = self.resolver.resolve(replace(request))
            request.phase = SupportPhase.RESOLVED
            logger.info(
                "[Support] Resolved: id=%s damageEvents=%d nodesDestroyed=%d",
                request.request_id, resolution.damage_events_emitted,
                len(resolution.destroyed_nodes),
            )
            name = GENERIC_SUPPORT_NAME
            if request.definition is not None:
                name = SUPPORT_TYPE_NAMES.get(request.definition.support_type, GENERIC_SUPPORT_NAME)
            push_system(self.bus, f"{name} 解決。")
            for handler in list(self.on_support_resolved):
                handler(resolution)