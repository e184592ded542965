import uuid

import pytest

from exfilsim.health import HealthComponent
from exfilsim.messages import MessageBus
from exfilsim.node import Actor, Node, Vector
from exfilsim.support import (
    SupportDefinition,
    SupportPhase,
    SupportRequest,
    SupportResolver,
    SupportSystem,
    SupportType,
    UnknownSupportType,
)
from exfilsim.turn import TurnSystem


def make_pawn(name, location, max_health=100):
    pawn = Actor(name, location)
    pawn.add_component(HealthComponent(max_health, pawn))
    return pawn


def hp(pawn):
    return pawn.find_component(HealthComponent).current_health


def make_request(definition, target, requested_by=None):
    return SupportRequest(
        request_id=uuid.uuid4(),
        definition=definition,
        target_location=target,
        requested_by=requested_by,
    )


def test_damage_only_inside_radius():
    near = make_pawn("near", Vector(50, 0, 0))
    far = make_pawn("far", Vector(1000, 0, 0))
    resolver = SupportResolver(MessageBus(), [near, far], [])
    definition = SupportDefinition(radius_cm=100.0, damage=30)
    res = resolver.resolve(make_request(definition, Vector()))
    assert res.damage_events_emitted == 1
    assert hp(near) == 100 - 30
    assert hp(far) == 100
    assert res.friendly_fire_applied is False


def test_friendly_fire_on_instigator():
    player = make_pawn("player", Vector(10, 0, 0))
    resolver = SupportResolver(None, [player], [])
    definition = SupportDefinition(radius_cm=100.0, damage=20)
    res = resolver.resolve(make_request(definition, Vector(), requested_by=player))
    assert res.friendly_fire_applied is True
    assert hp(player) == 100 - 20


def test_no_damage_when_not_dealing_damage():
    pawn = make_pawn("p", Vector())
    resolver = SupportResolver(None, [pawn], [])
    definition = SupportDefinition(deals_damage=False, radius_cm=100.0, damage=20)
    res = resolver.resolve(make_request(definition, Vector()))
    assert res.damage_events_emitted == 0
    assert hp(pawn) == 100


def test_heal_requester_in_range_and_message():
    bus = MessageBus()
    player = make_pawn("player", Vector(20, 0, 0))
    health = player.find_component(HealthComponent)
    health.apply_damage(40)
    before = health.current_health
    resolver = SupportResolver(bus, [], [])
    definition = SupportDefinition(
        support_type=SupportType.SUPPLY_POD, deals_damage=False, heal_amount=25, radius_cm=100.0
    )
    res = resolver.resolve(make_request(definition, Vector(), requested_by=player))
    assert res.heal_events_applied == 1
    assert health.current_health == before + 25
    assert bus.active_messages()[-1].text == "補給を受領。HP +25。"


def test_heal_out_of_range_does_nothing():
    player = make_pawn("player", Vector(500, 0, 0))
    health = player.find_component(HealthComponent)
    health.apply_damage(40)
    before = health.current_health
    resolver = SupportResolver(None, [], [])
    definition = SupportDefinition(deals_damage=False, heal_amount=25, radius_cm=100.0)
    res = resolver.resolve(make_request(definition, Vector(), requested_by=player))
    assert res.heal_events_applied == 0
    assert health.current_health == before


def test_terrain_destruction_removes_adjacency():
    target = Node("target", Vector(), destroyable=True)
    sturdy = Node("sturdy", Vector(10, 0, 0), destroyable=False)
    neighbour = Node("neighbour", Vector(1000, 0, 0), destroyable=True)
    neighbour.adjacent = [target, sturdy]
    sturdy.adjacent = [target]
    resolver = SupportResolver(None, [], [target, sturdy, neighbour])
    definition = SupportDefinition(deals_damage=False, terrain_destruction_radius_cm=100.0)
    res = resolver.resolve(make_request(definition, Vector()))
    assert res.destroyed_nodes == [target]
    assert target.is_destroyed
    assert not sturdy.is_destroyed
    assert not neighbour.is_destroyed
    assert neighbour.adjacent == [sturdy]
    assert sturdy.adjacent == []


def test_resolve_without_definition_is_noop():
    pawn = make_pawn("p", Vector())
    resolver = SupportResolver(None, [pawn], [])
    request = make_request(None, Vector())
    res = resolver.resolve(request)
    assert res.request_id == request.request_id
    assert res.damage_events_emitted == 0
    assert hp(pawn) == 100


def test_request_unknown_type_raises():
    system = SupportSystem()
    with pytest.raises(UnknownSupportType):
        system.request_support(SupportType.ORBITAL_BARRAGE, Vector())


def test_request_support_queues_pending():
    system = SupportSystem()
    submitted = []
    system.on_support_submitted.append(submitted.append)
    definition = SupportDefinition(delay_turns=3)
    system.register_definition(SupportType.PRECISION_STRIKE, definition)
    assert system.find_definition(SupportType.PRECISION_STRIKE) is definition
    request_id = system.request_support(SupportType.PRECISION_STRIKE, Vector(1, 2, 3))
    pending = system.pending_requests()
    assert [r.request_id for r in pending] == [request_id]
    assert pending[0].turns_remaining == 3
    assert pending[0].phase is SupportPhase.PENDING
    assert [r.request_id for r in submitted] == [request_id]


def test_cancel_request():
    system = SupportSystem()
    system.register_definition(SupportType.PRECISION_STRIKE, SupportDefinition())
    request_id = system.request_support(SupportType.PRECISION_STRIKE, Vector())
    assert system.cancel_request(request_id) is True
    assert system.cancel_request(request_id) is False
    assert system.cancel_request(uuid.uuid4()) is False
    assert system.pending_requests() == []


def test_register_none_definition_ignored():
    system = SupportSystem()
    system.register_definition(SupportType.SUPPLY_POD, None)
    assert system.find_definition(SupportType.SUPPLY_POD) is None


def test_delay_counts_turn_ends_through_turn_system():
    bus = MessageBus()
    enemy = make_pawn("enemy", Vector())
    player = Actor("player", Vector(5000, 0, 0))
    turns = TurnSystem(bus)
    turns.register_participant(player)
    turns.register_participant(enemy)
    resolver = SupportResolver(bus, [enemy], [])
    system = SupportSystem(bus, resolver, turns)
    resolved = []
    system.on_support_resolved.append(resolved.append)
    system.register_definition(
        SupportType.PRECISION_STRIKE,
        SupportDefinition(delay_turns=2, radius_cm=100.0, damage=30),
    )
    request_id = system.request_support(SupportType.PRECISION_STRIKE, Vector(), player)
    turns.begin_round()

    turns.end_current_turn()
    assert system.pending_requests()[0].turns_remaining == 1
    assert hp(enemy) == 100

    turns.end_current_turn()
    assert system.pending_requests() == []
    assert [r.request_id for r in resolved] == [request_id]
    assert hp(enemy) == 100 - 30
    assert any(m.text == "精密射撃 解決。" for m in bus.active_messages())


def test_zero_delay_resolves_on_first_turn_end():
    resolver = SupportResolver(None, [], [])
    system = SupportSystem(None, resolver)
    resolved = []
    system.on_support_resolved.append(resolved.append)
    system.register_definition(
        SupportType.SUPPLY_POD,
        SupportDefinition(support_type=SupportType.SUPPLY_POD, delay_turns=0, deals_damage=False),
    )
    system.request_support(SupportType.SUPPLY_POD, Vector())
    system.handle_turn_end(None)
    assert len(resolved) == 1
    assert system.pending_requests() == []


def test_no_resolver_leaves_request_unresolved():
    system = SupportSystem()
    resolved = []
    system.on_support_resolved.append(resolved.append)
    system.register_definition(SupportType.PRECISION_STRIKE, SupportDefinition(delay_turns=1))
    system.request_support(SupportType.PRECISION_STRIKE, Vector())
    system.handle_turn_end(None)
    assert resolved == []
    assert system.pending_requests() == []


def test_cancelled_request_is_not_resolved():
    pawn = make_pawn("p", Vector())
    system = SupportSystem(None, SupportResolver(None, [pawn], []))
    system.register_definition(
        SupportType.PRECISION_STRIKE, SupportDefinition(delay_turns=1, radius_cm=100.0, damage=10)
    )
    request_id = system.request_support(SupportType.PRECISION_STRIKE, Vector())
    system.cancel_request(request_id)
    system.handle_turn_end(None)
    assert hp(pawn) == 100


def test_deinitialize_unsubscribes():
    turns = TurnSystem()
    system = SupportSystem(None, SupportResolver(), turns)
    assert len(turns.on_turn_end) == 1
    system.deinitialize()
    assert turns.on_turn_end == []
    assert system.find_definition(SupportType.PRECISION_STRIKE) is None