import gc

import pytest

from exfilsim.messages import MessageBus
from exfilsim.turn import TurnParticipant, TurnPhase, TurnSystem


class Unit(TurnParticipant):
    def __init__(self, name):
        self.name = name
        self.begun = 0

    def begin_turn(self):
        super().begin_turn()
        self.begun += 1


class Bystander:
    name = "bystander"


@pytest.fixture
def system():
    return TurnSystem()


def test_empty_round_has_no_participant(system):
    system.begin_round()
    assert system.current_participant is None
    assert system.round_counter == 0


def test_begin_round_dispatches_first(system):
    a, b = Unit("a"), Unit("b")
    system.register_participant(a)
    system.register_participant(b)
    system.begin_round()
    assert system.current_participant is a
    assert (a.begun, b.begun) == (1, 0)
    assert system.current_phase is TurnPhase.PLAYER
    assert system.round_counter == 1


def test_advance_and_wrap(system):
    a, b = Unit("a"), Unit("b")
    system.register_participant(a)
    system.register_participant(b)
    system.begin_round()
    system.end_current_turn()
    assert system.current_participant is b
    system.end_current_turn()
    assert system.current_participant is a
    assert system.round_counter == 2
    assert (a.begun, b.begun) == (2, 1)


def test_register_dedupes(system):
    a = Unit("a")
    system.register_participant(a)
    system.register_participant(a)
    system.begin_round()
    system.end_current_turn()
    assert system.current_participant is a
    assert system.round_counter == 2


def test_register_none_ignored(system):
    system.register_participant(None)
    system.begin_round()
    assert system.current_participant is None


def test_round_message_pushed():
    bus = MessageBus()
    system = TurnSystem(bus)
    system.register_participant(Unit("a"))
    keep = system.current_participant
    unit = Unit("b")
    system.register_participant(unit)
    system.begin_round()
    assert [m.text for m in bus.active_messages()][-1] == "ラウンド 1 開始。"
    assert keep is None


def test_events(system):
    a, b = Unit("a"), Unit("b")
    begins, ends, phases = [], [], []
    system.on_turn_begin.append(begins.append)
    system.on_turn_end.append(ends.append)
    system.on_phase_changed.append(phases.append)
    system.register_participant(a)
    system.register_participant(b)
    system.begin_round()
    system.end_current_turn()
    assert begins == [a, b]
    assert ends == [a]
    assert phases == [TurnPhase.PLAYER]


def test_non_participant_is_not_dispatched(system):
    plain = Bystander()
    a = Unit("a")
    system.register_participant(plain)
    system.register_participant(a)
    begins = []
    system.on_turn_begin.append(begins.append)
    system.begin_round()
    assert system.current_participant is plain
    assert begins == [plain]
    system.end_current_turn()
    assert system.current_participant is a
    assert a.begun == 1


def test_collected_participant_pruned(system):
    a = Unit("a")
    gone = Unit("gone")
    system.register_participant(gone)
    system.register_participant(a)
    del gone
    gc.collect()
    system.begin_round()
    assert system.current_participant is a


def test_unregister(system):
    a, b = Unit("a"), Unit("b")
    system.register_participant(a)
    system.register_participant(b)
    system.unregister_participant(a)
    system.begin_round()
    assert system.current_participant is b
    system.end_current_turn()
    assert system.current_participant is b
    assert system.round_counter == 2


def test_end_turn_on_empty_queue(system):
    system.end_current_turn()
    assert system.current_participant is None
    assert system.round_counter == 0


def test_deinitialize_clears(system):
    a = Unit("a")
    system.register_participant(a)
    system.begin_round()
    system.deinitialize()
    assert system.current_participant is None


def test_default_participant_finish_flag():
    unit = TurnParticipant()
    unit.turn_finished = True
    assert unit.is_turn_finished() is True
    unit.begin_turn()
    assert unit.is_turn_finished() is False