# exfilsim

A self-contained rules engine for a small turn-based tactical game played on
a graph of nodes. The game state is made of plain Python objects. Events are
reported through plain callables held in lists, such as `on_died`,
`on_turn_end` and `on_support_resolved`. Player-facing text goes to a
message log.

## Modules

- `exfilsim.messages`
  - `MessageBus` is a capped log of `Message` entries, newest last. It takes
    a `clock` callable for world time and a `max_lines` cap, which defaults
    to 12 and is never treated as less than 1.
  - Its main members are `push`, `active_messages`, `clear` and
    `last_push_at`. `last_push_at` is -1 before the first push.
  - A message with a lifetime of zero or less stays until the cap evicts it.
  - The `push_info`, `push_player`, `push_enemy` and `push_system` helpers
    push persistent messages in white, light cyan, light red and yellow. All
    of them accept `None` as the bus.
- `exfilsim.health`
  - `HealthComponent` tracks `current_health` against `max_health`.
  - `apply_damage` and `apply_heal` return the HP that actually moved.
  - `on_health_changed` fires on every real change, with a negative delta
    for damage.
  - `on_died` fires exactly once, on the killing blow.
- `exfilsim.turn`
  - `TurnSystem` is a round-robin queue of participants, held by weak
    reference.
  - `begin_round` starts at the first live participant, increments
    `round_counter` and pushes a round-start message.
  - `end_current_turn` advances to the next participant and wraps into a
    new round.
  - Participants that subclass `TurnParticipant` have `begin_turn` called
    when their turn starts.
- `exfilsim.weapon`
  - `WeaponDefinition` describes a weapon type. It can be flagged with
    infinite magazine, infinite durability or rescue.
  - `WeaponInstance.consume_shot` spends magazine and durability. When
    durability runs out, the weapon breaks and a notice is pushed.
  - `reload_from_pool(available)` returns `(ReloadResult, pool_after)`. A
    partly loaded magazine is discarded first, which counts as a tactical
    reload.
- `exfilsim.inventory`
  - `InventoryComponent` holds weapons by `WeaponSlot` and ammo pools by
    `AmmoType`.
  - `consume_shot_for_current_weapon` checks the pool, fires the weapon and
    then draws the pool down.
  - `reload` refills from the pool and fires `on_reloaded` only when rounds
    were loaded.
  - `is_reload_available` reports whether a reload would load anything.
- `exfilsim.node`
  - `Vector`, `Actor` and `Node` model positions, placed objects and graph
    cells. A node tracks adjacency, holds a weak reference to its occupant
    and can be destroyed once with `mark_destroyed`.
  - `NodeGraph` looks up nodes by name and lists their neighbours.
  - `NodeMover` moves its owner over successive `tick` calls. Owners with a
    walk speed and a capsule half-height walk until they arrive or time out.
    Other owners ease along a straight line.
  - `teleport_pawn_to_node` refuses destroyed nodes and nodes held by
    another actor, and it updates occupancy on both nodes.
- `exfilsim.support`
  - `SupportSystem` queues support requests (`SupportType`,
    `SupportDefinition`, `SupportRequest`) and counts them down on each turn
    end. A request for an unregistered type raises `UnknownSupportType`.
  - `SupportResolver.resolve` does three things:
    - damages every colliding pawn within the radius;
    - heals the requester if it stands inside the radius;
    - destroys destroyable nodes within the terrain radius and removes them
      from every node's adjacency.
  - The resolver returns a `SupportResolution`.
- `exfilsim.enemy`
  - `RifleEnemy` is an actor that carries an inventory, a node mover and
    health. It takes turns, flashes when hit and plays a short death
    animation in `tick`.
  - When it dies it vacates its node and pushes a "neutralised" message.
  - `find_nearest_rifle_enemy` returns the living enemy closest to a point.

## Example

```python
from exfilsim.messages import MessageBus, push_system
from exfilsim.turn import TurnSystem
from exfilsim.enemy import RifleEnemy
from exfilsim.node import Vector

now = 0.0
bus = MessageBus(clock=lambda: now)
turns = TurnSystem(bus)

enemy = RifleEnemy("enemy-1", Vector(100.0, 0.0, 0.0), bus=bus, display_index=1)
turns.register_participant(enemy)
turns.begin_round()

enemy.take_damage(150)
for message in bus.active_messages():
    print(message.text)
```

## What it does not do

- There is no rendering, HUD or input handling. The message log only holds
  text and colours for some other layer to draw.
- There is no line-of-sight, shot resolution or enemy decision-making.
- A `RifleEnemy` hands its turn to whatever object is set as its
  `controller`. If no controller is set, the enemy ends its turn at once.
- There is no mission or game-mode logic, no persistence and no command to
  run.

## Running the tests

```
pip install -e .[test]
pytest
```