"""Weapon definitions and runtime weapon instances."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from exfilsim.messages import MessageBus, push_system

logger = logging.getLogger(__name__)

PLAYER_WEAPON_BROKEN = "あなたの銃が壊れた!"
ENEMY_WEAPON_BROKEN = "敵の銃が壊れた!"
WEAPON_BROKEN = "武器が破損した!"


class AmmoType(enum.Enum):
    """Ammunition family a weapon draws from."""

    RIFLE = "rifle"
    PISTOL = "pistol"
    SHOTGUN = "shotgun"


class WeaponSlot(enum.Enum):
    """Inventory slot a weapon can be equipped into."""

    MAIN = "main"
    SECONDARY = "secondary"
    POWER = "power"
    RESCUE = "rescue"


@dataclass
class WeaponDefinition:
    """Static description of a weapon type."""

    name: str = "weapon"
    magazine_size: int = 30
    durability_max: int = 100
    ammo_type: AmmoType = AmmoType.RIFLE
    uses_ammo_pool: bool = True
    shots_per_action: int = 1
    durability_cost_per_action: int = 1
    has_infinite_magazine: bool = False
    has_infinite_durability: bool = False
    is_rescue: bool = False


@dataclass
class ReloadResult:
    """Outcome of a reload attempt; ``reloaded`` is False for a no-op."""

    reloaded: bool = False
    was_tactical: bool = False
    discarded_rounds: int = 0
    loaded_rounds: int = 0


class WeaponInstance:
    """A weapon in use: magazine, durability and broken state.

    ``inventory`` is the inventory that holds this weapon and ``player`` the
    player pawn; together they decide the wording of the broken notice pushed
    onto ``bus``. ``on_weapon_broken`` handlers are called with the weapon
    once, when durability runs out.
    """

    def __init__(
        self,
        definition: WeaponDefinition | None = None,
        bus: MessageBus | None = None,
        inventory: Any = None,
        player: Any = None,
    ) -> None:
        self.bus = bus
        self.inventory = inventory
        self.player = player
        self.on_weapon_broken: list[Callable[[WeaponInstance], Any]] = []
        self._definition: WeaponDefinition | None = None
        self._magazine = 0
        self._durability = 0
        self.wear_level = 0
        self.initialize_from_definition(definition)

    def initialize_from_definition(self, definition: WeaponDefinition | None) -> None:
        """Adopt ``definition`` and refill magazine and durability to its maxima."""
        self._definition = definition
        if definition is not None:
            self._magazine = definition.magazine_size
            self._durability = definition.durability_max
        else:
            self._magazine = 0
            self._durability = 0
        self.wear_level = 0
        logger.info(
            "[Weapon] InitializeFromDefinition def=%s mag=%d dur=%d",
            definition.name if definition else "None", self._magazine, self._durability,
        )

    @property
    def definition(self) -> WeaponDefinition | None:
        """The definition this weapon was built from."""
        return self._definition

    @property
    def magazine_current(self) -> int:
        """Rounds currently loaded."""
        return self._magazine

    @property
    def durability_current(self) -> int:
        """Remaining durability points."""
        return self._durability

    def is_broken(self) -> bool:
        """True when durability is spent and the weapon is not indestructible."""
        if self._definition is not None and self._definition.has_infinite_durability:
            return False
        return self._durability <= 0

    def consume_shot(self) -> bool:
        """Spend one action's magazine and durability; False if the shot cannot be fired."""
        definition = self._definition
        if definition is None:
            logger.warning("[Weapon] ConsumeShot rejected: no WeaponDef")
            return False
        if self.is_broken():
            logger.info("[Weapon] ConsumeShot rejected: broken")
            return False

        required = definition.shots_per_action
        if not definition.has_infinite_magazine and self._magazine < required:
            logger.debug(
                "[Weapon] ConsumeShot: insufficient magazine (%d < %d)", self._magazine, required
            )
            return False

        if not definition.has_infinite_magazine:
            self._magazine = max(0, self._magazine - required)

        if not definition.has_infinite_durability and not definition.is_rescue:
            self._durability -= definition.durability_cost_per_action
            if self._durability <= 0:
                self._durability = 0
                logger.info("[Weapon] OnWeaponBroken broadcast")
                for handler in list(self.on_weapon_broken):
                    handler(self)
                self._announce_broken()

        logger.info("[Weapon] ConsumeShot ok mag=%d dur=%d", self._magazine, self._durability)
        return True

    def reload_from_pool(self, available: int) -> tuple[ReloadResult, int]:
        """Reload from a pool of ``available`` rounds.

        Returns the result and the pool count left afterwards. A partly
        loaded magazine is discarded (tactical reload) before refilling.
        """
        definition = self._definition
        if definition is None:
            logger.warning("[Weapon] ReloadFromPool rejected: no WeaponDef")
            return ReloadResult(), available
        if definition.has_infinite_magazine:
            logger.info("[Weapon] ReloadFromPool no-op: infinite magazine")
            return ReloadResult(), available
        if available <= 0:
            logger.info("[Weapon] ReloadFromPool no-op: empty pool")
            return ReloadResult(), 0
        if definition.magazine_size - self._magazine <= 0:
            logger.info("[Weapon] ReloadFromPool no-op: magazine already full")
            return ReloadResult(), available

        discarded = max(0, self._magazine)
        loaded = min(definition.magazine_size, available)
        self._magazine = loaded
        pool_after = available - loaded

        result = ReloadResult(
            reloaded=True,
            was_tactical=discarded > 0,
            discarded_rounds=discarded,
            loaded_rounds=loaded,
        )
        logger.info(
            "[Weapon] ReloadFromPool tactical=%d discarded=%d loaded=%d pool_after=%d",
            int(result.was_tactical), discarded, loaded, pool_after,
        )
        return result, pool_after

    def _announce_broken(self) -> None:
        if self.bus is None:
            return
        if self.inventory is None:
            push_system(self.bus, WEAPON_BROKEN)
            return
        owner = getattr(self.inventory, "owner", None)
        if owner is not None and owner is self.player:
            push_system(self.bus, PLAYER_WEAPON_BROKEN)
        elif owner is not None:
            push_system(self.bus, ENEMY_WEAPON_BROKEN)
        else:
            push_system(self.bus, WEAPON_BROKEN)