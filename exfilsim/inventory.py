"""Per-pawn inventory: weapon slots and ammunition pool."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from exfilsim.weapon import AmmoType, ReloadResult, WeaponInstance, WeaponSlot

logger = logging.getLogger(__name__)


class InventoryComponent:
    """Holds weapons by slot and an ammo pool by ammo type.

    It is the single entry point for spending shot resources and for
    reloading. ``on_reloaded`` handlers receive the ``ReloadResult`` of each
    reload that actually loaded rounds.
    """

    def __init__(self, owner: Any = None) -> None:
        self.owner = owner
        self._active_slot = WeaponSlot.MAIN
        self._weapons: dict[WeaponSlot, WeaponInstance | None] = {}
        self._ammo: dict[AmmoType, int] = {}
        self.on_reloaded: list[Callable[[ReloadResult], Any]] = []

    def equip_weapon(self, slot: WeaponSlot, weapon: WeaponInstance | None) -> None:
        """Put ``weapon`` into ``slot``, replacing whatever was there."""
        self._weapons[slot] = weapon
        logger.info("[Inventory] EquipWeapon slot=%s", slot.name)

    def set_active_slot(self, slot: WeaponSlot) -> None:
        """Choose which slot holds the current weapon."""
        self._active_slot = slot
        logger.info("[Inventory] SetActiveSlot -> %s", slot.name)

    @property
    def active_slot(self) -> WeaponSlot:
        """The currently active slot."""
        return self._active_slot

    @property
    def current_weapon(self) -> WeaponInstance | None:
        """The weapon in the active slot, or None."""
        return self._weapons.get(self._active_slot)

    def ammo_count(self, ammo_type: AmmoType) -> int:
        """Rounds of ``ammo_type`` in the pool."""
        return self._ammo.get(ammo_type, 0)

    def add_ammo(self, ammo_type: AmmoType, count: int) -> None:
        """Add rounds to the pool; non-positive counts are ignored."""
        if count <= 0:
            return
        self._ammo[ammo_type] = self._ammo.get(ammo_type, 0) + count
        logger.info(
            "[Inventory] AddAmmo type=%s +%d -> %d", ammo_type.name, count, self._ammo[ammo_type]
        )

    def consume_shot_for_current_weapon(self) -> bool:
        """Spend the pool, magazine and durability for one shot; False if it cannot fire."""
        weapon = self.current_weapon
        if weapon is None:
            logger.warning("[Inventory] ConsumeShotForCurrentWeapon rejected: no current weapon")
            return False
        definition = weapon.definition
        if definition is None:
            logger.warning("[Inventory] ConsumeShotForCurrentWeapon rejected: weapon has no def")
            return False

        ammo_type = definition.ammo_type
        required = definition.shots_per_action
        if definition.uses_ammo_pool:
            available = self._ammo.get(ammo_type, 0)
            if available < required:
                logger.info(
                    "[Inventory] ConsumeShot: insufficient pool (%d < %d for %s)",
                    available, required, ammo_type.name,
                )
                return False

        if not weapon.consume_shot():
            return False

        if definition.uses_ammo_pool:
            self._ammo[ammo_type] = self._ammo.get(ammo_type, 0) - required
            logger.info(
                "[Inventory] pool type=%s -%d -> %d", ammo_type.name, required, self._ammo[ammo_type]
            )
        return True

    def reload(self) -> ReloadResult:
        """Reload the current weapon from the pool."""
        weapon = self.current_weapon
        if weapon is None:
            logger.warning("[Inventory] Reload rejected: no current weapon")
            return ReloadResult()
        definition = weapon.definition
        if definition is None:
            logger.warning("[Inventory] Reload rejected: no weapon def")
            return ReloadResult()
        if definition.has_infinite_magazine:
            logger.info("[Inventory] Reload no-op: infinite magazine")
            return ReloadResult()
        if not definition.uses_ammo_pool:
            logger.info("[Inventory] Reload no-op: weapon does not use ammo pool")
            return ReloadResult()

        ammo_type = definition.ammo_type
        available = self._ammo.get(ammo_type, 0)
        if available <= 0:
            logger.info("[Inventory] Reload no-op: empty pool type=%s", ammo_type.name)
            return ReloadResult()

        result, pool_after = weapon.reload_from_pool(available)
        self._ammo[ammo_type] = pool_after

        if result.reloaded:
            logger.info(
                "[Inventory] Reload tactical=%d discarded=%d loaded=%d pool_after=%d",
                int(result.was_tactical), result.discarded_rounds, result.loaded_rounds, pool_after,
            )
            for handler in list(self.on_reloaded):
                handler(result)
        return result

    def is_reload_available(self) -> bool:
        """True when reloading the current weapon would load something."""
        weapon = self.current_weapon
        if weapon is None:
            return False
        definition = weapon.definition
        if definition is None or definition.has_infinite_magazine:
            return False
        if weapon.magazine_current >= definition.magazine_size:
            return False
        if not definition.uses_ammo_pool:
            return False
        return self._ammo.get(definition.ammo_type, 0) > 0