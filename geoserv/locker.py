"""Bank locker: viewing, depositing, withdrawing and buying upgrades."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Optional

from geoserv.player import GOLD_ITEM_ID, ClientState, Player

logger = logging.getLogger(__name__)

_UPSERT_BANK = (
    "INSERT INTO character_bank (character_id, item_id, quantity) VALUES (?, ?, ?) "
    "ON CONFLICT (character_id, item_id) DO UPDATE SET quantity = quantity + excluded.quantity"
)


@dataclass(frozen=True)
class LockerItem:
    """An item stack held in a locker, or an inventory amount of an item."""

    id: int
    amount: int


@dataclass
class LockerOpen:
    """Contents of a locker, sent when it is opened."""

    x: int
    y: int
    items: list[LockerItem] = field(default_factory=list)


@dataclass
class LockerReply:
    """Answer to a deposit: what is left in the inventory and the new locker contents."""

    deposited_item: LockerItem
    weight: int
    max_weight: int
    items: list[LockerItem] = field(default_factory=list)


@dataclass
class LockerGet:
    """Answer to a withdrawal: the inventory amount now held and the new locker contents."""

    taken_item: LockerItem
    weight: int
    max_weight: int
    items: list[LockerItem] = field(default_factory=list)


@dataclass
class LockerBuy:
    """Answer to a locker upgrade purchase."""

    gold_amount: int
    upgrades: int


def _can_use_locker(player: Player) -> bool:
    return player.state == ClientState.IN_GAME and player.character_id is not None


def locker_items(player: Player, conn: sqlite3.Connection) -> list[LockerItem]:
    """Every item stack in the character's locker."""
    rows = conn.execute(
        "SELECT item_id, quantity FROM character_bank WHERE character_id = ?",
        (player.character_id,),
    )
    return [LockerItem(item_id, quantity) for item_id, quantity in rows]


def open_locker(player: Player, conn: sqlite3.Connection, x: int, y: int) -> Optional[LockerOpen]:
    """Send the locker contents to the player."""
    if not _can_use_locker(player):
        return None
    try:
        items = locker_items(player, conn)
    except sqlite3.Error:
        logger.exception("locker open query failed for player %d", player.id)
        return None
    packet = LockerOpen(x, y, items)
    player.send(packet)
    return packet


def deposit(
    player: Player, conn: sqlite3.Connection, item_id: int, amount: int
) -> Optional[LockerReply]:
    """Move ``amount`` of an item from the inventory into the locker.

    Refused when the locker is full, the stack would exceed the configured
    maximum, or the player does not hold enough of the item.
    """
    if not _can_use_locker(player):
        return None
    if item_id <= 0 or amount <= 0:
        return None

    settings = player.settings
    capacity = settings.bank_base_size + player.bank_level * settings.bank_size_step
    try:
        current = locker_items(player, conn)
    except sqlite3.Error:
        current = []
    if len(current) >= capacity:
        return None

    max_amount = settings.bank_max_item_amount
    if max_amount > 0 and any(
        stack.id == item_id and stack.amount + amount > max_amount for stack in current
    ):
        return None

    if not player.remove_item(item_id, amount):
        return None

    try:
        with conn:
            conn.execute(_UPSERT_BANK, (player.character_id, item_id, amount))
    except sqlite3.Error:
        logger.exception("locker deposit failed for player %d", player.id)
        player.add_item(item_id, amount)
        return None

    try:
        items = locker_items(player, conn)
    except sqlite3.Error:
        logger.exception("locker re-query failed for player %d", player.id)
        return None

    packet = LockerReply(
        deposited_item=LockerItem(item_id, player.inventory.get(item_id, 0)),
        weight=player.weight,
        max_weight=player.max_weight,
        items=items,
    )
    player.send(packet)
    return packet


def withdraw(player: Player, conn: sqlite3.Connection, item_id: int) -> Optional[LockerGet]:
    """Move a whole stack from the locker into the inventory."""
    if not _can_use_locker(player):
        return None
    if item_id <= 0:
        return None

    try:
        row = conn.execute(
            "SELECT quantity FROM character_bank WHERE character_id = ? AND item_id = ?",
            (player.character_id, item_id),
        ).fetchone()
    except sqlite3.Error:
        return None
    if row is None or row[0] is None or row[0] <= 0:
        return None
    bank_qty = row[0]

    try:
        with conn:
            conn.execute(
                "DELETE FROM character_bank WHERE character_id = ? AND item_id = ?",
                (player.character_id, item_id),
            )
    except sqlite3.Error:
        logger.exception("locker withdrawal failed for player %d", player.id)
        return None

    player.add_item(item_id, bank_qty)

    try:
        items = locker_items(player, conn)
    except sqlite3.Error:
        logger.exception("locker re-query failed for player %d", player.id)
        return None

    packet = LockerGet(
        taken_item=LockerItem(item_id, player.inventory.get(item_id, 0)),
        weight=player.weight,
        max_weight=player.max_weight,
        items=items,
    )
    player.send(packet)
    return packet


def buy_upgrade(player: Player, conn: sqlite3.Connection) -> Optional[LockerBuy]:
    """Pay gold to enlarge the locker by one step."""
    if not _can_use_locker(player):
        return None

    settings = player.settings
    if player.bank_level >= settings.bank_max_upgrades:
        return None

    cost = settings.bank_upgrade_base_cost + player.bank_level * settings.bank_upgrade_cost_step
    if not player.remove_item(GOLD_ITEM_ID, cost):
        return None

    player.bank_level += 1
    try:
        with conn:
            conn.execute(
                "UPDATE characters SET bank_level = ? WHERE id = ?",
                (player.bank_level, player.character_id),
            )
    except sqlite3.Error:
        logger.exception("failed to store locker level for player %d", player.id)

    packet = LockerBuy(player.inventory.get(GOLD_ITEM_ID, 0), player.bank_level)
    player.send(packet)
    return packet