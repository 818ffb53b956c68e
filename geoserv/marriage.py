"""Marriage approval and divorce at the law NPC."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

from geoserv.player import GOLD_ITEM_ID, ClientState, Player

logger = logging.getLogger(__name__)


class MarriageReply(IntEnum):
    """Outcome codes of a marriage request."""

    ALREADY_MARRIED = 1
    NOT_MARRIED = 2
    SUCCESS = 3
    NOT_ENOUGH_GOLD = 4
    WRONG_NAME = 5
    SERVICE_BUSY = 6
    DIVORCE_NOTIFICATION = 7


class MarriageRequestType(IntEnum):
    """What a player asks the law NPC for."""

    MARRIAGE_APPROVAL = 1
    DIVORCE = 2


@dataclass(frozen=True)
class MarriageStatus:
    """A character's name, level and relationships as stored."""

    name: str
    level: int
    fiance: str
    partner: str


@dataclass
class MarriageOpen:
    session_id: int


@dataclass
class MarriageReplyPacket:
    """Reply to a marriage request; gold is reported only on success."""

    reply_code: MarriageReply
    gold_amount: Optional[int] = None


class _RelationshipUpdateFailed(Exception):
    pass


def _load_status(conn: sqlite3.Connection, where: str, arg: Any) -> Optional[MarriageStatus]:
    row = conn.execute(
        "SELECT COALESCE(name, ''), COALESCE(level, 0), COALESCE(fiance, ''), "
        "COALESCE(partner, '') FROM characters " + where,
        (arg,),
    ).fetchone()
    return None if row is None else MarriageStatus(*row)


def marriage_status_by_id(conn: sqlite3.Connection, character_id: int) -> Optional[MarriageStatus]:
    """Relationship status of a character by id, or None if there is no such character."""
    return _load_status(conn, "WHERE id = ?", character_id)


def marriage_status_by_name(conn: sqlite3.Connection, name: str) -> Optional[MarriageStatus]:
    """Relationship status of a character by name, ignoring case, or None."""
    return _load_status(conn, "WHERE LOWER(name) = ?", name.lower())


def _same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def _reply(player: Player, code: MarriageReply, gold: Optional[int] = None) -> MarriageReplyPacket:
    packet = MarriageReplyPacket(code, gold)
    player.send(packet)
    return packet


def _update_relationships(conn: sqlite3.Connection, *updates: tuple[str, tuple[Any, ...]]) -> bool:
    """Run updates in one transaction; each must touch exactly one row."""
    try:
        with conn:
            for query, params in updates:
                if conn.execute(query, params).rowcount != 1:
                    raise _RelationshipUpdateFailed(query)
    except (sqlite3.Error, _RelationshipUpdateFailed):
        logger.exception("relationship update failed")
        return False
    return True


def open_marriage(player: Player) -> Optional[MarriageOpen]:
    """Open the law NPC dialog with a fresh session id."""
    if player.state != ClientState.IN_GAME:
        return None
    packet = MarriageOpen(player.generate_session_id())
    player.send(packet)
    return packet


def request_marriage(
    player: Player,
    conn: sqlite3.Connection,
    session_id: int,
    request_type: MarriageRequestType,
    name: str,
) -> Optional[MarriageReplyPacket]:
    """Handle a marriage approval or divorce request made in an open law dialog."""
    if player.state != ClientState.IN_GAME or player.character_id is None:
        return None
    if not player.take_and_validate_session_id(session_id):
        return None

    partner_name = name.lower().strip()
    if not partner_name:
        return _reply(player, MarriageReply.WRONG_NAME)

    if request_type == MarriageRequestType.DIVORCE:
        return _divorce(player, conn, partner_name)
    if request_type == MarriageRequestType.MARRIAGE_APPROVAL:
        return _approve(player, conn, partner_name)
    return None


def _approve(player: Player, conn: sqlite3.Connection, partner_name: str) -> Optional[MarriageReplyPacket]:
    if _same_name(partner_name, player.name):
        return _reply(player, MarriageReply.WRONG_NAME)

    try:
        current = marriage_status_by_id(conn, player.character_id)
    except sqlite3.Error:
        return None
    if current is None:
        return None
    if current.partner:
        return _reply(player, MarriageReply.ALREADY_MARRIED)
    if current.fiance and not _same_name(current.fiance, partner_name):
        return _reply(player, MarriageReply.WRONG_NAME)

    try:
        partner = marriage_status_by_name(conn, partner_name)
    except sqlite3.Error:
        return None
    if partner is None or _same_name(partner.name, player.name):
        return _reply(player, MarriageReply.WRONG_NAME)
    if partner.partner:
        return _reply(player, MarriageReply.ALREADY_MARRIED)
    if partner.fiance and not _same_name(partner.fiance, player.name):
        return _reply(player, MarriageReply.WRONG_NAME)

    cost = player.settings.marriage_approval_cost
    if cost > 0 and not player.remove_item(GOLD_ITEM_ID, cost):
        return _reply(player, MarriageReply.NOT_ENOUGH_GOLD)

    if not _update_relationships(
        conn,
        ("UPDATE characters SET fiance = ? WHERE id = ?", (partner.name, player.character_id)),
        ("UPDATE characters SET fiance = ? WHERE LOWER(name) = ?", (player.name, partner_name)),
    ):
        return None
    return _reply(player, MarriageReply.SUCCESS, player.inventory.get(GOLD_ITEM_ID, 0))


def _divorce(player: Player, conn: sqlite3.Connection, partner_name: str) -> Optional[MarriageReplyPacket]:
    try:
        current = marriage_status_by_id(conn, player.character_id)
    except sqlite3.Error:
        logger.exception("failed to load current partner of player %d", player.id)
        return None
    if current is None:
        return None

    if not _same_name(current.partner, partner_name):
        return _reply(player, MarriageReply.NOT_MARRIED)

    cost = player.settings.marriage_divorce_cost
    if cost > 0 and not player.remove_item(GOLD_ITEM_ID, cost):
        return _reply(player, MarriageReply.NOT_ENOUGH_GOLD)

    if not _update_relationships(
        conn,
        ("UPDATE characters SET fiance = '', partner = '' WHERE id = ?", (player.character_id,)),
        ("UPDATE characters SET fiance = '', partner = '' WHERE LOWER(name) = ?", (partner_name,)),
    ):
        return None
    return _reply(player, MarriageReply.SUCCESS, player.inventory.get(GOLD_ITEM_ID, 0))