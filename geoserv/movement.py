"""Walking, sitting, warping and queries about what is nearby."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from geoserv.player import ClientState, NearbyInfo, Player, World

logger = logging.getLogger(__name__)

STANDING = 0
ON_CHAIR = 1
ON_FLOOR = 2


class SitAction(IntEnum):
    """What a player asks to do with a chair."""

    SIT = 1
    STAND = 2


@dataclass
class SitPlayer:
    """Tells others on the map that a player sat down or stood up."""

    player_id: int
    x: int
    y: int
    direction: int


@dataclass
class WarpAgree:
    """Confirms a warp and shows what is around the destination."""

    map_id: int
    nearby: NearbyInfo = field(default_factory=NearbyInfo)


@dataclass
class RangeReply:
    """What is in range of the player."""

    nearby: NearbyInfo = field(default_factory=NearbyInfo)


@dataclass
class RefreshReply:
    """Everything visible on the player's map."""

    nearby: NearbyInfo = field(default_factory=NearbyInfo)


def _world(player: Player) -> Optional[World]:
    if player.state != ClientState.IN_GAME:
        return None
    return player.world


def walk(player: Player, direction: int, x: int, y: int) -> bool:
    """Move the player to ``(x, y)`` facing ``direction``; refused during a captcha."""
    world = _world(player)
    if world is None:
        logger.debug("walk rejected for player %d: not in game", player.id)
        return False
    if world.has_captcha(player.id):
        return False
    world.walk(player.map_id, player.id, direction, (x, y))
    player.x = x
    player.y = y
    player.direction = direction
    return True


def _announce_sit(player: Player, world: World, sit_state: int, x: int, y: int) -> SitPlayer:
    world.update_player_sit_state(player.map_id, player.id, sit_state)
    packet = SitPlayer(player.id, x, y, player.direction)
    world.broadcast_map(player.map_id, player.id, packet)
    return packet


def sit_toggle(player: Player) -> Optional[SitPlayer]:
    """Sit on the floor, or stand up if already sitting on the floor."""
    world = _world(player)
    if world is None:
        return None
    position = world.player_position(player.id)
    current = getattr(position, "sit_state", STANDING) if position is not None else STANDING
    new_state = STANDING if current == ON_FLOOR else ON_FLOOR
    return _announce_sit(player, world, new_state, player.x, player.y)


def chair(
    player: Player, action: SitAction, coords: Optional[tuple[int, int]] = None
) -> Optional[SitPlayer]:
    """Sit on the chair at ``coords`` (the player's tile if none), or stand up."""
    world = _world(player)
    if world is None:
        return None
    if action == SitAction.SIT:
        x, y = coords if coords is not None else (player.x, player.y)
        return _announce_sit(player, world, ON_CHAIR, x, y)
    if action == SitAction.STAND:
        return _announce_sit(player, world, STANDING, player.x, player.y)
    return None


def accept_warp(player: Player) -> Optional[WarpAgree]:
    """Complete a pending warp, the player's own first, else one the world queued."""
    world = _world(player)
    if world is None:
        return None

    destination = player.pending_warp
    if destination is not None:
        player.pending_warp = None
    else:
        destination = world.pending_warp(player.map_id, player.id)
    if destination is None:
        return None

    found = world.warp_player(player.id, player.map_id, destination.map_id, destination.x, destination.y)
    player.map_id = destination.map_id
    player.x = destination.x
    player.y = destination.y
    world.update_player_vitals(player.map_id, player.id, player.hp, player.tp)

    nearby = found if isinstance(found, NearbyInfo) else NearbyInfo()
    packet = WarpAgree(destination.map_id, nearby)
    player.send(packet)
    return packet


def _nearby(player: Player) -> Optional[NearbyInfo]:
    world = _world(player)
    if world is None:
        return None
    found = world.nearby_info(player.map_id)
    return found if isinstance(found, NearbyInfo) else None


def _send(player: Player, packet):
    player.send(packet)
    return packet


def npc_range(player: Player) -> Optional[RangeReply]:
    """Send the NPCs on the player's map."""
    nearby = _nearby(player)
    if nearby is None:
        return None
    return _send(player, RangeReply(NearbyInfo(npcs=list(nearby.npcs))))


def player_range(player: Player) -> Optional[RangeReply]:
    """Send the characters on the player's map."""
    nearby = _nearby(player)
    if nearby is None:
        return None
    return _send(player, RangeReply(NearbyInfo(characters=list(nearby.characters))))


def range_request(player: Player) -> Optional[RangeReply]:
    """Send everything on the player's map."""
    nearby = _nearby(player)
    if nearby is None:
        return None
    return _send(player, RangeReply(nearby))


def refresh(player: Player) -> Optional[RefreshReply]:
    """Send a full refresh of the player's map."""
    nearby = _nearby(player)
    if nearby is None:
        return None
    return _send(player, RefreshReply(nearby))