"""Jukebox, online player list, lookups and ping handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from geoserv.player import GOLD_ITEM_ID, ClientState, Player


class CharacterIcon(IntEnum):
    """Icon shown beside a player's name in lists."""

    PLAYER = 1
    GM = 4
    HGM = 5


@dataclass
class OnlinePlayer:
    """One entry of the online player list."""

    name: str
    title: str
    level: int
    icon: CharacterIcon
    class_id: int
    guild_tag: str


@dataclass
class PlayerPosition:
    """Where an online player stands."""

    map_id: int
    x: int = 0
    y: int = 0
    sit_state: int = 0


@dataclass
class JukeboxOpen:
    map_id: int


@dataclass
class JukeboxUse:
    track_id: int


@dataclass
class JukeboxAgree:
    gold_amount: int


@dataclass
class PlayersList:
    players: list[OnlinePlayer] = field(default_factory=list)


@dataclass
class PlayersFriendList:
    names: list[str] = field(default_factory=list)


@dataclass
class MessagePong:
    pass


@dataclass
class PlayerLookup:
    """Answer to a player lookup: whether they are online and on the same map."""

    name: str
    found: bool
    same_map: bool = False


def admin_icon(admin: int) -> CharacterIcon:
    """Icon for an admin level."""
    if admin >= 4:
        return CharacterIcon.HGM
    if admin >= 1:
        return CharacterIcon.GM
    return CharacterIcon.PLAYER


def _in_game(player: Player) -> bool:
    return player.state == ClientState.IN_GAME


def jukebox_open(player: Player) -> Optional[JukeboxOpen]:
    """Open the jukebox window."""
    if not _in_game(player):
        return None
    packet = JukeboxOpen(player.map_id)
    player.send(packet)
    return packet


def jukebox_play(player: Player, track_id: int) -> Optional[JukeboxAgree]:
    """Pay for and start a jukebox track on the player's map; refund if it cannot start."""
    if not _in_game(player):
        return None
    if not 1 <= track_id <= player.settings.jukebox_max_track_id:
        return None
    cost = player.settings.jukebox_cost
    if not player.remove_item(GOLD_ITEM_ID, cost):
        return None
    world = player.world
    if world is None or not world.try_start_jukebox(player.map_id, track_id):
        player.add_item(GOLD_ITEM_ID, cost)
        return None

    world.broadcast_map(player.map_id, -1, JukeboxUse(track_id + 1))
    packet = JukeboxAgree(player.inventory.get(GOLD_ITEM_ID, 0))
    player.send(packet)
    return packet


def players_request(player: Player) -> Optional[PlayersList]:
    """Send the list of online players."""
    if not _in_game(player):
        return None
    if player.world is None:
        packet = PlayersList()
    else:
        packet = PlayersList(
            [
                OnlinePlayer(
                    name=info.name,
                    title=info.title,
                    level=info.level,
                    icon=admin_icon(info.admin),
                    class_id=info.class_id,
                    guild_tag=info.guild_tag,
                )
                for info in player.world.online_players()
            ]
        )
    player.send(packet)
    return packet


def message_ping(player: Player) -> Optional[MessagePong]:
    """Answer a client ping."""
    if not _in_game(player):
        return None
    packet = MessagePong()
    player.send(packet)
    return packet


def find_player(player: Player, name: str) -> Optional[PlayerLookup]:
    """Report whether a named player is online and whether they share the player's map."""
    world = player.world
    if not _in_game(player) or world is None:
        return None
    lookup = name.strip().lower()
    if not lookup:
        return None

    target_id = world.find_player_by_name(lookup)
    if target_id is None:
        packet = PlayerLookup(name, found=False)
    else:
        target_name = world.player_name(target_id) or name
        position = world.player_position(target_id)
        if position is None:
            packet = PlayerLookup(target_name, found=False)
        else:
            packet = PlayerLookup(target_name, found=True, same_map=position.map_id == player.map_id)
    player.send(packet)
    return packet


def players_list(player: Player) -> Optional[PlayersFriendList]:
    """Send the names of every online player."""
    if not _in_game(player) or player.world is None:
        return None
    packet = PlayersFriendList([info.name for info in player.world.online_players()])
    player.send(packet)
    return packet