"""Chat: local, global, private, admin, announcement, party and guild messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from geoserv.player import ClientState, Player, World

ADMIN_CHAT_LEVEL = 1
ANNOUNCE_LEVEL = 2


@dataclass
class TalkPlayer:
    """Local chat shown above a player on the same map."""

    player_id: int
    message: str


@dataclass
class TalkMsg:
    """Global chat."""

    player_name: str
    message: str


@dataclass
class TalkTell:
    """A private message."""

    player_name: str
    message: str


@dataclass
class TalkNotFound:
    """Tells the sender that the addressee of a private message is not online."""

    name: str


@dataclass
class TalkAdmin:
    """Chat among admins."""

    player_name: str
    message: str


@dataclass
class TalkAnnounce:
    """A server-wide announcement by an admin."""

    player_name: str
    message: str


@dataclass
class TalkParty:
    """Chat within a party."""

    player_id: int
    message: str


@dataclass
class TalkGuild:
    """Chat within a guild."""

    player_name: str
    message: str


def _speaking_world(player: Player) -> Optional[World]:
    """The world, if the player is in game and allowed to chat."""
    if player.state != ClientState.IN_GAME:
        return None
    world = player.world
    if world is None or world.is_muted(player.id):
        return None
    return world


def talk_local(player: Player, message: str) -> Optional[TalkPlayer]:
    """Say something to everyone else on the player's map."""
    world = _speaking_world(player)
    if world is None:
        return None
    packet = TalkPlayer(player.id, message)
    world.broadcast_map(player.map_id, player.id, packet)
    return packet


def talk_global(player: Player, message: str) -> Optional[TalkMsg]:
    """Say something to everyone else online."""
    world = _speaking_world(player)
    if world is None:
        return None
    packet = TalkMsg(player.name, message)
    world.broadcast_global(player.id, packet)
    return packet


def talk_private(player: Player, name: str, message: str) -> Optional[TalkTell | TalkNotFound]:
    """Send a private message; the sender is told if the addressee is not online."""
    world = _speaking_world(player)
    if world is None:
        return None
    target_id = world.find_player_by_name(name.lower())
    if target_id is None:
        reply = TalkNotFound(name)
        player.send(reply)
        return reply
    packet = TalkTell(player.name, message)
    world.send_to_player(target_id, packet)
    return packet


def talk_admin(player: Player, message: str) -> Optional[TalkAdmin]:
    """Speak in the admin channel; only admins may."""
    world = _speaking_world(player)
    if world is None or player.admin < ADMIN_CHAT_LEVEL:
        return None
    packet = TalkAdmin(player.name, message)
    world.broadcast_to_admins(player.id, ADMIN_CHAT_LEVEL, packet)
    return packet


def talk_announce(player: Player, message: str) -> Optional[TalkAnnounce]:
    """Make a server-wide announcement; requires admin level 2 or more."""
    world = _speaking_world(player)
    if world is None or player.admin < ANNOUNCE_LEVEL:
        return None
    packet = TalkAnnounce(player.name, message)
    world.broadcast_global(player.id, packet)
    return packet


def talk_party(player: Player, message: str) -> Optional[TalkParty]:
    """Speak to the player's party."""
    world = _speaking_world(player)
    if world is None:
        return None
    packet = TalkParty(player.id, message)
    world.broadcast_to_party(player.id, packet)
    return packet


def talk_guild(player: Player, message: str) -> Optional[TalkGuild]:
    """Speak to the player's guild; players without a guild cannot."""
    world = _speaking_world(player)
    if world is None or not player.guild_tag:
        return None
    packet = TalkGuild(player.name, message)
    world.broadcast_to_guild(player.id, player.guild_tag, packet)
    return packet