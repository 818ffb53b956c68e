"""Entering the game: file transfers and the final welcome."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Optional, Union

from geoserv.player import ClientState, NearbyInfo, Player

logger = logging.getLogger(__name__)

GUILD_TAG_LENGTH = 3
WELCOME_NEWS = ("Welcome to geoserv!",) + ("",) * 8


class FileType(IntEnum):
    """Data files a client may request while entering the game."""

    EMF = 1
    EIF = 2
    ENF = 3
    ESF = 4
    ECF = 5


_PUB_FILES = {
    FileType.EIF: "pub/dat001.eif",
    FileType.ENF: "pub/dtn001.enf",
    FileType.ESF: "pub/dsl001.esf",
    FileType.ECF: "pub/dat001.ecf",
}


@dataclass
class InitFile:
    """A data file sent to the client; pub files carry a file id, maps do not."""

    file_type: FileType
    content: bytes
    file_id: Optional[int] = None


@dataclass
class WelcomeEnterGame:
    """Everything the client needs once it is in the game."""

    news: list[str]
    weight: int
    max_weight: int
    items: list[tuple[int, int]] = field(default_factory=list)
    spells: list[tuple[int, int]] = field(default_factory=list)
    nearby: NearbyInfo = field(default_factory=NearbyInfo)


def pad_guild_tag(tag: str) -> str:
    """Pad or cut a guild tag to exactly three characters."""
    return tag.ljust(GUILD_TAG_LENGTH)[:GUILD_TAG_LENGTH]


def request_file(
    player: Player, file_type: FileType, data_dir: Union[str, os.PathLike] = "data"
) -> Optional[InitFile]:
    """Send the requested map or pub file from ``data_dir``; None if unavailable."""
    if player.state != ClientState.ENTERING_GAME:
        return None

    base = Path(data_dir)
    if file_type == FileType.EMF:
        path = base / "maps" / f"{player.map_id:05d}.emf"
        file_id = None
    elif file_type in _PUB_FILES:
        path = base / _PUB_FILES[FileType(file_type)]
        file_id = 1
    else:
        return None

    try:
        content = path.read_bytes()
    except OSError:
        logger.exception("failed to read file %s", path)
        return None

    packet = InitFile(FileType(file_type), content, file_id)
    player.send(packet)
    return packet


def enter_game(player: Player) -> Optional[WelcomeEnterGame]:
    """Place the selected character in the world and send the welcome."""
    if player.state != ClientState.ENTERING_GAME:
        return None

    player.state = ClientState.IN_GAME

    world = player.world
    nearby = NearbyInfo()
    if world is not None:
        if player.map_id > 0:
            world.enter_map(player.map_id, player)
            world.bind_player_session(player.id, player)
        found = world.nearby_info(player.map_id)
        if found is not None:
            nearby = found

    logger.info(
        "player %d entered game as %s on map %d at (%d, %d)",
        player.id, player.name, player.map_id, player.x, player.y,
    )

    packet = WelcomeEnterGame(
        news=list(WELCOME_NEWS),
        weight=player.weight,
        max_weight=player.max_weight,
        items=[(item_id, qty) for item_id, qty in player.inventory.items() if qty > 0],
        spells=[(spell.id, spell.level) for spell in player.spells],
        nearby=nearby,
    )
    player.send(packet)
    return packet