"""Storing and loading a character's state in an SQL database."""

from __future__ import annotations

import json
import sqlite3
from collections import Counter
from typing import Any

from geoserv.player import EQUIPMENT_SLOTS, Player, SpellState
from geoserv.quests import INITIAL_STATE, QuestProgressTracker, QuestState

DONE_STATE = "done"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS characters (
    id INTEGER PRIMARY KEY,
    account_id INTEGER NOT NULL DEFAULT 0,
    name TEXT NOT NULL DEFAULT '',
    title TEXT NOT NULL DEFAULT '',
    home TEXT NOT NULL DEFAULT '',
    fiance TEXT NOT NULL DEFAULT '',
    partner TEXT NOT NULL DEFAULT '',
    guild_id INTEGER,
    guild_rank_string TEXT NOT NULL DEFAULT '',
    gender INTEGER NOT NULL DEFAULT 0,
    hair_style INTEGER NOT NULL DEFAULT 0,
    hair_color INTEGER NOT NULL DEFAULT 0,
    map INTEGER NOT NULL DEFAULT 0,
    x INTEGER NOT NULL DEFAULT 0,
    y INTEGER NOT NULL DEFAULT 0,
    direction INTEGER NOT NULL DEFAULT 0,
    level INTEGER NOT NULL DEFAULT 0,
    experience INTEGER NOT NULL DEFAULT 0,
    hp INTEGER NOT NULL DEFAULT 0,
    tp INTEGER NOT NULL DEFAULT 0,
    class INTEGER NOT NULL DEFAULT 0,
    race INTEGER NOT NULL DEFAULT 0,
    strength INTEGER NOT NULL DEFAULT 0,
    intelligence INTEGER NOT NULL DEFAULT 0,
    wisdom INTEGER NOT NULL DEFAULT 0,
    agility INTEGER NOT NULL DEFAULT 0,
    constitution INTEGER NOT NULL DEFAULT 0,
    charisma INTEGER NOT NULL DEFAULT 0,
    stat_points INTEGER NOT NULL DEFAULT 0,
    skill_points INTEGER NOT NULL DEFAULT 0,
    admin_level INTEGER NOT NULL DEFAULT 0,
    gold_bank INTEGER NOT NULL DEFAULT 0,
    bank_level INTEGER NOT NULL DEFAULT 0,
    boots INTEGER NOT NULL DEFAULT 0,
    accessory INTEGER NOT NULL DEFAULT 0,
    gloves INTEGER NOT NULL DEFAULT 0,
    belt INTEGER NOT NULL DEFAULT 0,
    armor INTEGER NOT NULL DEFAULT 0,
    necklace INTEGER NOT NULL DEFAULT 0,
    hat INTEGER NOT NULL DEFAULT 0,
    shield INTEGER NOT NULL DEFAULT 0,
    weapon INTEGER NOT NULL DEFAULT 0,
    ring INTEGER NOT NULL DEFAULT 0,
    ring2 INTEGER NOT NULL DEFAULT 0,
    armlet INTEGER NOT NULL DEFAULT 0,
    armlet2 INTEGER NOT NULL DEFAULT 0,
    bracer INTEGER NOT NULL DEFAULT 0,
    bracer2 INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS character_inventory (
    character_id INTEGER NOT NULL,
    item_id INTEGER NOT NULL,
    quantity INTEGER NOT NULL,
    PRIMARY KEY (character_id, item_id)
);
CREATE TABLE IF NOT EXISTS character_bank (
    character_id INTEGER NOT NULL,
    item_id INTEGER NOT NULL,
    quantity INTEGER NOT NULL,
    PRIMARY KEY (character_id, item_id)
);
CREATE TABLE IF NOT EXISTS character_spells (
    character_id INTEGER NOT NULL,
    spell_id INTEGER NOT NULL,
    level INTEGER NOT NULL,
    PRIMARY KEY (character_id, spell_id)
);
CREATE TABLE IF NOT EXISTS character_quest_progress (
    character_id INTEGER NOT NULL,
    quest_id INTEGER NOT NULL,
    state INTEGER NOT NULL DEFAULT 0,
    npc_kills TEXT,
    player_kills INTEGER NOT NULL DEFAULT 0,
    done_at TIMESTAMP,
    completions INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (character_id, quest_id)
);
"""

_UPDATE_CHARACTER = (
    "UPDATE characters SET "
    "map = ?, x = ?, y = ?, direction = ?, "
    "level = ?, experience = ?, hp = ?, tp = ?, "
    "class = ?, race = ?, "
    "strength = ?, intelligence = ?, wisdom = ?, "
    "agility = ?, constitution = ?, charisma = ?, "
    "stat_points = ?, skill_points = ?, "
    "admin_level = ?, gold_bank = ?, "
    + ", ".join(f"{slot} = ?" for slot in EQUIPMENT_SLOTS)
    + " WHERE id = ?"
)


def _quest_payload(state_name: str, npc_kills: dict[int, int]) -> str:
    return json.dumps(
        {"state_name": state_name, "npc_kills": {str(npc): count for npc, count in npc_kills.items()}},
        sort_keys=True,
        separators=(",", ":"),
    )


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the character tables if they do not exist yet."""
    conn.executescript(_SCHEMA)


def save_character(player: Player, conn: sqlite3.Connection) -> None:
    """Persist position, stats, equipment, inventory, spells and quests in one transaction.

    Does nothing when no character is selected.
    """
    with player.lock:
        char_id = player.character_id
        if char_id is None:
            return
        stats = player.stats
        params: list[Any] = [
            player.map_id, player.x, player.y, player.direction,
            player.level, player.exp, player.hp, player.tp,
            player.class_id, player.skin,
            stats.strength, stats.intelligence, stats.wisdom,
            stats.agility, stats.constitution, stats.charisma,
            player.stat_points, player.skill_points,
            player.admin, player.gold_bank,
        ]
        params.extend(player.equipment.get(slot, 0) for slot in EQUIPMENT_SLOTS)
        params.append(char_id)

        with conn:
            conn.execute(_UPDATE_CHARACTER, params)

            conn.execute("DELETE FROM character_inventory WHERE character_id = ?", (char_id,))
            conn.executemany(
                "INSERT INTO character_inventory (character_id, item_id, quantity) VALUES (?, ?, ?)",
                [(char_id, item_id, qty) for item_id, qty in player.inventory.items() if qty > 0],
            )

            conn.execute("DELETE FROM character_spells WHERE character_id = ?", (char_id,))
            conn.executemany(
                "INSERT INTO character_spells (character_id, spell_id, level) VALUES (?, ?, ?)",
                [(char_id, spell.id, spell.level) for spell in player.spells],
            )

            conn.execute("DELETE FROM character_quest_progress WHERE character_id = ?", (char_id,))
            conn.executemany(
                "INSERT INTO character_quest_progress "
                "(character_id, quest_id, state, npc_kills, player_kills, completions) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (char_id, quest_id, 0, _quest_payload(quest.state_name, quest.npc_kills), 0, 0)
                    for quest_id, quest in player.quests.active.items()
                ],
            )
            conn.executemany(
                "INSERT INTO character_quest_progress "
                "(character_id, quest_id, state, npc_kills, player_kills, done_at, completions) "
                "VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP, ?)",
                [
                    (char_id, quest_id, 1, _quest_payload(DONE_STATE, {}), 0, 1)
                    for quest_id in player.quests.completed
                ],
            )


def load_inventory(player: Player, conn: sqlite3.Connection) -> None:
    """Read the character's inventory into ``player.inventory``."""
    if player.character_id is None:
        return
    rows = conn.execute(
        "SELECT item_id, quantity FROM character_inventory WHERE character_id = ?",
        (player.character_id,),
    )
    for item_id, qty in rows:
        player.inventory[item_id] = qty


def load_spells(player: Player, conn: sqlite3.Connection) -> None:
    """Replace ``player.spells`` with the character's learned spells."""
    if player.character_id is None:
        return
    rows = conn.execute(
        "SELECT spell_id, level FROM character_spells WHERE character_id = ?",
        (player.character_id,),
    )
    player.spells = [SpellState(spell_id, level) for spell_id, level in rows]


def _decode_payload(raw: str) -> tuple[str, dict[Any, Any]]:
    state_name = INITIAL_STATE
    npc_kills: dict[Any, Any] = {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        return state_name, npc_kills
    if isinstance(decoded, dict):
        name = decoded.get("state_name", state_name)
        if isinstance(name, str):
            state_name = name
        kills = decoded.get("npc_kills")
        if isinstance(kills, dict):
            npc_kills = kills
    return state_name, npc_kills


def load_quest_progress(player: Player, conn: sqlite3.Connection) -> None:
    """Replace ``player.quests`` with the character's stored quest progress."""
    if player.character_id is None:
        return
    rows = conn.execute(
        "SELECT quest_id, state, npc_kills, completions FROM character_quest_progress "
        "WHERE character_id = ?",
        (player.character_id,),
    )
    tracker = QuestProgressTracker()
    for quest_id, state_code, raw, completions in rows:
        if quest_id is None or state_code is None or raw is None or completions is None:
            continue
        state_name, raw_kills = _decode_payload(raw)
        if state_code == 1 or completions > 0 or state_name == DONE_STATE:
            tracker.completed.add(quest_id)
            continue
        if not state_name:
            state_name = INITIAL_STATE
        npc_kills: Counter = Counter()
        for key, count in raw_kills.items():
            try:
                npc_kills[int(key)] = count
            except ValueError:
                continue
        tracker.active[quest_id] = QuestState(quest_id, state_name, npc_kills)
    player.quests = tracker