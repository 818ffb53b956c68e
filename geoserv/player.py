"""Connected player session state and the operations on it."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Callable, Optional, Protocol

from geoserv.quests import QuestProgressTracker

GOLD_ITEM_ID = 1
MAX_SESSION_ID = 64000

EQUIPMENT_SLOTS = (
    "boots",
    "accessory",
    "gloves",
    "belt",
    "armor",
    "necklace",
    "hat",
    "shield",
    "weapon",
    "ring",
    "ring2",
    "armlet",
    "armlet2",
    "bracer",
    "bracer2",
)


class ClientState(IntEnum):
    """Connection state of a client, in the order a session moves through them."""

    UNINITIALIZED = 0
    INITIALIZED = 1
    ACCEPTED = 2
    LOGGED_IN = 3
    ENTERING_GAME = 4
    IN_GAME = 5


@dataclass
class Settings:
    """Server settings a player session consults. Zero disables a limit."""

    max_item: int = 0
    max_trade: int = 0
    protected_items: frozenset[int] = frozenset()
    recovery_delay: timedelta = timedelta(0)
    jukebox_cost: int = 0
    jukebox_max_track_id: int = 0
    bank_base_size: int = 0
    bank_size_step: int = 0
    bank_max_item_amount: int = 0
    bank_max_upgrades: int = 0
    bank_upgrade_base_cost: int = 0
    bank_upgrade_cost_step: int = 0
    marriage_approval_cost: int = 0
    marriage_divorce_cost: int = 0
    spawn_map: int = 0
    spawn_x: int = 0
    spawn_y: int = 0


@dataclass
class CharacterStats:
    """Base stats of a character."""

    strength: int = 0
    intelligence: int = 0
    wisdom: int = 0
    agility: int = 0
    constitution: int = 0
    charisma: int = 0
    max_hp: int = 0
    max_tp: int = 0


@dataclass
class SpellState:
    """A learned spell and its level."""

    id: int
    level: int


@dataclass
class SpellCastState:
    """A requested spell cast waiting for its target packet."""

    id: int
    timestamp: int
    started_at: datetime


@dataclass
class PendingWarp:
    """A warp destination the player is being sent to."""

    map_id: int
    x: int
    y: int


@dataclass
class NearbyInfo:
    """Everything visible around a player on a map."""

    characters: list[Any] = field(default_factory=list)
    npcs: list[Any] = field(default_factory=list)
    items: list[Any] = field(default_factory=list)


class World(Protocol):
    """The shared game world, as seen from a player session."""

    def enter_map(self, map_id: int, character: Any) -> None:
        """Place a character on a map."""

    def bind_player_session(self, player_id: int, session: "Player") -> None:
        """Associate a player id with its session."""

    def walk(self, map_id: int, player_id: int, direction: int, coords: tuple[int, int]) -> None:
        """Move a player on a map."""

    def broadcast_map(self, map_id: int, exclude_player_id: int, packet: Any) -> None:
        """Send a packet to everyone on a map except one player (-1 for nobody)."""

    def broadcast_global(self, exclude_player_id: int, packet: Any) -> None:
        """Send a packet to everyone online except one player."""

    def broadcast_to_admins(self, exclude_player_id: int, min_admin: int, packet: Any) -> None:
        """Send a packet to every admin of at least ``min_admin``."""

    def broadcast_to_guild(self, exclude_player_id: int, guild_tag: str, packet: Any) -> None:
        """Send a packet to the members of a guild."""

    def broadcast_to_party(self, player_id: int, packet: Any) -> None:
        """Send a packet to the party of a player."""

    def send_to_player(self, player_id: int, packet: Any) -> None:
        """Send a packet to one player."""

    def find_player_by_name(self, name: str) -> Optional[int]:
        """Id of the online player with this lower-case name, or None."""

    def player_name(self, player_id: int) -> str:
        """Name of an online player, or an empty string."""

    def player_position(self, player_id: int) -> Any:
        """Position of an online player, or None."""

    def player_session(self, player_id: int) -> Optional["Player"]:
        """Session of an online player, or None."""

    def online_players(self) -> list[Any]:
        """Information about every online player."""

    def nearby_info(self, map_id: int) -> Optional[NearbyInfo]:
        """What is visible on a map, or None."""

    def is_muted(self, player_id: int) -> bool:
        """Whether a player may not chat."""

    def has_captcha(self, player_id: int) -> bool:
        """Whether a player has an unsolved captcha."""

    def try_start_jukebox(self, map_id: int, track_id: int) -> bool:
        """Start a jukebox track on a map if none is playing."""

    def update_player_vitals(self, map_id: int, player_id: int, hp: int, tp: int) -> None:
        """Record a player's hit and tech points on the map."""

    def update_player_sit_state(self, map_id: int, player_id: int, sit_state: int) -> None:
        """Record whether a player sits."""

    def pending_warp(self, map_id: int, player_id: int) -> Optional[PendingWarp]:
        """A warp the world has queued for a player, or None."""

    def warp_player(self, player_id: int, from_map_id: int, to_map_id: int, x: int, y: int) -> Any:
        """Move a player between maps, returning what is nearby there."""


def _gain(current: int, maximum: int, amount: int) -> tuple[int, int]:
    """Return the new value and the actual gain, clamping at ``maximum``."""
    if amount <= 0 or current >= maximum:
        return current, 0
    new_value = min(current + amount, maximum)
    return new_value, new_value - current


@dataclass(eq=False)
class Player:
    """One connected client and, once selected, its character."""

    id: int = 0
    settings: Settings = field(default_factory=Settings)
    world: Optional[World] = None
    state: ClientState = ClientState.UNINITIALIZED
    ip: str = ""
    version: tuple[int, int, int] = (0, 0, 0)
    transport: Optional[Callable[[Any], None]] = None
    outbox: list[Any] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    account_id: int = 0
    login_attempts: int = 0
    session_id: Optional[int] = None
    account_session_token: str = ""
    email_pin: str = ""
    recovery_account_name: str = ""
    recovery_pin_expires_at: Optional[datetime] = None

    character_id: Optional[int] = None
    map_id: int = 0
    name: str = ""
    title: str = ""
    x: int = 0
    y: int = 0
    direction: int = 0
    gender: int = 0
    hair_style: int = 0
    hair_color: int = 0
    skin: int = 0
    admin: int = 0
    level: int = 0
    hp: int = 0
    max_hp: int = 0
    tp: int = 0
    max_tp: int = 0
    sp: int = 0
    max_sp: int = 0
    exp: int = 0

    inventory: dict[int, int] = field(default_factory=dict)
    gold_bank: int = 0
    bank_level: int = 0
    stats: CharacterStats = field(default_factory=CharacterStats)
    stat_points: int = 0
    skill_points: int = 0
    spells: list[SpellState] = field(default_factory=list)
    pending_spell: Optional[SpellCastState] = None
    last_spell_cast: int = 0
    quests: QuestProgressTracker = field(default_factory=QuestProgressTracker)
    equipment: dict[str, int] = field(default_factory=lambda: dict.fromkeys(EQUIPMENT_SLOTS, 0))
    class_id: int = 0
    guild_tag: str = ""

    weight: int = 0
    max_weight: int = 0
    min_damage: int = 0
    max_damage: int = 0
    accuracy: int = 0
    evade: int = 0
    armor: int = 0

    pending_warp: Optional[PendingWarp] = None

    trade_partner_id: int = 0
    trade_items: dict[int, int] = field(default_factory=dict)
    trade_agreed: bool = False

    # Inventory and vitals

    def remove_item(self, item_id: int, amount: int) -> bool:
        """Take ``amount`` of an item; return False, changing nothing, if there is too little."""
        current = self.inventory.get(item_id, 0)
        if current < amount:
            return False
        remaining = current - amount
        if remaining <= 0:
            self.inventory.pop(item_id, None)
        else:
            self.inventory[item_id] = remaining
        return True

    def add_item(self, item_id: int, amount: int) -> None:
        """Add ``amount`` of an item, capped at the configured maximum stack."""
        total = self.inventory.get(item_id, 0) + amount
        max_item = self.settings.max_item
        if max_item > 0 and total > max_item:
            total = max_item
        self.inventory[item_id] = total

    def distance_to(self, x: int, y: int) -> int:
        """Tile distance to a point: the larger of the two axis distances."""
        return max(abs(self.x - x), abs(self.y - y))

    def gain_hp(self, amount: int) -> int:
        """Heal, clamped to the maximum; return the amount actually gained."""
        self.hp, gained = _gain(self.hp, self.max_hp, amount)
        return gained

    def gain_tp(self, amount: int) -> int:
        """Restore TP, clamped to the maximum; return the amount actually gained."""
        self.tp, gained = _gain(self.tp, self.max_tp, amount)
        return gained

    def gain_sp(self, amount: int) -> int:
        """Restore SP, clamped to the maximum; return the amount actually gained."""
        self.sp, gained = _gain(self.sp, self.max_sp, amount)
        return gained

    def spell_level(self, spell_id: int) -> int:
        """Level of a learned spell, or 0 if it is not known."""
        return next((spell.level for spell in self.spells if spell.id == spell_id), 0)

    # Session ids

    def generate_session_id(self) -> int:
        """Create, store and return a random session id in 1..64000."""
        self.session_id = secrets.randbelow(MAX_SESSION_ID) + 1
        return self.session_id

    def take_session_id(self) -> Optional[int]:
        """Return the stored session id and clear it; None if there is none."""
        session_id, self.session_id = self.session_id, None
        return session_id

    def take_and_validate_session_id(self, expected: int) -> bool:
        """Clear the stored session id and report whether it matched ``expected``."""
        session_id = self.take_session_id()
        return session_id is not None and session_id == expected

    def validate_session_id(self, expected: int) -> bool:
        """Report whether the stored session id matches, without clearing it."""
        return self.session_id is not None and self.session_id == expected

    def clear_session_id(self) -> None:
        """Forget any stored session id."""
        self.session_id = None

    # Account recovery

    def clear_recovery_state(self) -> None:
        """Forget any account recovery in progress."""
        self.email_pin = ""
        self.recovery_account_name = ""
        self.recovery_pin_expires_at = None

    def start_recovery(self, account_name: str, pin: str, now: datetime) -> None:
        """Begin recovery of an account with a PIN that expires after the configured delay."""
        self.clear_recovery_state()
        self.recovery_account_name = account_name
        self.email_pin = pin
        self.recovery_pin_expires_at = now + self.settings.recovery_delay

    def has_active_recovery_pin(self, now: datetime) -> bool:
        """Whether a recovery PIN is pending and unexpired; an expired one is cleared."""
        if not self.email_pin or not self.recovery_account_name:
            return False
        expires = self.recovery_pin_expires_at
        if expires is None or not now < expires:
            self.clear_recovery_state()
            return False
        return True

    def is_deep(self) -> bool:
        """Whether the client speaks the extended protocol (minor version above 0)."""
        return self.version[1] > 0

    def send(self, packet: Any) -> None:
        """Send a packet to this client."""
        self.outbox.append(packet)
        if self.transport is not None:
            self.transport(packet)