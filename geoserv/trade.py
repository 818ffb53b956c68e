"""Player-to-player trading."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from geoserv.player import ClientState, Player, World


@dataclass
class TradeItemData:
    """The items one side of a trade offers, as (item id, amount) pairs."""

    player_id: int
    items: list[tuple[int, int]] = field(default_factory=list)


@dataclass
class TradeRequest:
    """Sent to a player someone wants to trade with."""

    partner_player_id: int
    partner_player_name: str


@dataclass
class TradeOpen:
    """Opens the trade window on one side."""

    partner_player_id: int
    partner_player_name: str
    your_player_id: int
    your_player_name: str


@dataclass
class TradeReply:
    """Current offers: the receiver's own first, then the partner's."""

    trade_data: list[TradeItemData] = field(default_factory=list)


@dataclass
class TradeSpec:
    """Confirms the player's own agreement state."""

    agree: bool


@dataclass
class TradeAgree:
    """Tells a player whether their partner agrees."""

    partner_player_id: int
    agree: bool


@dataclass
class TradeUse:
    """A completed trade: the receiver's given items first, then the received ones."""

    trade_data: list[TradeItemData] = field(default_factory=list)


@dataclass
class TradeClose:
    """Tells a player their partner closed the trade."""

    partner_player_id: int


def _world(player: Player) -> Optional[World]:
    if player.state != ClientState.IN_GAME:
        return None
    return player.world


def _trading_world(player: Player) -> Optional[World]:
    world = _world(player)
    if world is None or player.trade_partner_id == 0:
        return None
    return world


def _build_items(player_id: int, items: dict[int, int]) -> TradeItemData:
    return TradeItemData(player_id, [(item_id, amount) for item_id, amount in items.items() if amount > 0])


def _reset(player: Player) -> None:
    player.trade_partner_id = 0
    player.trade_items = {}
    player.trade_agreed = False


def _send_update(player: Player, world: World) -> None:
    partner = world.player_session(player.trade_partner_id)
    if partner is None:
        return
    mine = _build_items(player.id, player.trade_items)
    theirs = _build_items(partner.id, partner.trade_items)
    player.send(TradeReply([mine, theirs]))
    partner.send(TradeReply([theirs, mine]))


def request_trade(player: Player, target_id: int) -> Optional[TradeRequest]:
    """Ask another online player to trade; refused while already trading."""
    world = _world(player)
    if world is None or player.trade_partner_id != 0:
        return None
    if not world.player_name(target_id):
        return None
    packet = TradeRequest(player.id, player.name)
    world.send_to_player(target_id, packet)
    player.trade_partner_id = target_id
    return packet


def accept_trade(player: Player, partner_id: int) -> Optional[TradeOpen]:
    """Accept a trade request and open the trade window on both sides."""
    world = _world(player)
    if world is None:
        return None
    partner_name = world.player_name(partner_id)
    if not partner_name:
        return None

    player.trade_partner_id = partner_id
    player.trade_items = {}
    player.trade_agreed = False

    packet = TradeOpen(partner_id, partner_name, player.id, player.name)
    player.send(packet)
    world.send_to_player(partner_id, TradeOpen(player.id, player.name, partner_id, partner_name))
    return packet


def offer_item(player: Player, item_id: int, amount: int) -> bool:
    """Add an item to the player's offer, capped at the trade limit.

    Returns False when the player is not trading, holds too little of the
    item, or the item may not be traded.
    """
    world = _trading_world(player)
    if world is None:
        return False

    max_trade = player.settings.max_trade
    if max_trade > 0 and amount > max_trade:
        amount = max_trade
    if player.inventory.get(item_id, 0) < amount:
        return False
    if item_id in player.settings.protected_items:
        return False

    player.trade_items[item_id] = player.trade_items.get(item_id, 0) + amount
    player.trade_agreed = False
    _send_update(player, world)
    return True


def withdraw_item(player: Player, item_id: int) -> bool:
    """Take an item out of the player's offer."""
    world = _trading_world(player)
    if world is None:
        return False
    player.trade_items.pop(item_id, None)
    player.trade_agreed = False
    _send_update(player, world)
    return True


def _finalize(player: Player, partner: Player, world: World) -> Optional[TradeUse]:
    for side in (player, partner):
        for item_id, amount in side.trade_items.items():
            if amount <= 0 or side.inventory.get(item_id, 0) < amount:
                player.trade_agreed = False
                partner.trade_agreed = False
                _send_update(player, world)
                return None

    mine = _build_items(player.id, player.trade_items)
    theirs = _build_items(partner.id, partner.trade_items)

    for item_id, amount in player.trade_items.items():
        player.remove_item(item_id, amount)
        partner.add_item(item_id, amount)
    for item_id, amount in partner.trade_items.items():
        partner.remove_item(item_id, amount)
        player.add_item(item_id, amount)

    packet = TradeUse([mine, theirs])
    player.send(packet)
    partner.send(TradeUse([theirs, mine]))

    _reset(player)
    _reset(partner)
    return packet


def agree(player: Player, agreed: bool) -> Optional[TradeUse]:
    """Set the player's agreement; completes the trade once both sides agree."""
    world = _trading_world(player)
    if world is None:
        return None

    player.trade_agreed = agreed
    player.send(TradeSpec(agreed))

    partner = world.player_session(player.trade_partner_id)
    if partner is None:
        return None
    partner.send(TradeAgree(player.id, agreed))

    if not agreed or not partner.trade_agreed:
        return None
    return _finalize(player, partner, world)


def close_trade(player: Player) -> Optional[TradeClose]:
    """Leave the trade and tell the partner."""
    world = _trading_world(player)
    if world is None:
        return None
    partner_id = player.trade_partner_id
    _reset(player)
    packet = TradeClose(player.id)
    world.send_to_player(partner_id, packet)
    return packet