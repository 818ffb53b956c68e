from geoserv.misc import PlayerPosition
from geoserv.movement import (
    RangeReply,
    RefreshReply,
    SitAction,
    SitPlayer,
    accept_warp,
    chair,
    npc_range,
    player_range,
    range_request,
    refresh,
    sit_toggle,
    walk,
)
from geoserv.player import ClientState, NearbyInfo, PendingWarp, Player


class FakeWorld:
    def __init__(self, nearby=None, captcha=False, queued=None):
        self.nearby = nearby
        self.captcha = captcha
        self.queued = queued
        self.positions = {}
        self.calls = []

    def has_captcha(self, player_id):
        return self.captcha

    def walk(self, map_id, player_id, direction, coords):
        self.calls.append(("walk", map_id, player_id, direction, coords))

    def player_position(self, player_id):
        return self.positions.get(player_id)

    def update_player_sit_state(self, map_id, player_id, sit_state):
        self.calls.append(("sit", map_id, player_id, sit_state))

    def broadcast_map(self, map_id, exclude, packet):
        self.calls.append(("map", map_id, exclude, packet))

    def pending_warp(self, map_id, player_id):
        return self.queued

    def warp_player(self, player_id, from_map, to_map, x, y):
        self.calls.append(("warp", player_id, from_map, to_map, x, y))
        return self.nearby

    def update_player_vitals(self, map_id, player_id, hp, tp):
        self.calls.append(("vitals", map_id, player_id, hp, tp))

    def nearby_info(self, map_id):
        return self.nearby


def make_player(world, **kwargs):
    defaults = dict(id=4, world=world, state=ClientState.IN_GAME, map_id=2, x=5, y=6, direction=1, hp=10, tp=3)
    defaults.update(kwargs)
    return Player(**defaults)


def test_walk_updates_position_and_world():
    world = FakeWorld()
    player = make_player(world)
    assert walk(player, 3, 7, 8) is True
    assert (player.x, player.y, player.direction) == (7, 8, 3)
    assert world.calls == [("walk", 2, 4, 3, (7, 8))]


def test_walk_refused_during_captcha():
    world = FakeWorld(captcha=True)
    player = make_player(world)
    assert walk(player, 3, 7, 8) is False
    assert (player.x, player.y) == (5, 6)
    assert world.calls == []


def test_walk_refused_out_of_game():
    player = make_player(FakeWorld(), state=ClientState.ENTERING_GAME)
    assert walk(player, 0, 1, 1) is False


def test_sit_toggle_sits_then_stands():
    world = FakeWorld()
    player = make_player(world)
    packet = sit_toggle(player)
    assert packet == SitPlayer(4, 5, 6, 1)
    assert ("sit", 2, 4, 2) in world.calls
    world.positions[4] = PlayerPosition(2, sit_state=2)
    sit_toggle(player)
    assert world.calls[-2] == ("sit", 2, 4, 0)


def test_chair_sit_uses_given_coords():
    world = FakeWorld()
    packet = chair(make_player(world), SitAction.SIT, (9, 10))
    assert packet == SitPlayer(4, 9, 10, 1)
    assert world.calls == [("sit", 2, 4, 1), ("map", 2, 4, packet)]


def test_chair_stand_uses_player_tile():
    world = FakeWorld()
    packet = chair(make_player(world), SitAction.STAND)
    assert packet == SitPlayer(4, 5, 6, 1)
    assert world.calls[0] == ("sit", 2, 4, 0)


def test_accept_warp_uses_player_pending_warp_first():
    nearby = NearbyInfo(characters=["a"])
    world = FakeWorld(nearby=nearby, queued=PendingWarp(99, 1, 1))
    player = make_player(world, pending_warp=PendingWarp(8, 11, 12))
    packet = accept_warp(player)
    assert packet.map_id == 8
    assert packet.nearby is nearby
    assert (player.map_id, player.x, player.y) == (8, 11, 12)
    assert player.pending_warp is None
    assert ("vitals", 8, 4, 10, 3) in world.calls


def test_accept_warp_falls_back_to_world_queue():
    world = FakeWorld(queued=PendingWarp(9, 2, 3))
    player = make_player(world)
    packet = accept_warp(player)
    assert packet.map_id == 9
    assert packet.nearby == NearbyInfo()
    assert player.outbox == [packet]


def test_accept_warp_without_destination():
    player = make_player(FakeWorld())
    assert accept_warp(player) is None
    assert player.map_id == 2


def test_range_queries_filter_nearby():
    nearby = NearbyInfo(characters=["c"], npcs=["n"], items=["i"])
    player = make_player(FakeWorld(nearby=nearby))
    assert npc_range(player) == RangeReply(NearbyInfo(npcs=["n"]))
    assert player_range(player) == RangeReply(NearbyInfo(characters=["c"]))
    assert range_request(player) == RangeReply(nearby)
    assert refresh(player) == RefreshReply(nearby)
    assert len(player.outbox) == 4


def test_range_queries_without_nearby_send_nothing():
    player = make_player(FakeWorld(nearby=None))
    assert npc_range(player) is None
    assert refresh(player) is None
    assert player.outbox == []