import pytest

from geoserv.player import ClientState, Player
from geoserv.talk import (
    TalkAdmin,
    TalkAnnounce,
    TalkGuild,
    TalkMsg,
    TalkNotFound,
    TalkParty,
    TalkPlayer,
    TalkTell,
    talk_admin,
    talk_announce,
    talk_global,
    talk_guild,
    talk_local,
    talk_party,
    talk_private,
)


class FakeWorld:
    def __init__(self, muted=(), names=None):
        self.muted = set(muted)
        self.names = names or {}
        self.calls = []

    def is_muted(self, player_id):
        return player_id in self.muted

    def broadcast_map(self, map_id, exclude, packet):
        self.calls.append(("map", map_id, exclude, packet))

    def broadcast_global(self, exclude, packet):
        self.calls.append(("global", exclude, packet))

    def broadcast_to_admins(self, exclude, min_admin, packet):
        self.calls.append(("admins", exclude, min_admin, packet))

    def broadcast_to_party(self, player_id, packet):
        self.calls.append(("party", player_id, packet))

    def broadcast_to_guild(self, exclude, tag, packet):
        self.calls.append(("guild", exclude, tag, packet))

    def send_to_player(self, player_id, packet):
        self.calls.append(("tell", player_id, packet))

    def find_player_by_name(self, name):
        return self.names.get(name)


def make_player(world, **kwargs):
    defaults = dict(id=7, world=world, state=ClientState.IN_GAME, map_id=3, name="Alice")
    defaults.update(kwargs)
    return Player(**defaults)


def test_local_broadcasts_to_map_excluding_speaker():
    world = FakeWorld()
    player = make_player(world)
    packet = talk_local(player, "hi")
    assert packet == TalkPlayer(7, "hi")
    assert world.calls == [("map", 3, 7, packet)]


def test_muted_player_cannot_speak():
    world = FakeWorld(muted={7})
    player = make_player(world)
    assert talk_local(player, "hi") is None
    assert talk_global(player, "hi") is None
    assert world.calls == []


def test_not_in_game_cannot_speak():
    world = FakeWorld()
    player = make_player(world, state=ClientState.LOGGED_IN)
    assert talk_party(player, "hi") is None
    assert world.calls == []


def test_global_uses_name():
    world = FakeWorld()
    packet = talk_global(make_player(world), "hello all")
    assert packet == TalkMsg("Alice", "hello all")
    assert world.calls == [("global", 7, packet)]


def test_private_to_online_player_lowercases_lookup():
    world = FakeWorld(names={"bob": 9})
    player = make_player(world)
    packet = talk_private(player, "BoB", "psst")
    assert packet == TalkTell("Alice", "psst")
    assert world.calls == [("tell", 9, packet)]
    assert player.outbox == []


def test_private_to_missing_player_replies_not_found():
    world = FakeWorld()
    player = make_player(world)
    packet = talk_private(player, "Ghost", "psst")
    assert packet == TalkNotFound("Ghost")
    assert player.outbox == [packet]
    assert world.calls == []


@pytest.mark.parametrize("admin, allowed", [(0, False), (1, True), (4, True)])
def test_admin_chat_requires_admin(admin, allowed):
    world = FakeWorld()
    packet = talk_admin(make_player(world, admin=admin), "secret plans")
    if allowed:
        assert packet == TalkAdmin("Alice", "secret plans")
        assert world.calls == [("admins", 7, 1, packet)]
    else:
        assert packet is None
        assert world.calls == []


@pytest.mark.parametrize("admin, allowed", [(1, False), (2, True)])
def test_announce_requires_level_two(admin, allowed):
    world = FakeWorld()
    packet = talk_announce(make_player(world, admin=admin), "restart")
    if allowed:
        assert packet == TalkAnnounce("Alice", "restart")
        assert world.calls == [("global", 7, packet)]
    else:
        assert packet is None
        assert world.calls == []


def test_party_chat():
    world = FakeWorld()
    packet = talk_party(make_player(world), "follow me")
    assert packet == TalkParty(7, "follow me")
    assert world.calls == [("party", 7, packet)]


def test_guild_chat_needs_tag():
    world = FakeWorld()
    assert talk_guild(make_player(world), "hey") is None
    packet = talk_guild(make_player(world, guild_tag="ABC"), "hey")
    assert packet == TalkGuild("Alice", "hey")
    assert world.calls == [("guild", 7, "ABC", packet)]