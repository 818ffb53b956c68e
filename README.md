# geoserv

Player-side game logic for an online role-playing game server. The package
models a connected player and the requests a client can make. These cover the
inventory, trading with other players, storing items in a bank locker, getting
engaged and divorced, chatting, walking, sitting and warping between maps.
Character state is saved to and loaded from an SQLite database.

The package needs only the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Overview

- `geoserv.player` defines `Player`, the state of one connected client and its
  character. Its methods handle:
  - the inventory: `remove_item`, `add_item`, which caps stacks at
    `Settings.max_item`;
  - vitals: `gain_hp`, `gain_tp` and `gain_sp`, each clamped at the maximum
    and returning the amount actually gained;
  - distance and spells: `distance_to` and `spell_level`;
  - single-use session ids: `generate_session_id`, `take_session_id`,
    `take_and_validate_session_id`, `validate_session_id` and
    `clear_session_id`;
  - account-recovery PINs: `start_recovery`, `has_active_recovery_pin` and
    `clear_recovery_state`;
  - packets: `send` appends a packet to `Player.outbox` and passes it to
    `transport` if one is set.

  The module also defines `ClientState`, `Settings` (the server limits, where
  zero disables a limit), `CharacterStats`, `SpellState`, `SpellCastState`,
  `PendingWarp` and `NearbyInfo`. `World` is the protocol a player uses to
  reach the rest of the game: broadcasts, lookups by name, sessions,
  positions, mutes, warps and so on.
- `geoserv.ratelimit.PacketRateLimiter` sets a minimum interval for each
  `(family, action)` pair. Pairs without a rule are never throttled.
- `geoserv.quests.QuestProgressTracker` tracks active quests (`state_of`,
  `set_state`), completed quests (`complete`) and NPC kill counts
  (`record_npc_kill`).
- `geoserv.persistence` provides:
  - `ensure_schema`, which creates the tables;
  - `save_character`, which writes position, stats, equipment, inventory,
    spells and quests in one transaction;
  - `load_inventory`, `load_spells` and `load_quest_progress`, which read
    them back.
- Request handlers, each taking a `Player` (plus an `sqlite3` connection
  where storage is involved) and returning the packet dataclass it sent, or
  `None` when the request is refused:
  - `geoserv.locker`: `open_locker`, `deposit`, `withdraw`, `buy_upgrade`,
    `locker_items`
  - `geoserv.marriage`: `open_marriage`, `request_marriage`,
    `marriage_status_by_id`, `marriage_status_by_name`
  - `geoserv.trade`: `request_trade`, `accept_trade`, `offer_item`,
    `withdraw_item`, `agree`, `close_trade`
  - `geoserv.talk`: `talk_local`, `talk_global`, `talk_private`,
    `talk_admin`, `talk_announce`, `talk_party`, `talk_guild`
  - `geoserv.movement`: `walk`, `sit_toggle`, `chair`, `accept_warp`,
    `npc_range`, `player_range`, `range_request`, `refresh`
  - `geoserv.misc`: `jukebox_open`, `jukebox_play`, `players_request`,
    `message_ping`, `find_player`, `players_list`, `admin_icon`
  - `geoserv.welcome`: `request_file`, which reads map and pub files from a
    data directory; `enter_game`; `pad_guild_tag`

## Example

```python
from geoserv.player import Player, Settings

hero = Player(id=1, settings=Settings())
hero.add_item(1, 500)           # 500 gold
assert hero.remove_item(1, 200)
assert hero.inventory[1] == 300

hero.hp, hero.max_hp = 90, 100
assert hero.gain_hp(50) == 10   # healing is capped at the maximum
```

Storing a character:

```python
import sqlite3
from geoserv.persistence import ensure_schema, load_inventory, save_character
from geoserv.player import Player

conn = sqlite3.connect(":memory:")
ensure_schema(conn)
conn.execute("INSERT INTO characters (id, name) VALUES (1, 'hero')")

hero = Player(id=1, character_id=1, inventory={1: 300})
save_character(hero, conn)

again = Player(id=2, character_id=1)
load_inventory(again, conn)
assert again.inventory == {1: 300}
```

Rate limiting packets:

```python
from datetime import datetime, timedelta
from geoserv.ratelimit import PacketRateLimiter

limiter = PacketRateLimiter({("walk", "player"): timedelta(milliseconds=300)})
now = datetime(2024, 1, 1)
assert limiter.allow(now, "walk", "player")
assert not limiter.allow(now + timedelta(milliseconds=250), "walk", "player")
```

## What the package does not do

- It has no network server and no command to start one.
- It does not encode or decode wire packets. Handlers take plain arguments and
  produce dataclasses, and delivery is left to `Player.transport`.
- It has no concrete `World`. Maps, NPCs, parties and broadcasting must be
  supplied by an object that implements the `World` protocol.
- It does not handle logging in, creating accounts, selecting characters,
  combat, spells, shops or quest dialogs. It only holds the state those would
  use.