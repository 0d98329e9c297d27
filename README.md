# belfast

Building blocks for a game server. It has SQLAlchemy models for the game's
static data and for what players own, and it splits raw client frames into
packets and routes them to handlers. It also validates the forms sent by an
administration panel and has small formatting helpers for its templates.

## Modules

| Module               | Contents |
|----------------------|----------|
| `belfast.base`       | `Base`, the declarative base of every model, and `Database`, an engine with a session factory |
| `belfast.catalog`    | Game data models: `Item`, `Ship`, `ShipType`, `Skin`, `Buff`, `Rarity`, `Resource`, `OwnedResource`, `ShopOffer`, `Server`, `ServerState`, `Notice`, `Debug`, `DebugName`, `YostarusMap`; and `dealias_resource`, `pick_rarity`, `get_random_pool_ship` |
| `belfast.player`     | Per-player models: `OwnedShip`, `OwnedSkin`, `CommanderItem`, `CommanderMiscItem`, `Mail`, `MailAttachment`, `Build`, `Punishment`, `Message`, `Like`; and `get_room_history`, `send_message` |
| `belfast.packets`    | Header parsing (`get_packet_id`, `get_packet_size`, `get_packet_index`, `iter_packets`), `PacketRouter` and `LocalizedHandler` |
| `belfast.forms`      | Form dataclasses (`ShipEdit`, `BuildEdit`, `ItemEdit`, `ResourceEdit`, `AnnounceServer`, …), `parse_form` and `FormError` |
| `belfast.formatting` | `human_readable_size`, `iso_timestamp`, `time_format`, `time_span`, `time_left`, `seconds_left`, `tab_color`, `account_status_badge` |
| `belfast.alerts`     | `AlertColor`, `InvalidColorError` and the alert / toast template selectors |

## Database

```python
from belfast.base import Database
import belfast.catalog  # registers the models with Base
import belfast.player

with Database("sqlite:///belfast.db") as database:
    database.create_all()
    with database.transaction() as session:
        session.add(belfast.catalog.Item(id=20001, name="Wisdom Cube"))
```

`Database()` with no argument uses an in-memory SQLite database.
`transaction()` yields a session, commits when the block ends and rolls
back if it raises. `create_all()` creates the tables of every model module
that has been imported.

Methods on the player models work on rows that belong to a session and
flush their changes:

* `OwnedShip.propose_ship()`, `OwnedShip.set_favorite(flag)` and
  `OwnedShip.rename(new_name)`. Renaming raises `NotProposedError` unless
  the ship was proposed to. It raises `RenameInCooldownError` if the last
  rename was less than 30 days ago.
* `Mail.set_read(read)` and `Mail.collect_attachments(commander)`. The
  latter returns a list of `Attachment`. It gives type 1 attachments through
  `commander.add_resource` and type 2 through `commander.add_item`.
* `Build.quick_finish(commander)` spends one item 15003 through
  `commander.consume_item`. It raises `NotEnoughQuickFinishersError` when
  `commander.has_enough_item` says there is none.
* `Build.consume(ship_id, commander)` deletes the build and removes it from
  `commander.builds`. It then calls `commander.add_ship` and
  `commander.increment_exchange_count`.

`commander` is any object that offers those members. This package does not
define one.

## Game data helpers

* `dealias_resource(14)` returns `4`: free gems count as gems.
* `pick_rarity(roll)` maps a roll from 1 to 100 to a rarity id: 7 % super
  rare (5), 12 % elite (4), 51 % rare (3), 30 % common (2). Any other roll
  raises `ValueError`.
* `get_random_pool_ship(session, pool_id, rng=None)` rolls a rarity and
  returns a random ship of that rarity from the pool. It raises
  `sqlalchemy.exc.NoResultFound` when there is none.

## Packet framing

Every packet starts with a seven-byte header: a two-byte big-endian size
(not counting those two bytes), one zero byte, a two-byte packet id and a
two-byte packet index.

```python
from belfast.packets import get_packet_id, get_packet_size, iter_packets

frame = bytes([0x00, 0x05, 0x00, 0x2A, 0x30, 0x00, 0x00])
get_packet_id(frame, 0)    # 10800
get_packet_size(frame, 0)  # 5
list(iter_packets(frame))  # [(10800, 0, b"")]
```

`PacketRouter(on_packet=None)` maps packet ids to lists of handlers called
as `handler(body, client)`. There are two ways to register handlers:

* `register(packet_id, handlers)` registers the same handlers for every
  region.
* `register_localized(packet_id, localized, region=None)` picks the list
  for `CN`, `EN`, `JP`, `KR` or `TW`. The region defaults to the
  `AL_REGION` environment variable, and an unknown region raises
  `ValueError`.

`dispatch(buffer, client)` walks every packet in the buffer, in order:

1. It sets `client.packet_index` and calls `on_packet(packet_id, body)` if
   one was given.
2. It runs the packet's handlers. An exception raised by a handler is
   logged, and the remaining handlers still run.
3. Once every packet is done, it calls `client.flush()` and returns the
   number of packets.

## Forms

```python
from belfast.forms import FormError, QuickPlayerEdit, parse_form

parse_form(QuickPlayerEdit, {"name": "Belfast", "level": "120"})
try:
    parse_form(QuickPlayerEdit, {"name": "ab", "level": "0"})
except FormError as exc:
    exc.errors  # [("name", "min"), ("level", "required")]
```

Missing keys and empty strings take the field's zero value. A value that
cannot be converted is reported with the rule name `"parse"`.

## Display helpers

```python
from belfast.formatting import human_readable_size, tab_color, time_format
from belfast.alerts import render_ephemeral_toast

human_readable_size(2048)   # "2.00 Kb"
tab_color("dock", "dock")   # "text-primary"
render_ephemeral_toast("error", "oops", lambda name, ctx: name)
# "components/toasts/ephemeral/ephemeral_toast_error"
```

The alert and toast functions call the given renderer with a template name
and `{"message": message}`. A color that is not an `AlertColor` raises
`InvalidColorError`.

## What this package does not do

* It has no commander (player account) model. It provides no rules for
  spending or granting items and resources, retiring ships or managing
  secretaries.
* It does not create seed rows such as default servers or rarities, and it
  does not download or import game-data files.
* It has no web server, routes or templates. It has no network listener and
  no command-line program.

## Running the tests

Install the `test` extra and run `pytest` from the project root.