import pytest
from sqlalchemy.exc import NoResultFound

from belfast.base import Database
from belfast.catalog import (
    Buff,
    Debug,
    DebugName,
    Item,
    OwnedResource,
    Resource,
    Server,
    ServerState,
    Ship,
    ShopOffer,
    dealias_resource,
    get_random_pool_ship,
    pick_rarity,
)


class _FixedRoll:
    def __init__(self, value):
        self.value = value
        self.calls = []

    def randint(self, low, high):
        self.calls.append((low, high))
        return self.value


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.close()


def test_dealias_free_gem():
    assert dealias_resource(14) == 4


def test_dealias_leaves_others():
    assert dealias_resource(1) == 1
    assert dealias_resource(4) == 4


@pytest.mark.parametrize(
    "roll, rarity",
    [(1, 5), (7, 5), (8, 4), (19, 4), (20, 3), (70, 3), (71, 2), (100, 2)],
)
def test_pick_rarity_boundaries(roll, rarity):
    assert pick_rarity(roll) == rarity


@pytest.mark.parametrize("roll", [0, 101, -3])
def test_pick_rarity_out_of_range(roll):
    with pytest.raises(ValueError):
        pick_rarity(roll)


def test_random_pool_ship_matches_pool_and_rarity(database):
    with database.transaction() as session:
        session.add_all([
            Ship(template_id=101, name="Alpha", rarity_id=5, pool_id=1),
            Ship(template_id=102, name="Beta", rarity_id=2, pool_id=1),
            Ship(template_id=103, name="Gamma", rarity_id=5, pool_id=2),
        ])
    rng = _FixedRoll(3)
    with database.transaction() as session:
        ship = get_random_pool_ship(session, 1, rng)
    assert ship.template_id == 101
    assert rng.calls == [(1, 100)]


def test_random_pool_ship_common(database):
    with database.transaction() as session:
        session.add_all([
            Ship(template_id=101, name="Alpha", rarity_id=5, pool_id=1),
            Ship(template_id=102, name="Beta", rarity_id=2, pool_id=1),
        ])
    with database.transaction() as session:
        ship = get_random_pool_ship(session, 1, _FixedRoll(100))
    assert ship.name == "Beta"


def test_random_pool_ship_missing(database):
    with database.transaction() as session:
        session.add(Ship(template_id=101, name="Alpha", rarity_id=5, pool_id=1))
    with database.transaction() as session:
        with pytest.raises(NoResultFound):
            get_random_pool_ship(session, 1, _FixedRoll(50))


def test_column_defaults(database):
    with database.transaction() as session:
        session.add(Item(id=20001, name="Wisdom Cube"))
        session.add(Buff(id=1, name="Boost", benefit_type="exp"))
        session.add(DebugName(id=10021))
        session.add(ServerState(id=9, color="accent"))
    with database.transaction() as session:
        assert session.get(Item, 20001).shop_id == -2
        assert session.get(Buff, 1).max_time == 0
        assert session.get(DebugName, 10021).name == "Unknown"
        assert session.get(ServerState, 9).description == "Unknown"


def test_shop_offer_effects_round_trip(database):
    with database.transaction() as session:
        session.add(Resource(id=1, name="Gold"))
        session.add(ShopOffer(id=7, effects=[1, 2, 3], number=1,
                              resource_number=50, resource_id=1, type=2))
    with database.transaction() as session:
        offer = session.get(ShopOffer, 7)
        assert offer.effects == [1, 2, 3]
        assert offer.resource.name == "Gold"


def test_server_state_relationship(database):
    with database.transaction() as session:
        session.add(ServerState(id=1, color="success", description="Online"))
        session.add(Server(id=1, name="Belfast", ip="localhost", port=80, state_id=1))
    with database.transaction() as session:
        server = session.get(Server, 1)
        assert server.state.description == "Online"
        assert [s.name for s in server.state.servers] == ["Belfast"]


def test_debug_frame_round_trip(database):
    payload = b"\x08\x01\x10\x02"
    with database.transaction() as session:
        session.add(DebugName(id=10800, name="CS_10800"))
        session.add(Debug(packet_size=len(payload), packet_id=10800, data=payload))
    with database.transaction() as session:
        frame = session.get(Debug, 1)
        assert frame.data == payload
        assert frame.debug_name.name == "CS_10800"
        assert frame.logged_at is not None and frame.packet_size == len(payload)


def test_owned_resource_amount(database):
    with database.transaction() as session:
        session.add(Resource(id=2, name="Oil"))
        session.add(OwnedResource(commander_id=1, resource_id=2))
    with database.transaction() as session:
        owned = session.get(OwnedResource, (1, 2))
        assert owned.amount == 0
        assert owned.resource.name == "Oil"