from datetime import datetime

import pytest

from belfast.forms import (
    AnnounceServer,
    BuildEdit,
    BuildId,
    CommanderId,
    FormError,
    ItemEdit,
    ItemId,
    QuickPlayerEdit,
    ResourceEdit,
    ShipEdit,
    TemplateId,
    parse_form,
)

VALID_SERVER = {
    "server-ip": "localhost",
    "server-port": "80",
    "server-state": "1",
    "server-name": "Belfast",
}


def _tags(exc_info):
    return dict(exc_info.value.errors)


def test_announce_server_valid():
    server = parse_form(AnnounceServer, VALID_SERVER)
    assert server.ip == "localhost"
    assert server.port == 80
    assert server.state == 1
    assert server.name == "Belfast"
    assert server.proxy_ip is None
    assert server.proxy_port is None


def test_announce_server_with_proxy():
    data = dict(VALID_SERVER, **{"proxy-ip": "127.0.0.1", "proxy-port": "8080"})
    server = parse_form(AnnounceServer, data)
    assert server.proxy_ip == "127.0.0.1"
    assert server.proxy_port == 8080


def test_announce_server_missing_required():
    with pytest.raises(FormError) as exc_info:
        parse_form(AnnounceServer, {"server-state": "1"})
    tags = _tags(exc_info)
    assert tags["ip"] == "required"
    assert tags["port"] == "required"
    assert tags["name"] == "required"


def test_announce_server_port_too_large():
    with pytest.raises(FormError) as exc_info:
        parse_form(AnnounceServer, dict(VALID_SERVER, **{"server-port": "70000"}))
    assert _tags(exc_info) == {"port": "max"}


def test_announce_server_state_bound():
    with pytest.raises(FormError) as exc_info:
        parse_form(AnnounceServer, dict(VALID_SERVER, **{"server-state": "4"}))
    assert _tags(exc_info) == {"state": "max"}
    assert parse_form(AnnounceServer, dict(VALID_SERVER, **{"server-state": "0"})).state == 0


def test_announce_server_short_proxy_ip():
    with pytest.raises(FormError) as exc_info:
        parse_form(AnnounceServer, dict(VALID_SERVER, **{"proxy-ip": "ab"}))
    assert _tags(exc_info) == {"proxy_ip": "min"}


def test_unsigned_rejects_negative():
    with pytest.raises(FormError) as exc_info:
        parse_form(AnnounceServer, dict(VALID_SERVER, **{"server-port": "-1"}))
    assert _tags(exc_info) == {"port": "parse"}


def test_build_id_accepts_placeholder():
    assert parse_form(BuildId, {"build_id": "-1"}).id == -1


def test_build_id_zero_is_required_failure():
    with pytest.raises(FormError) as exc_info:
        parse_form(BuildId, {"build_id": "0"})
    assert _tags(exc_info) == {"id": "required"}


def test_build_edit_valid():
    edit = parse_form(
        BuildEdit,
        {"template_id": "101031", "finishes_at": "2024-01-02T03:04:05", "action": "finish"},
    )
    assert edit.ship_id == 101031
    assert edit.finishes_at == "2024-01-02T03:04:05"
    assert edit.action == "finish"


@pytest.mark.parametrize("value", ["", "2024-01-02 03:04:05", "2024-1-2T03:04:05", "2024-13-02T03:04:05"])
def test_build_edit_bad_datetime(value):
    with pytest.raises(FormError) as exc_info:
        parse_form(BuildEdit, {"finishes_at": value, "action": "save"})
    assert _tags(exc_info) == {"finishes_at": "datetime"}


def test_build_edit_unknown_action():
    with pytest.raises(FormError) as exc_info:
        parse_form(BuildEdit, {"finishes_at": "2024-01-02T03:04:05", "action": "explode"})
    assert _tags(exc_info) == {"action": "oneof"}


def test_commander_id():
    assert parse_form(CommanderId, {"commander_id": "7"}).commander_id == 7
    with pytest.raises(FormError) as exc_info:
        parse_form(CommanderId, {})
    assert _tags(exc_info) == {"commander_id": "required"}


def test_item_id_with_data():
    item = parse_form(ItemId, {"item_id": "44001", "data": "12"})
    assert item.id == 44001
    assert item.data == 12


def test_item_edit_zero_count_is_allowed():
    edit = parse_form(ItemEdit, {"action": "new", "template_id": "20001"})
    assert edit.count == 0
    assert edit.template_id == 20001


def test_item_edit_count_overflow():
    with pytest.raises(FormError) as exc_info:
        parse_form(ItemEdit, {"action": "save", "count": str(2**32)})
    assert _tags(exc_info) == {"count": "parse"}


def test_quick_player_edit_counts_characters():
    edit = parse_form(QuickPlayerEdit, {"name": "ééé", "level": "120"})
    assert edit.name == "ééé"
    assert edit.level == 120


def test_quick_player_edit_bounds():
    with pytest.raises(FormError) as exc_info:
        parse_form(QuickPlayerEdit, {"name": "ab", "level": "10000"})
    assert _tags(exc_info) == {"name": "min", "level": "max"}


def test_resource_edit():
    edit = parse_form(ResourceEdit, {"action": "new", "amount": "500", "resource_id": "2"})
    assert (edit.amount, edit.resource_id, edit.action) == (500, 2, "new")


def test_ship_edit_flags_and_ranges():
    edit = parse_form(
        ShipEdit,
        {
            "template_id": "101031",
            "level": "100",
            "energy": "0",
            "locked": "true",
            "secretary": "1",
            "propose": "false",
            "create_time": "2024-01-02T03:04:05",
            "custom_name_time": "2024-01-02T03:04:05",
            "action": "save",
        },
    )
    assert edit.level == 100
    assert edit.energy == 0
    assert edit.is_locked is True
    assert edit.is_secretary is True
    assert edit.propose is False
    assert edit.custom_name_time == datetime(2024, 1, 2, 3, 4, 5)


def test_ship_edit_invalid_values():
    with pytest.raises(FormError) as exc_info:
        parse_form(
            ShipEdit,
            {
                "level": "126",
                "energy": "151",
                "custom_name": "ab",
                "create_time": "2024-01-02T03:04:05",
                "action": "save",
            },
        )
    assert _tags(exc_info) == {"level": "max", "energy": "max", "custom_name": "min"}


def test_ship_edit_bad_bool():
    with pytest.raises(FormError) as exc_info:
        parse_form(ShipEdit, {"locked": "maybe", "action": "save"})
    assert _tags(exc_info) == {"is_locked": "parse"}


def test_template_id():
    assert parse_form(TemplateId, {"template_id": 101031}).id == 101031
    with pytest.raises(FormError):
        parse_form(TemplateId, {"template_id": "abc"})