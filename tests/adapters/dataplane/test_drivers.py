from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from dataplane_sync.adapters.dataplane import PAYLOAD_MODELS, DataPlaneDriver, build_drivers
from dataplane_sync.domain.errors import DataPlaneAPIError, ValidationError
from dataplane_sync.domain.model import IndexedItem, ResourceKind
from tests.helpers.dataplane import BACKEND, FRONTEND

if TYPE_CHECKING:
    from collections.abc import Callable

    from dataplane_sync.adapters.dataplane import DataPlaneClient
    from dataplane_sync.config import ApiVersion
    from tests.helpers.http import RecordingAPI

    ClientFactory = Callable[[ApiVersion], DataPlaneClient]

ACLS = "/v3/services/haproxy/configuration/frontends/fe_main/acls"
STICK_RULES = "/v3/services/haproxy/configuration/backends/be_app/stick_rules"


def test_build_drivers_covers_every_kind(client_factory: ClientFactory) -> None:
    drivers = build_drivers(client_factory("v3"))

    assert set(drivers) == set(ResourceKind)
    assert set(PAYLOAD_MODELS) == set(ResourceKind)
    assert all(driver.kind is kind for kind, driver in drivers.items())


def test_read_all_indexes_by_position_and_drops_nulls(
    api: RecordingAPI, client_factory: ClientFactory
) -> None:
    api.on(
        "GET",
        ACLS,
        httpx.Response(
            200,
            json=[
                {"index": 0, "acl_name": "a", "criterion": "path_beg", "value": "/a"},
                {"index": 5, "acl_name": "b", "criterion": "src", "value": None, "extra": 1},
            ],
        ),
    )
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.ACL)

    observed = driver.read_all(FRONTEND)

    assert [item.index for item in observed] == [0, 1]
    assert observed.contents() == [
        {"acl_name": "a", "criterion": "path_beg", "value": "/a"},
        {"acl_name": "b", "criterion": "src"},
    ]


def test_read_all_rejects_malformed_members(
    api: RecordingAPI, client_factory: ClientFactory
) -> None:
    api.on("GET", ACLS, httpx.Response(200, json=[{"index": 0, "value": "/a"}]))
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.ACL)

    with pytest.raises(DataPlaneAPIError, match="Unexpected acl at position 0"):
        driver.read_all(FRONTEND)


def test_create_validates_and_sends_payload(
    api: RecordingAPI, client_factory: ClientFactory
) -> None:
    api.on("POST", f"{ACLS}/0", httpx.Response(201, json={}))
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.ACL)

    driver.create_at(
        "tx-1",
        FRONTEND,
        IndexedItem(index=0, content={"acl_name": "a", "criterion": "path_beg", "value": None}),
    )

    assert api.last_json() == {"acl_name": "a", "criterion": "path_beg", "index": 0}


def test_update_and_delete_use_the_item_index(
    api: RecordingAPI, client_factory: ClientFactory
) -> None:
    api.on("PUT", f"{ACLS}/3", httpx.Response(200, json={}))
    api.on("DELETE", f"{ACLS}/3", httpx.Response(204))
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.ACL)
    item = IndexedItem(index=3, content={"acl_name": "a", "criterion": "src"})

    driver.update_at("tx-1", FRONTEND, 3, item)
    driver.delete_at("tx-1", FRONTEND, 3)

    assert [request.method for request in api.requests] == ["PUT", "DELETE"]


def test_unknown_fields_are_rejected_before_sending(
    api: RecordingAPI, client_factory: ClientFactory
) -> None:
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.ACL)

    with pytest.raises(ValidationError, match="Unknown acl field"):
        driver.create_at(
            "tx-1",
            FRONTEND,
            IndexedItem(index=0, content={"acl_name": "a", "criterion": "src", "bogus": 1}),
        )

    assert api.requests == []


def test_missing_required_field_is_rejected(client_factory: ClientFactory) -> None:
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.TCP_CHECK)

    with pytest.raises(ValidationError, match="Invalid tcp_check payload"):
        driver.outgoing({"port": 80})


def test_outgoing_coerces_values_the_way_the_remote_stores_them(
    client_factory: ClientFactory,
) -> None:
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.TCP_CHECK)

    assert driver.outgoing({"action": "connect", "port": "8080", "comment": None}) == {
        "action": "connect",
        "port": 8080,
    }


def test_stick_rules_are_created_and_read_back(
    api: RecordingAPI, client_factory: ClientFactory
) -> None:
    api.on("POST", f"{STICK_RULES}/0", httpx.Response(201, json={}))
    api.on(
        "GET",
        STICK_RULES,
        httpx.Response(
            200,
            json=[{"index": 0, "type": "store-request", "pattern": "src", "table": "st_src"}],
        ),
    )
    driver = DataPlaneDriver(client=client_factory("v3"), kind=ResourceKind.STICK_RULE)

    driver.create_at(
        "tx-1",
        BACKEND,
        IndexedItem(index=0, content={"type": "store-request", "pattern": "src"}),
    )
    sent = api.last_json()
    observed = driver.read_all(BACKEND)

    assert sent == {"type": "store-request", "pattern": "src", "index": 0}
    assert observed.contents() == [{"type": "store-request", "pattern": "src", "table": "st_src"}]
