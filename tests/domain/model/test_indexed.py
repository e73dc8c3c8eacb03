from __future__ import annotations

import pytest

from dataplane_sync.domain.model import (
    APPLY_ORDER,
    IndexedCollection,
    IndexedItem,
    ParentKind,
    ParentRef,
    ResourceKind,
)
from tests.helpers.dataplane import BACKEND, FRONTEND


def test_parent_ref_rejects_blank_name() -> None:
    with pytest.raises(ValueError, match="blank"):
        ParentRef(ParentKind.BACKEND, "  ")


def test_parent_ref_renders_kind_and_name() -> None:
    assert str(ParentRef(ParentKind.BACKEND, "be_app")) == "backend 'be_app'"
    assert ParentKind.BACKEND.plural == "backends"


def test_resource_kind_path_segments() -> None:
    assert ResourceKind.ACL.path_segment == "acls"
    assert ResourceKind.HTTP_REQUEST_RULE.path_segment == "http_request_rules"
    assert ResourceKind.TCP_CHECK.path_segment == "tcp_checks"


def test_apply_order_starts_with_acls_and_covers_every_kind() -> None:
    assert APPLY_ORDER[0] is ResourceKind.ACL
    assert set(APPLY_ORDER) == set(ResourceKind)
    assert len(APPLY_ORDER) == len(set(APPLY_ORDER))


def test_stick_rules_exist_only_on_backends() -> None:
    assert ResourceKind.STICK_RULE.path_segment == "stick_rules"
    assert ResourceKind.STICK_RULE.parent_kinds == frozenset({ParentKind.BACKEND})
    assert ResourceKind.STICK_RULE.accepts(BACKEND)
    assert not ResourceKind.STICK_RULE.accepts(FRONTEND)
    assert all(ResourceKind.ACL.accepts(parent) for parent in (FRONTEND, BACKEND))


def test_equal_items_hash_equally() -> None:
    first = IndexedItem(index=1, content={"acl_name": "a", "criterion": "src"})
    second = IndexedItem(index=1, content={"criterion": "src", "acl_name": "a"})

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second, IndexedItem(index=2, content=first.content)}) == 2


def test_item_rejects_negative_index() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        IndexedItem(index=-1, content={})


def test_item_content_must_not_carry_index() -> None:
    with pytest.raises(ValueError, match="'index'"):
        IndexedItem(index=0, content={"index": 0, "value": "a"})


def test_item_content_is_read_only_copy() -> None:
    source: dict[str, object] = {"value": "a"}
    item = IndexedItem(index=0, content=source)
    source["value"] = "changed"

    assert item.content["value"] == "a"
    with pytest.raises(TypeError):
        item.content["value"] = "b"  # type: ignore[index]


def test_item_payload_conversions() -> None:
    item = IndexedItem.from_payload({"index": 7, "acl_name": "is_api"}, index=2)

    assert item.index == 2
    assert dict(item.content) == {"acl_name": "is_api"}
    assert item.to_payload() == {"index": 2, "acl_name": "is_api"}
    assert item.at(5).index == 5
    assert item.at(5).content == item.content


def test_collection_from_contents_indexes_by_position() -> None:
    collection = IndexedCollection.from_contents(
        FRONTEND, ResourceKind.ACL, [{"acl_name": "a"}, {"acl_name": "b"}]
    )

    assert len(collection) == 2
    assert [item.index for item in collection] == [0, 1]
    assert collection.contents() == [{"acl_name": "a"}, {"acl_name": "b"}]


def test_reindexed_keeps_order_and_assigns_positions() -> None:
    collection = IndexedCollection(
        parent=FRONTEND,
        kind=ResourceKind.ACL,
        items=(
            IndexedItem(index=4, content={"acl_name": "a"}),
            IndexedItem(index=9, content={"acl_name": "b"}),
        ),
    )

    reindexed = collection.reindexed()

    assert [item.index for item in reindexed] == [0, 1]
    assert reindexed.contents() == collection.contents()


def test_empty_collection() -> None:
    collection = IndexedCollection.empty(FRONTEND, ResourceKind.TCP_CHECK)

    assert len(collection) == 0
    assert collection.kind is ResourceKind.TCP_CHECK
