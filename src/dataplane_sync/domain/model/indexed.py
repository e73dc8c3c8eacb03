"""Ordered, index-addressed collections nested under a frontend or backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


class ParentKind(StrEnum):
    FRONTEND = "frontend"
    BACKEND = "backend"

    @property
    def plural(self) -> str:
        return f"{self.value}s"


class ResourceKind(StrEnum):
    """Indexed resource kinds managed by the reconciler.

    Each member selects one driver; the value doubles as the Data Plane path
    segment once pluralised.
    """

    ACL = "acl"
    HTTP_REQUEST_RULE = "http_request_rule"
    HTTP_RESPONSE_RULE = "http_response_rule"
    TCP_REQUEST_RULE = "tcp_request_rule"
    TCP_RESPONSE_RULE = "tcp_response_rule"
    STICK_RULE = "stick_rule"
    HTTP_CHECK = "http_check"
    TCP_CHECK = "tcp_check"

    @property
    def path_segment(self) -> str:
        return f"{self.value}s"

    @property
    def parent_kinds(self) -> frozenset[ParentKind]:
        if self is ResourceKind.STICK_RULE:
            return frozenset({ParentKind.BACKEND})
        return frozenset(ParentKind)

    def accepts(self, parent: ParentRef) -> bool:
        return parent.kind in self.parent_kinds


# Rules and checks reference ACLs by name, so ACLs are applied first and removed last.
APPLY_ORDER: tuple[ResourceKind, ...] = (
    ResourceKind.ACL,
    ResourceKind.HTTP_REQUEST_RULE,
    ResourceKind.HTTP_RESPONSE_RULE,
    ResourceKind.TCP_REQUEST_RULE,
    ResourceKind.TCP_RESPONSE_RULE,
    ResourceKind.STICK_RULE,
    ResourceKind.HTTP_CHECK,
    ResourceKind.TCP_CHECK,
)


@dataclass(frozen=True, slots=True)
class ParentRef:
    kind: ParentKind
    name: str

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Parent name must not be blank")

    def __str__(self) -> str:
        return f"{self.kind} {self.name!r}"


@dataclass(frozen=True, slots=True)
class IndexedItem:
    """One member of an ordered collection; ``content`` never carries the index."""

    index: int
    content: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Index must be non-negative, got {self.index}")
        if "index" in self.content:
            raise ValueError("Item content must not carry an 'index' key")
        object.__setattr__(self, "content", MappingProxyType(dict(self.content)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, object], *, index: int) -> IndexedItem:
        content = {key: value for key, value in payload.items() if key != "index"}
        return cls(index=index, content=content)

    def at(self, index: int) -> IndexedItem:
        return IndexedItem(index=index, content=self.content)

    def to_payload(self) -> dict[str, object]:
        return {"index": self.index, **self.content}

    def __hash__(self) -> int:
        return hash((self.index, frozenset(self.content.items())))


@dataclass(frozen=True, slots=True)
class IndexedCollection:
    """Desired or observed items of one resource kind for one parent."""

    parent: ParentRef
    kind: ResourceKind
    items: tuple[IndexedItem, ...] = ()

    @classmethod
    def from_contents(
        cls,
        parent: ParentRef,
        kind: ResourceKind,
        contents: Iterable[Mapping[str, object]],
    ) -> IndexedCollection:
        items = tuple(
            IndexedItem(index=position, content=content)
            for position, content in enumerate(contents)
        )
        return cls(parent=parent, kind=kind, items=items)

    @classmethod
    def empty(cls, parent: ParentRef, kind: ResourceKind) -> IndexedCollection:
        return cls(parent=parent, kind=kind)

    def reindexed(self) -> IndexedCollection:
        """Return a copy whose indices are list positions, keeping item order."""

        items = tuple(item.at(position) for position, item in enumerate(self.items))
        return IndexedCollection(parent=self.parent, kind=self.kind, items=items)

    def contents(self) -> list[Mapping[str, object]]:
        return [item.content for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[IndexedItem]:
        return iter(self.items)


type ObservedSnapshot = dict[ResourceKind, IndexedCollection]
