"""Per-kind identity and mutability rules for the reconciler.

Which fields the remote accepts in an in-place update is not derivable from the
API description, so it is supplied here as configuration rather than guessed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dataplane_sync.domain.model import ResourceKind

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True, kw_only=True)
class ResourceStrategy:
    """Equality, identity and mutability for one resource kind.

    ``identity_fields`` decides whether two items at the same index are the same
    logical entity; an empty set means identity is position. ``mutable_fields``
    lists the fields an in-place update may change; ``None`` allows all of them.
    """

    kind: ResourceKind
    identity_fields: frozenset[str] = frozenset()
    mutable_fields: frozenset[str] | None = None

    def normalize(self, content: Mapping[str, object]) -> dict[str, object]:
        return {
            key: value
            for key, value in content.items()
            if key != "index" and value is not None and value != ""
        }

    def identity(self, content: Mapping[str, object]) -> tuple[object, ...]:
        return tuple(content.get(name) for name in sorted(self.identity_fields))

    def changed_fields(
        self,
        before: Mapping[str, object],
        after: Mapping[str, object],
    ) -> frozenset[str]:
        return frozenset(
            name for name in before.keys() | after.keys() if before.get(name) != after.get(name)
        )

    def can_update(self, changed: frozenset[str]) -> bool:
        if self.mutable_fields is None:
            return True
        return changed <= self.mutable_fields


def default_strategies() -> dict[ResourceKind, ResourceStrategy]:
    """Built-in rules per kind; HTTP rules are always replaced, never patched."""

    return {
        ResourceKind.ACL: ResourceStrategy(
            kind=ResourceKind.ACL,
            identity_fields=frozenset({"acl_name"}),
        ),
        ResourceKind.HTTP_REQUEST_RULE: ResourceStrategy(
            kind=ResourceKind.HTTP_REQUEST_RULE,
            mutable_fields=frozenset(),
        ),
        ResourceKind.HTTP_RESPONSE_RULE: ResourceStrategy(
            kind=ResourceKind.HTTP_RESPONSE_RULE,
            mutable_fields=frozenset(),
        ),
        ResourceKind.TCP_REQUEST_RULE: ResourceStrategy(kind=ResourceKind.TCP_REQUEST_RULE),
        ResourceKind.TCP_RESPONSE_RULE: ResourceStrategy(kind=ResourceKind.TCP_RESPONSE_RULE),
        ResourceKind.STICK_RULE: ResourceStrategy(kind=ResourceKind.STICK_RULE),
        ResourceKind.HTTP_CHECK: ResourceStrategy(
            kind=ResourceKind.HTTP_CHECK,
            identity_fields=frozenset({"type"}),
        ),
        ResourceKind.TCP_CHECK: ResourceStrategy(
            kind=ResourceKind.TCP_CHECK,
            identity_fields=frozenset({"action"}),
        ),
    }
