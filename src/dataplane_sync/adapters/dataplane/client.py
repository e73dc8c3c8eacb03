"""HTTP client for the HAProxy Data Plane API."""

from __future__ import annotations

import re
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from dataplane_sync.adapters.http_resilience import ResilientClient
from dataplane_sync.domain.errors import (
    ConflictError,
    DataPlaneAPIError,
    NotFoundError,
    PlanConflictError,
    TransportError,
    ValidationError,
    classify_conflict,
)
from dataplane_sync.domain.model import ResourceKind, Transaction

from .schema import APIErrorPayload, TransactionPayload, parse_version, unwrap_list

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dataplane_sync.config.dataplane import ApiVersion, DataPlaneConfig
    from dataplane_sync.domain.model import ConfigVersion, ParentRef

log = getLogger(__name__)

VERSION_PATH = "/services/haproxy/configuration/version"
TRANSACTIONS_PATH = "/services/haproxy/transactions"
CONFIGURATION_PATH = "/services/haproxy/configuration"

_SENSITIVE_FIELDS = re.compile(r'"(password|token|secret|key|auth)"\s*:\s*"[^"]*"')
_INVALID_PASSWORD = re.compile(r"invalid password:\s*[^\s\"]*")


def sanitize_body(body: str) -> str:
    """Mask credentials before a response body reaches a log line or an exception."""

    body = _SENSITIVE_FIELDS.sub(r'"\1": "***"', body)
    return _INVALID_PASSWORD.sub("invalid password: ***", body)


class DataPlaneClient:
    """Version, transaction and indexed-collection calls for one Data Plane endpoint.

    Collection paths differ between API versions: v3 nests them under the parent
    (``/frontends/<name>/acls/<index>``) and returns bare arrays, v2 addresses the
    parent through ``parent_type``/``parent_name`` query parameters and wraps lists
    in ``{"data": [...]}``.
    """

    def __init__(
        self,
        config: DataPlaneConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        resilience = replace(config.resilience, base_url=config.api_root)
        self._http = ResilientClient(
            resilience,
            auth=httpx.BasicAuth(config.username, config.password),
            transport=transport,
        )

    def __enter__(self) -> DataPlaneClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def api_version(self) -> ApiVersion:
        return self.config.api_version

    # Transactions

    def get_version(self) -> ConfigVersion:
        response = self._send("GET", VERSION_PATH)
        payload = self._decode(response)
        try:
            return parse_version(payload)
        except (TypeError, ValueError) as exc:
            raise DataPlaneAPIError(
                f"Unexpected configuration version payload: {sanitize_body(response.text)}",
                status_code=response.status_code,
            ) from exc

    def create_transaction(self, version: ConfigVersion) -> Transaction:
        response = self._send("POST", TRANSACTIONS_PATH, params={"version": version})
        payload = self._decode(response)
        try:
            transaction = TransactionPayload.model_validate(payload)
        except ValueError as exc:
            raise DataPlaneAPIError(
                f"Unexpected transaction payload: {sanitize_body(response.text)}",
                status_code=response.status_code,
            ) from exc
        log.debug("Created transaction %s for version %d", transaction.id, version)
        return Transaction(id=transaction.id, version=transaction.version)

    def commit_transaction(self, transaction_id: str) -> None:
        self._send("PUT", f"{TRANSACTIONS_PATH}/{quote(transaction_id, safe='')}")

    def discard_transaction(self, transaction_id: str) -> None:
        self._send("DELETE", f"{TRANSACTIONS_PATH}/{quote(transaction_id, safe='')}")

    # Indexed collections

    def list_items(self, kind: ResourceKind, parent: ParentRef) -> list[Mapping[str, object]]:
        """Return the parent's collection in remote order.

        A missing collection (404) or a rejected parent lookup (422) reads as empty.
        """

        path, params = self._collection_target(kind, parent)
        try:
            response = self._send("GET", path, params=params)
        except NotFoundError:
            log.debug("No %s collection on %s", kind.path_segment, parent)
            return []
        except ValidationError as exc:
            if exc.status_code != httpx.codes.UNPROCESSABLE_ENTITY:
                raise
            log.debug("Remote rejected %s lookup on %s: %s", kind.path_segment, parent, exc)
            return []
        try:
            return unwrap_list(self._decode(response))
        except TypeError as exc:
            raise DataPlaneAPIError(
                f"Unexpected {kind.path_segment} payload: {exc}",
                status_code=response.status_code,
            ) from exc

    def create_item(
        self,
        transaction_id: str,
        kind: ResourceKind,
        parent: ParentRef,
        index: int,
        payload: Mapping[str, object],
    ) -> None:
        # v2 takes the position from the body only; v3 also wants it in the path.
        path_index = index if self.api_version == "v3" else None
        path, params = self._collection_target(kind, parent, path_index, transaction_id)
        self._send("POST", path, params=params, json={**payload, "index": index})

    def replace_item(
        self,
        transaction_id: str,
        kind: ResourceKind,
        parent: ParentRef,
        index: int,
        payload: Mapping[str, object],
    ) -> None:
        path, params = self._collection_target(kind, parent, index, transaction_id)
        self._send("PUT", path, params=params, json={**payload, "index": index})

    def delete_item(
        self,
        transaction_id: str,
        kind: ResourceKind,
        parent: ParentRef,
        index: int,
    ) -> None:
        path, params = self._collection_target(kind, parent, index, transaction_id)
        self._send("DELETE", path, params=params)

    def _collection_target(
        self,
        kind: ResourceKind,
        parent: ParentRef,
        index: int | None = None,
        transaction_id: str | None = None,
    ) -> tuple[str, dict[str, str | int]]:
        if not kind.accepts(parent):
            raise PlanConflictError(f"{kind} collections do not exist on {parent}")
        params: dict[str, str | int] = {}
        if self.api_version == "v3":
            path = (
                f"{CONFIGURATION_PATH}/{parent.kind.plural}/"
                f"{quote(parent.name, safe='')}/{kind.path_segment}"
            )
        else:
            path = f"{CONFIGURATION_PATH}/{kind.path_segment}"
            if kind is ResourceKind.STICK_RULE:
                params["backend"] = parent.name
            else:
                params["parent_type"] = parent.kind.value
                params["parent_name"] = parent.name
        if index is not None:
            path = f"{path}/{index}"
        if transaction_id is not None:
            params["transaction_id"] = transaction_id
        return path, params

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str | int] | None = None,
        json: object = None,
    ) -> httpx.Response:
        try:
            response = self._http.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            raise TransportError(f"{method} {path} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.is_success:
            return response
        raise _api_error(method, path, response)

    def _decode(self, response: httpx.Response) -> object:
        try:
            return response.json()
        except ValueError as exc:
            raise DataPlaneAPIError(
                f"Response is not JSON: {sanitize_body(response.text)}",
                status_code=response.status_code,
            ) from exc


def _api_error(method: str, path: str, response: httpx.Response) -> DataPlaneAPIError:
    status = response.status_code
    body = sanitize_body(response.text)
    try:
        payload = APIErrorPayload.model_validate(response.json())
    except ValueError:
        payload = APIErrorPayload(code=status, message=body or response.reason_phrase)

    code = payload.code if payload.code is not None else status
    message = sanitize_body(payload.message) or response.reason_phrase
    reason = classify_conflict(code, message)
    if reason is not None:
        log.warning(f"Data Plane conflict on {method} {path}: [{code}] {message}")
        return ConflictError(message, reason=reason, code=code, status_code=status)
    if status == httpx.codes.NOT_FOUND:
        log.debug(f"Data Plane 404 on {method} {path}: {message}")
        return NotFoundError(message, code=code, status_code=status)
    log.error(f"Data Plane API error on {method} {path}: [{code}] {message}")
    if status in (httpx.codes.BAD_REQUEST, httpx.codes.UNPROCESSABLE_ENTITY):
        return ValidationError(message, code=code, status_code=status)
    return DataPlaneAPIError(message, code=code, status_code=status)
