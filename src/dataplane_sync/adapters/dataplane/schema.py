"""Pydantic models describing the Data Plane API payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dataplane_sync.domain.model import ResourceKind


class DataPlaneBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class APIErrorPayload(DataPlaneBaseModel):
    code: int | None = None
    message: str = ""


class VersionPayload(DataPlaneBaseModel):
    version: int

    @field_validator("version", mode="before")
    @classmethod
    def _parse_version(cls, value: int | str) -> int:
        return int(value)


class TransactionPayload(DataPlaneBaseModel):
    id: str
    version: int = Field(alias="_version")
    status: str | None = None


class IndexedPayload(DataPlaneBaseModel):
    """Common base for every index-addressed collection member."""

    index: int | None = None

    def to_content(self) -> dict[str, object]:
        return self.model_dump(exclude={"index"}, exclude_none=True)


class AclPayload(IndexedPayload):
    acl_name: str
    criterion: str
    value: str | None = None


class HttpRequestRulePayload(IndexedPayload):
    type: str
    acl_file: str | None = None
    acl_keyfmt: str | None = None
    bandwidth_limit_name: str | None = None
    bandwidth_limit_period: str | None = None
    bandwidth_limit_limit: str | None = None
    cache_name: str | None = None
    cond: str | None = None
    cond_test: str | None = None
    expr: str | None = None
    hdr_format: str | None = None
    hdr_match: str | None = None
    hdr_method: str | None = None
    hdr_name: str | None = None
    log_level: str | None = None
    lua_action: str | None = None
    lua_params: str | None = None
    map_file: str | None = None
    map_keyfmt: str | None = None
    map_valuefmt: str | None = None
    mark_value: str | None = None
    method_fmt: str | None = None
    nice_value: int | None = None
    path_fmt: str | None = None
    path_match: str | None = None
    query_fmt: str | None = None
    redir_code: int | None = None
    redir_type: str | None = None
    redir_value: str | None = None
    sc_expr: str | None = None
    sc_id: int | None = None
    sc_idx: int | None = None
    sc_int: int | None = None
    service: str | None = None
    spoe_engine: str | None = None
    spoe_group: str | None = None
    status_code: int | None = None
    status_reason: str | None = None
    timeout: str | None = None
    timeout_value: int | None = None
    tos_value: str | None = None
    track_sc_key: str | None = None
    track_sc_table: str | None = None
    uri_fmt: str | None = None
    uri_match: str | None = None
    var_name: str | None = None
    var_scope: str | None = None
    wait_time: int | None = None


class HttpResponseRulePayload(IndexedPayload):
    type: str
    cond: str | None = None
    cond_test: str | None = None
    hdr_name: str | None = None
    hdr_format: str | None = None
    redir_type: str | None = None
    redir_value: str | None = None
    status_code: int | None = None
    status_reason: str | None = None


class TcpRequestRulePayload(IndexedPayload):
    type: str
    action: str | None = None
    cond: str | None = None
    cond_test: str | None = None
    timeout: int | None = None
    lua_action: str | None = None
    lua_params: str | None = None
    sc_id: int | None = None
    sc_idx: int | None = None
    sc_int: int | None = None
    sc_inc_gpc0: str | None = None
    sc_inc_gpc1: str | None = None
    sc_set_gpt0: str | None = None
    track_sc_key: str | None = None
    track_sc_table: str | None = None
    var_name: str | None = None
    var_scope: str | None = None
    var_expr: str | None = None
    var_format: str | None = None
    var_type: str | None = None


class TcpResponseRulePayload(IndexedPayload):
    action: str
    type: str | None = None
    cond: str | None = None
    cond_test: str | None = None
    lua_action: str | None = None
    lua_params: str | None = None
    sc_id: int | None = None
    sc_idx: int | None = None
    sc_int: int | None = None
    sc_inc_gpc0: str | None = None
    sc_inc_gpc1: str | None = None
    sc_set_gpt0: str | None = None
    var_name: str | None = None
    var_scope: str | None = None
    var_expr: str | None = None
    var_format: str | None = None
    var_type: str | None = None


class StickRulePayload(IndexedPayload):
    type: str
    cond: str | None = None
    cond_test: str | None = None
    pattern: str | None = None
    table: str | None = None


class HttpCheckPayload(IndexedPayload):
    type: str
    addr: str | None = None
    match: str | None = None
    pattern: str | None = None
    method: str | None = None
    port: int | None = None
    uri: str | None = None
    version: str | None = None
    exclamation_mark: str | None = None
    log_level: str | None = None
    send_proxy: str | None = None
    via_socks4: str | None = None
    check_comment: str | None = None


class TcpCheckPayload(IndexedPayload):
    action: str
    comment: str | None = None
    port: int | None = None
    address: str | None = None
    data: str | None = None
    min_recv: int | None = None
    on_success: str | None = None
    on_error: str | None = None
    status_code: str | None = None
    timeout: int | None = None
    log_level: str | None = None


PAYLOAD_MODELS: dict[ResourceKind, type[IndexedPayload]] = {
    ResourceKind.ACL: AclPayload,
    ResourceKind.HTTP_REQUEST_RULE: HttpRequestRulePayload,
    ResourceKind.HTTP_RESPONSE_RULE: HttpResponseRulePayload,
    ResourceKind.TCP_REQUEST_RULE: TcpRequestRulePayload,
    ResourceKind.TCP_RESPONSE_RULE: TcpResponseRulePayload,
    ResourceKind.STICK_RULE: StickRulePayload,
    ResourceKind.HTTP_CHECK: HttpCheckPayload,
    ResourceKind.TCP_CHECK: TcpCheckPayload,
}


def parse_version(payload: object) -> int:
    """Accept both a bare integer and ``{"version": ...}`` answers."""

    if isinstance(payload, bool):
        raise TypeError("Configuration version must be an integer")
    if isinstance(payload, int):
        return payload
    if isinstance(payload, str):
        return int(payload.strip())
    return VersionPayload.model_validate(payload).version


def unwrap_list(payload: object) -> list[Mapping[str, object]]:
    """Return list members from either a bare array (v3) or a ``{"data": [...]}`` wrapper (v2)."""

    if isinstance(payload, Mapping):
        payload = cast(Mapping[str, object], payload).get("data")
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise TypeError(f"Expected a JSON array, got {type(payload).__name__}")
    members = cast(list[object], payload)
    for member in members:
        if not isinstance(member, Mapping):
            raise TypeError(f"Expected JSON objects in collection, got {type(member).__name__}")
    return cast(list[Mapping[str, object]], members)
