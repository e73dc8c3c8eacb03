"""Recording ``httpx.MockTransport`` backend for Data Plane client tests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from dataplane_sync.config import DataPlaneConfig, ResilienceConfig

if TYPE_CHECKING:
    from collections.abc import Callable

    from dataplane_sync.config import ApiVersion

type Route = tuple[str, str]
type Reply = httpx.Response | Callable[[httpx.Request], httpx.Response]


@dataclass
class RecordingAPI:
    """Route table keyed by (method, path); unmatched requests answer 404."""

    routes: dict[Route, Reply] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def on(self, method: str, path: str, reply: Reply) -> None:
        self.routes[(method, path)] = reply

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"code": 404, "message": "missing object"})
        if isinstance(reply, httpx.Response):
            return reply
        return reply(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> object:
        return json.loads(self.last.content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def make_config(api_version: ApiVersion = "v3") -> DataPlaneConfig:
    return DataPlaneConfig(
        base_url="http://haproxy:5555",
        username="admin",
        password="s3cret",
        api_version=api_version,
        resilience=ResilienceConfig(name="dataplane", retry=None),
    )
