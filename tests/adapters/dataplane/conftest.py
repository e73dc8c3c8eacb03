from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from dataplane_sync.adapters.dataplane import DataPlaneClient
from tests.helpers.http import RecordingAPI, make_config

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from dataplane_sync.config import ApiVersion


@pytest.fixture
def api() -> RecordingAPI:
    return RecordingAPI()


@pytest.fixture
def client_factory(api: RecordingAPI) -> Iterator[Callable[[ApiVersion], DataPlaneClient]]:
    clients: list[DataPlaneClient] = []

    def factory(api_version: ApiVersion = "v3") -> DataPlaneClient:
        client = DataPlaneClient(make_config(api_version), transport=api.transport())
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
