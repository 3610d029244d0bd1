"""Pytest fixtures for cfdns test suite."""

import itertools
import json
import logging
import logging.handlers
import os
from collections.abc import Generator
from typing import Any

import httpx
import pytest
import respx

from cfdns import CloudflareProvider

# Live Cloudflare settings for integration tests
CLOUDFLARE_API_TOKEN = os.environ.get("CLOUDFLARE_API_TOKEN", "")
CLOUDFLARE_TEST_ZONE = os.environ.get("CLOUDFLARE_TEST_ZONE", "")


def envelope(result: Any = None, **extra: Any) -> dict[str, Any]:
    """Build a successful Cloudflare response body."""
    return {"result": result, "success": True, "errors": [], "messages": [], **extra}


def failure(code: int, message: str) -> dict[str, Any]:
    """Build a failed Cloudflare response body."""
    return {
        "result": None,
        "success": False,
        "errors": [{"code": code, "message": message}],
        "messages": [],
    }


class FakeCloudflareApi:
    """In-memory stand-in for the zone and DNS record endpoints.

    Records are stored as the API would return them. Every request is kept
    in ``requests`` so tests can count lookups and mutations.
    """

    def __init__(self, zones: dict[str, str]):
        self.zones = zones
        self.records: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.rejected_names: set[str] = set()
        self._ids = itertools.count(1)

    @property
    def zone_id(self) -> str:
        return next(iter(self.zones.values()))

    @property
    def mutations(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]

    def requests_for(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    def add_record(self, **fields: Any) -> dict[str, Any]:
        """Store a record as if it had been created remotely."""
        record = {
            "id": f"rec{next(self._ids):04d}",
            "zone_id": self.zone_id,
            "ttl": 1,
            "proxied": False,
            **fields,
        }
        self.records[record["id"]] = record
        return record

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.removeprefix("/client/v4").strip("/").split("/")
        params = request.url.params

        if parts == ["zones"]:
            name = params.get("name")
            result = [
                {"id": zone_id, "name": zone_name, "status": "active"}
                for zone_name, zone_id in self.zones.items()
                if name is None or name == zone_name
            ]
            return httpx.Response(200, json=envelope(result))

        if len(parts) < 3 or parts[0] != "zones" or parts[2] != "dns_records":
            return httpx.Response(404, json=failure(7000, "No route for that URI"))
        if parts[1] not in self.zones.values():
            return httpx.Response(404, json=failure(7003, "Could not route to zone"))

        if len(parts) == 3:
            if request.method == "GET":
                filters = {k: params.get(k) for k in ("name", "type", "content")}
                result = [
                    r
                    for r in self.records.values()
                    if all(v is None or r.get(k) == v for k, v in filters.items())
                ]
                info = {"page": 1, "per_page": 100, "count": len(result), "total_count": len(result)}
                return httpx.Response(200, json=envelope(result, result_info=info))
            if request.method == "POST":
                body = json.loads(request.content)
                if body["name"] in self.rejected_names:
                    return httpx.Response(400, json=failure(9005, "Content for record is invalid."))
                return httpx.Response(200, json=envelope(self.add_record(**body)))

        record_id = parts[3]
        if record_id not in self.records:
            return httpx.Response(404, json=failure(81044, "Record does not exist."))
        if request.method == "PUT":
            body = json.loads(request.content)
            existing = self.records[record_id]
            self.records[record_id] = {
                "id": record_id,
                "zone_id": existing["zone_id"],
                "ttl": 1,
                "proxied": False,
                **body,
            }
            return httpx.Response(200, json=envelope(self.records[record_id]))
        if request.method == "DELETE":
            del self.records[record_id]
            return httpx.Response(200, json=envelope({"id": record_id}))

        return httpx.Response(405, json=failure(10000, "Method not allowed"))


@pytest.fixture
def cloudflare_api() -> Generator[FakeCloudflareApi]:
    """Route all Cloudflare API traffic to an in-memory fake with one zone."""
    api = FakeCloudflareApi({"example.com": "023e105f4ecef8ad9ca31a8372d0c353"})
    with respx.mock(assert_all_called=False) as router:
        router.route(host="api.cloudflare.com").mock(side_effect=api.handle)
        yield api


@pytest.fixture
def provider(cloudflare_api: FakeCloudflareApi) -> Generator[CloudflareProvider]:
    """Create a CloudflareProvider talking to the fake API."""
    with CloudflareProvider(api_token="test-token") as provider:
        yield provider


@pytest.fixture(scope="session")
def cloudflare_test_zone() -> str:
    """Return the live test zone, skipping when credentials are missing."""
    if not CLOUDFLARE_API_TOKEN or not CLOUDFLARE_TEST_ZONE:
        pytest.skip("CLOUDFLARE_API_TOKEN and/or CLOUDFLARE_TEST_ZONE not set")
    if not CLOUDFLARE_TEST_ZONE.endswith("."):
        pytest.fail("CLOUDFLARE_TEST_ZONE must have a trailing dot")
    return CLOUDFLARE_TEST_ZONE


class LogCapture:
    """Helper class to capture and inspect log records."""

    def __init__(self, handler: logging.handlers.MemoryHandler) -> None:
        self._handler = handler

    @property
    def records(self) -> list[logging.LogRecord]:
        """Get all captured log records."""
        return self._handler.buffer

    def get_records(
        self, level: int | None = None, name: str | None = None
    ) -> list[logging.LogRecord]:
        """Get log records filtered by level and/or logger name.

        Args:
            level: Filter by log level (e.g., logging.INFO).
            name: Filter by logger name prefix (e.g., "cfdns.client").

        Returns:
            List of matching log records.
        """
        records = self.records
        if level is not None:
            records = [r for r in records if r.levelno == level]
        if name is not None:
            records = [r for r in records if r.name.startswith(name)]
        return records

    def get_messages(self, level: int | None = None, name: str | None = None) -> list[str]:
        """Get log messages filtered by level and/or logger name."""
        return [r.getMessage() for r in self.get_records(level, name)]

    def clear(self) -> None:
        """Clear all captured log records."""
        self._handler.buffer.clear()


@pytest.fixture
def log_capture() -> Generator[LogCapture]:
    """Capture logs from the cfdns library during a test.

    Usage:
        def test_something(log_capture):
            # do something that logs
            assert "Record created" in log_capture.get_messages(logging.INFO)
    """
    # Create a memory handler to capture logs
    handler = logging.handlers.MemoryHandler(capacity=1000)
    handler.setLevel(logging.DEBUG)

    cfdns_logger = logging.getLogger("cfdns")
    original_level = cfdns_logger.level
    cfdns_logger.setLevel(logging.DEBUG)
    cfdns_logger.addHandler(handler)

    try:
        yield LogCapture(handler)
    finally:
        cfdns_logger.removeHandler(handler)
        cfdns_logger.setLevel(original_level)
        handler.close()
