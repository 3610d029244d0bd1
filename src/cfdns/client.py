"""HTTP client for the Cloudflare v4 API."""

from typing import Any

import httpx
from pydantic import ValidationError

from cfdns import __version__
from cfdns._logging import Timer, get_logger, get_zone_extra
from cfdns.exceptions import ApiError, TranslationError, ZoneNotFoundError
from cfdns.models import ApiResponse, WireRecord, Zone

logger = get_logger(__name__)

BASE_URL = "https://api.cloudflare.com/client/v4"


def _wire_record(item: Any) -> WireRecord:
    """Parse one record object from a response, naming it on failure."""
    try:
        return WireRecord.model_validate(item)
    except ValidationError as e:
        fields = item if isinstance(item, dict) else {}
        identity = {key: fields.get(key) for key in ("id", "type", "name")}
        raise TranslationError(f"invalid DNS record from API: {e}", identity) from e


class CloudflareClient:
    """Thin wrapper around the zone and DNS record endpoints.

    Every method returns parsed models and raises on failure; nothing is
    retried. Transport errors (connection failures, timeouts) propagate as
    the underlying ``httpx`` exceptions.

    Args:
        api_token: Scoped API token with Zone.DNS:Edit permission.
        zone_token: Optional Zone:Read token used only to look up zone IDs,
            for when ``api_token`` is scoped to a single zone.
        base_url: API root (default: Cloudflare's public v4 endpoint).
        timeout: Default timeout in seconds for each request (default: 30).
    """

    def __init__(
        self,
        api_token: str,
        zone_token: str | None = None,
        base_url: str = BASE_URL,
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._zone_token = zone_token
        self._http = httpx.Client(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_token}",
                "User-Agent": f"cfdns/{__version__}",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "CloudflareClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _handle_response(self, response: httpx.Response) -> ApiResponse:
        """Check the response envelope and parse it.

        Cloudflare can answer 200 with ``success: false``, so the envelope
        flag is checked in addition to the HTTP status.

        Args:
            response: The httpx Response object.

        Returns:
            The parsed envelope.

        Raises:
            ApiError: If the request failed, with the provider's errors attached.
        """
        try:
            data = response.json()
        except ValueError:
            logger.error(
                "Cloudflare API returned a non-JSON body",
                extra={"status_code": response.status_code, **get_zone_extra()},
            )
            raise ApiError(response.status_code, detail=response.text or "Unknown error") from None

        if not isinstance(data, dict):
            raise ApiError(response.status_code, detail=f"unexpected response body: {data!r}")

        if response.status_code >= 400 or not data.get("success", False):
            error = ApiError.from_response(data, response.status_code)
            logger.error(
                "Cloudflare API error",
                extra={
                    "status_code": response.status_code,
                    "errors": error.errors,
                    **get_zone_extra(),
                },
            )
            raise error

        return ApiResponse.model_validate(data)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse:
        """Send one API request.

        Args:
            method: HTTP method.
            path: Path below the API root.
            params: Query parameters; None values are dropped.
            json: Request body.
            headers: Extra headers, overriding the client defaults.
            timeout: Per-call timeout in seconds, overriding the default.

        Returns:
            The parsed response envelope.
        """
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if json is not None:
            kwargs["json"] = json
        if headers:
            kwargs["headers"] = headers
        if timeout is not None:
            kwargs["timeout"] = timeout

        with Timer() as t:
            response = self._http.request(method, path, **kwargs)

        logger.debug(
            "Cloudflare API request",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "elapsed_ms": round(t.elapsed_ms, 1),
                **get_zone_extra(),
            },
        )
        return self._handle_response(response)

    def get_zone(self, name: str, timeout: float | None = None) -> Zone:
        """Look up a zone by name.

        Args:
            name: Zone name, with or without trailing dot.
            timeout: Per-call timeout in seconds.

        Returns:
            The zone.

        Raises:
            ZoneNotFoundError: If no zone with that name is visible.
        """
        headers = {"Authorization": f"Bearer {self._zone_token}"} if self._zone_token else None
        wanted = name.rstrip(".").lower()
        response = self._request(
            "GET", "/zones", params={"name": wanted}, headers=headers, timeout=timeout
        )
        for item in response.result or []:
            zone = Zone.model_validate(item)
            if zone.name.lower() == wanted:
                return zone
        raise ZoneNotFoundError(name)

    def list_records(
        self,
        zone_id: str,
        name: str | None = None,
        record_type: str | None = None,
        content: str | None = None,
        timeout: float | None = None,
    ) -> list[WireRecord]:
        """List DNS records of a zone, optionally filtered.

        Only the first page is fetched.

        Args:
            zone_id: Zone identifier.
            name: Exact fully-qualified record name to match.
            record_type: Record type to match.
            content: Exact content to match.
            timeout: Per-call timeout in seconds.

        Returns:
            The matching records.
        """
        response = self._request(
            "GET",
            f"/zones/{zone_id}/dns_records",
            params={"name": name, "type": record_type, "content": content},
            timeout=timeout,
        )
        records = [_wire_record(item) for item in response.result or []]

        info = response.result_info
        if info is not None and info.total_count > len(records):
            logger.warning(
                "Record listing truncated to first page",
                extra={
                    "zone_id": zone_id,
                    "count": len(records),
                    "total_count": info.total_count,
                    **get_zone_extra(),
                },
            )
        return records

    def create_record(
        self, zone_id: str, record: WireRecord, timeout: float | None = None
    ) -> WireRecord:
        """Create a DNS record and return it as stored (with its new ID)."""
        response = self._request(
            "POST", f"/zones/{zone_id}/dns_records", json=record.to_payload(), timeout=timeout
        )
        return _wire_record(response.result)

    def update_record(
        self,
        zone_id: str,
        record_id: str,
        record: WireRecord,
        timeout: float | None = None,
    ) -> WireRecord:
        """Overwrite an existing DNS record and return it as stored."""
        response = self._request(
            "PUT",
            f"/zones/{zone_id}/dns_records/{record_id}",
            json=record.to_payload(),
            timeout=timeout,
        )
        return _wire_record(response.result)

    def delete_record(self, zone_id: str, record_id: str, timeout: float | None = None) -> str:
        """Delete a DNS record.

        Returns:
            The ID of the deleted record.
        """
        response = self._request(
            "DELETE", f"/zones/{zone_id}/dns_records/{record_id}", timeout=timeout
        )
        result = response.result or {}
        return result.get("id", record_id)
