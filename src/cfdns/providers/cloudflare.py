"""Cloudflare provider for generic DNS record management."""

import os
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from cfdns._logging import get_logger, get_zone_extra, reset_zone, set_zone
from cfdns.cache import ZoneCache
from cfdns.client import BASE_URL, CloudflareClient
from cfdns.exceptions import AmbiguousMatchError
from cfdns.models import WireRecord
from cfdns.providers.base import RecordAppender, RecordDeleter, RecordGetter, RecordSetter
from cfdns.records import Record
from cfdns.translate import to_generic, to_wire

logger = get_logger(__name__)


@contextmanager
def _zone_logging(zone: str) -> Iterator[None]:
    token = set_zone(zone)
    try:
        yield
    finally:
        reset_zone(token)


class CloudflareProvider(RecordGetter, RecordAppender, RecordSetter, RecordDeleter):
    """DNS provider backed by the Cloudflare v4 API.

    Cloudflare only addresses records by ID. This provider adds the
    content-based semantics the generic interface expects: ``set_records``
    finds the record to overwrite by name and type, and ``delete_records``
    finds records to remove by name, type and content. Records are handled
    one at a time, in input order, with no retries and no rollback.

    Args:
        api_token: Scoped API token with Zone.DNS:Edit permission.
        zone_token: Optional Zone:Read token for zone ID lookups.
        base_url: API root (default: Cloudflare's public v4 endpoint).
        timeout: Default timeout in seconds for each request (default: 30).
        zone_cache: Cache of zone IDs; pass one in to share it between
            providers. A private cache is created otherwise.
        client: Preconfigured API client (mainly for tests).
    """

    def __init__(
        self,
        api_token: str,
        zone_token: str | None = None,
        base_url: str = BASE_URL,
        timeout: float = 30,
        zone_cache: ZoneCache | None = None,
        client: CloudflareClient | None = None,
    ):
        self.timeout = timeout
        self.zone_cache = zone_cache if zone_cache is not None else ZoneCache()
        self._client = client or CloudflareClient(
            api_token, zone_token=zone_token, base_url=base_url, timeout=timeout
        )

    @classmethod
    def from_env(cls, **kwargs) -> "CloudflareProvider":
        """Create a provider from CLOUDFLARE_API_TOKEN / CLOUDFLARE_ZONE_TOKEN.

        Raises:
            ValueError: If CLOUDFLARE_API_TOKEN is not set.
        """
        api_token = os.environ.get("CLOUDFLARE_API_TOKEN")
        if not api_token:
            raise ValueError("CLOUDFLARE_API_TOKEN is not set")
        zone_token = os.environ.get("CLOUDFLARE_ZONE_TOKEN") or None
        return cls(api_token, zone_token=zone_token, **kwargs)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "CloudflareProvider":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _zone_id(self, zone: str, timeout: float | None) -> str:
        return self.zone_cache.get_or_load(
            zone, lambda name: self._client.get_zone(name, timeout=timeout).id
        )

    def _find(
        self, zone_id: str, wire: WireRecord, timeout: float | None
    ) -> list[WireRecord]:
        """Query existing records with the same name and type."""
        matches = self._client.list_records(
            zone_id, name=wire.name, record_type=wire.type, timeout=timeout
        )
        logger.debug(
            "Matching query",
            extra={
                "record_type": wire.type,
                "record_name": wire.name,
                "matches": len(matches),
                **get_zone_extra(),
            },
        )
        return matches

    def get_records(self, zone: str, timeout: float | None = None) -> list[Record]:
        """List all records in the zone (first page only)."""
        with _zone_logging(zone):
            zone_id = self._zone_id(zone, timeout)
            wires = self._client.list_records(zone_id, timeout=timeout)
            records = [to_generic(wire, zone) for wire in wires]
            logger.debug("Records listed", extra={"count": len(records), **get_zone_extra()})
            return records

    def append_records(
        self, zone: str, records: Sequence[Record], timeout: float | None = None
    ) -> list[Record]:
        """Create every record, without checking for existing ones."""
        with _zone_logging(zone):
            zone_id = self._zone_id(zone, timeout)
            created = []
            for record in records:
                wire = to_wire(record, zone)
                result = self._client.create_record(zone_id, wire, timeout=timeout)
                logger.info(
                    "Record created",
                    extra={
                        "record_id": result.id,
                        "record_type": result.type,
                        "record_name": result.name,
                        **get_zone_extra(),
                    },
                )
                created.append(to_generic(result, zone))
            return created

    def set_records(
        self, zone: str, records: Sequence[Record], timeout: float | None = None
    ) -> list[Record]:
        """Create each record, or overwrite the one existing record it replaces.

        A record carrying an ID overwrites that record. Otherwise the record
        with the same name and type is overwritten, whatever its content;
        if there is none a new record is created.

        Raises:
            AmbiguousMatchError: If several records share the name and type.
                Nothing is changed for that record.
        """
        with _zone_logging(zone):
            zone_id = self._zone_id(zone, timeout)
            results = []
            for record in records:
                wire = to_wire(record, zone)

                target_id = record.id
                if target_id is None:
                    matches = self._find(zone_id, wire, timeout)
                    if len(matches) > 1:
                        raise AmbiguousMatchError(len(matches), record.identity())
                    if matches:
                        target_id = matches[0].id

                if target_id is None:
                    result = self._client.create_record(zone_id, wire, timeout=timeout)
                    action = "created"
                else:
                    result = self._client.update_record(zone_id, target_id, wire, timeout=timeout)
                    action = "updated"

                logger.info(
                    f"Record {action}",
                    extra={
                        "record_id": result.id,
                        "record_type": result.type,
                        "record_name": result.name,
                        **get_zone_extra(),
                    },
                )
                results.append(to_generic(result, zone))
            return results

    def delete_records(
        self, zone: str, records: Sequence[Record], timeout: float | None = None
    ) -> list[Record]:
        """Delete records by ID, or by exact name, type and content.

        Every existing record matching a given record is deleted. Records
        with no match are skipped.
        """
        with _zone_logging(zone):
            zone_id = self._zone_id(zone, timeout)
            deleted: list[Record] = []
            for record in records:
                if record.id is not None:
                    self._client.delete_record(zone_id, record.id, timeout=timeout)
                    logger.info(
                        "Record deleted", extra={"record_id": record.id, **get_zone_extra()}
                    )
                    deleted.append(record)
                    continue

                wire = to_wire(record, zone)
                wanted = to_generic(wire, zone).fingerprint()
                for candidate in self._find(zone_id, wire, timeout):
                    existing = to_generic(candidate, zone)
                    if existing.fingerprint() != wanted:
                        continue
                    self._client.delete_record(zone_id, candidate.id, timeout=timeout)
                    logger.info(
                        "Record deleted",
                        extra={
                            "record_id": candidate.id,
                            "record_type": candidate.type,
                            "record_name": candidate.name,
                            **get_zone_extra(),
                        },
                    )
                    deleted.append(existing)
            return deleted
