"""Cloudflare DNS adapter exceptions."""

from typing import Any


class CloudflareDnsError(Exception):
    """Base exception for all cfdns errors."""

    pass


class ApiError(CloudflareDnsError):
    """Application error returned by the Cloudflare API.

    Raised when the response envelope reports ``success: false`` (or the
    body cannot be read as an envelope at all). The provider's error list
    is kept verbatim in ``errors``.
    """

    def __init__(
        self,
        status_code: int,
        errors: list[dict[str, Any]] | None = None,
        detail: str | None = None,
    ):
        self.status_code = status_code
        self.errors = errors or []
        if detail is None:
            detail = "; ".join(
                f"{e.get('code', 'unknown')}: {e.get('message', '')}" for e in self.errors
            )
        self.detail = detail or "Unknown error"
        super().__init__(f"Cloudflare API error (HTTP {status_code}): {self.detail}")

    @property
    def codes(self) -> list[int]:
        """Provider error codes, in the order they were reported."""
        return [e["code"] for e in self.errors if "code" in e]

    @classmethod
    def from_response(cls, data: dict[str, Any], status_code: int) -> "ApiError":
        """Create an ApiError from a decoded response envelope.

        Routes to the appropriate subclass based on the HTTP status.

        Args:
            data: Parsed JSON response body.
            status_code: HTTP status code.

        Returns:
            ApiError instance (or appropriate subclass).
        """
        errors = data.get("errors") or []

        if status_code in (401, 403):
            return AuthenticationError(status_code, errors)

        return cls(status_code, errors)


class AuthenticationError(ApiError):
    """Token rejected or lacking permission (HTTP 401/403)."""

    pass


class ZoneNotFoundError(CloudflareDnsError):
    """No zone with the requested name is visible to the token."""

    def __init__(self, zone: str):
        self.zone = zone
        super().__init__(f"Zone not found: {zone}")


class TranslationError(CloudflareDnsError, ValueError):
    """A record could not be translated between wire and generic form.

    Args:
        reason: What went wrong.
        record: Identifying fields of the offending record (id, type, name).
    """

    def __init__(self, reason: str, record: dict[str, Any] | None = None):
        self.reason = reason
        self.record = record or {}
        if self.record:
            fields = ", ".join(f"{k}={v!r}" for k, v in self.record.items() if v is not None)
            message = f"{reason} (record: {fields})"
        else:
            message = reason
        super().__init__(message)


class InvalidAddressError(TranslationError):
    """A/AAAA content is not an IP address of the matching family."""

    def __init__(self, address: str, record: dict[str, Any] | None = None):
        self.address = address
        super().__init__(f"invalid address {address!r}", record)


class SrvNameError(TranslationError):
    """SRV owner name lacks the _service._proto.name labels."""

    def __init__(self, name: str, record: dict[str, Any] | None = None):
        self.name = name
        super().__init__(
            f"insufficiently qualified SRV name {name!r}; "
            "expected format: '_service._proto.name'",
            record,
        )


class RecordParseError(TranslationError):
    """Raw RR data could not be parsed into its typed record."""

    pass


class AmbiguousMatchError(CloudflareDnsError):
    """More than one existing record could be the target of a set.

    Args:
        count: Number of conflicting candidates found.
        record: Identifying fields of the record being set.
    """

    def __init__(self, count: int, record: dict[str, Any] | None = None):
        self.count = count
        self.record = record or {}
        target = f"{self.record.get('type')} {self.record.get('name')}" if self.record else "record"
        super().__init__(f"ambiguous target: found {count} existing records for {target}")
