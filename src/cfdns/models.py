"""Pydantic models for Cloudflare API resources.

The API has shipped several shapes of the DNS record object over time
(string vs. integer priorities, the ``data`` block growing new members,
fields becoming optional). These models absorb that drift: every field that
is not strictly needed is optional, values are coerced leniently, and
unknown members are ignored.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

Uint16 = Annotated[int, Field(ge=0, le=65535)]

# Cloudflare's TTL value for "automatic"
AUTOMATIC_TTL = 1


class ApiErrorDetail(BaseModel):
    """One entry of the envelope's ``errors`` list."""

    code: int
    message: str
    error_chain: list["ApiErrorDetail"] = Field(default_factory=list)


class ResultInfo(BaseModel):
    """Pagination info attached to list responses."""

    page: int = 1
    per_page: int = 0
    count: int = 0
    total_count: int = 0


class ApiResponse(BaseModel):
    """Envelope shared by every Cloudflare API response."""

    result: Any = None
    success: bool
    errors: list[ApiErrorDetail] = Field(default_factory=list)
    messages: list[Any] = Field(default_factory=list)
    result_info: ResultInfo | None = None


class Zone(BaseModel):
    """Cloudflare zone (only the members this library reads)."""

    id: str
    name: str
    status: str | None = None
    paused: bool = False
    type: str | None = None
    name_servers: list[str] = Field(default_factory=list)


class WireRecordData(BaseModel):
    """Structured per-type members of a DNS record (``data``)."""

    # LOC
    lat_degrees: int | None = None
    lat_minutes: int | None = None
    lat_seconds: float | None = None
    lat_direction: str | None = None
    long_degrees: int | None = None
    long_minutes: int | None = None
    long_seconds: float | None = None
    long_direction: str | None = None
    altitude: float | None = None
    size: float | None = None
    precision_horz: float | None = None
    precision_vert: float | None = None

    # SRV, HTTPS, SVCB
    service: str | None = None
    proto: str | None = None
    name: str | None = None
    priority: Uint16 | None = None
    weight: Uint16 | None = None
    port: Uint16 | None = None
    target: str | None = None

    # CAA, HTTPS, SVCB
    value: str | None = None

    # CAA
    tag: str | None = None

    # CAA, DNSKEY
    flags: int | None = None

    # DNSKEY
    protocol: int | None = None
    algorithm: int | None = None

    # DS
    key_tag: int | None = None
    digest_type: int | None = None

    # TLSA
    usage: int | None = None
    selector: int | None = None
    matching_type: int | None = None

    # URI
    content: str | None = None


class WireRecord(BaseModel):
    """Cloudflare DNS record as sent and received on the wire."""

    id: str | None = None
    type: str
    name: str
    content: str = ""
    priority: Uint16 | None = None
    proxiable: bool | None = None
    proxied: bool = False
    ttl: int = AUTOMATIC_TTL
    locked: bool | None = None
    zone_id: str | None = None
    zone_name: str | None = None
    created_on: datetime | None = None
    modified_on: datetime | None = None
    comment: str | None = None
    tags: list[str] = Field(default_factory=list)
    data: WireRecordData = Field(default_factory=WireRecordData)
    meta: dict[str, Any] | None = None

    @field_validator("content", "proxied", "tags", "data", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        # The API sends null for members that do not apply to a type
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body for a create or update request.

        Only writable members are included, and empty ones are left out:
        the API rejects ``proxied`` on types that cannot be proxied.
        """
        payload = self.model_dump(
            include={"type", "name", "content", "priority", "ttl", "comment", "tags"},
            exclude_none=True,
        )
        if not payload.get("tags"):
            payload.pop("tags", None)
        if self.proxied:
            payload["proxied"] = True
        data = self.data.model_dump(exclude_none=True)
        if data:
            payload["data"] = data
        return payload
