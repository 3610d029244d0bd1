"""Translation between Cloudflare wire records and generic records.

Both directions are pure functions, and they are not mirror images of
each other. Cloudflare's read API hands back structured ``data`` for some
types and a flat ``content`` string for others, while its write API insists
on the individual component fields for SRV and HTTPS/SVCB records even
though its documentation describes ``content`` alone as sufficient.
"""

from datetime import timedelta
from ipaddress import ip_address

from pydantic import ValidationError

from cfdns.exceptions import InvalidAddressError, SrvNameError, TranslationError
from cfdns.models import AUTOMATIC_TTL, WireRecord, WireRecordData
from cfdns.records import (
    CAA,
    CNAME,
    DNS_ERRORS,
    MX,
    NS,
    RR,
    SRV,
    TXT,
    Address,
    Record,
    ServiceBinding,
    absolute_name,
    relative_name,
    split_srv_name,
)

# CNAMEs pointing at a Cloudflare Tunnel only resolve when proxied
TUNNEL_SUFFIX = ".cfargotunnel.com"


def wrap_txt(text: str) -> str:
    """Quote a TXT payload the way Cloudflare stores it."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unwrap_txt(content: str) -> str:
    """Strip Cloudflare's TXT quoting.

    Handles escaped quotes and backslashes, and joins multi-string content
    (``"part one" "part two"``). Content that is not entirely made of quoted
    strings (older records) is returned unchanged.
    """
    text = content.strip()
    if not text.startswith('"'):
        return content

    chunks = []
    i, end = 0, len(text)
    while i < end:
        if text[i].isspace():
            i += 1
            continue
        if text[i] != '"':
            return content
        i += 1
        chunk = []
        while i < end and text[i] != '"':
            if text[i] == "\\" and i + 1 < end:
                i += 1
            chunk.append(text[i])
            i += 1
        if i >= end:
            # unterminated string
            return content
        i += 1
        chunks.append("".join(chunk))
    return "".join(chunks)


def _wire_identity(wire: WireRecord) -> dict[str, str | None]:
    return {"id": wire.id, "type": wire.type, "name": wire.name}


def _ttl(wire: WireRecord) -> timedelta:
    return timedelta(0) if wire.ttl == AUTOMATIC_TTL else timedelta(seconds=wire.ttl)


# =============================================================================
# Wire -> generic
# =============================================================================


def _address(wire: WireRecord, common: dict) -> Address:
    try:
        ip = ip_address(wire.content.strip())
    except ValueError:
        raise InvalidAddressError(wire.content, _wire_identity(wire)) from None
    if (ip.version == 4) != (wire.type.upper() == "A"):
        raise InvalidAddressError(wire.content, _wire_identity(wire))
    return Address(ip=ip, **common)


def _srv(wire: WireRecord, zone: str, common: dict) -> SRV:
    # The owner name is absolute, so it must go on past the two SRV labels
    if len(wire.name.split(".", 2)) < 3:
        raise SrvNameError(wire.name, _wire_identity(wire))
    service, transport, host = split_srv_name(wire.name, _wire_identity(wire))

    data = wire.data
    if data.port is not None and data.target is not None:
        priority, weight, port, target = data.priority, data.weight, data.port, data.target
    else:
        # Older responses only carried "weight port target" in content
        fields = wire.content.split()
        if len(fields) == 3:
            priority = wire.priority
            weight, port, target = fields
        elif len(fields) == 4:
            priority, weight, port, target = fields
        else:
            raise TranslationError(
                f"SRV record has no usable data (content {wire.content!r})",
                _wire_identity(wire),
            )

    return SRV(
        **{**common, "name": relative_name(host, zone)},
        service=service,
        transport=transport,
        priority=priority or 0,
        weight=weight or 0,
        port=port,
        target=target,
    )


def to_generic(wire: WireRecord, zone: str) -> Record:
    """Translate a Cloudflare record into the richest generic record.

    Args:
        wire: Record as returned by the API.
        zone: Zone the record belongs to (e.g. "example.com.").

    Returns:
        A typed record with a zone-relative name.

    Raises:
        TranslationError: If the wire record is malformed for its type.
    """
    rtype = wire.type.upper()
    try:
        common = {
            "name": relative_name(wire.name, zone),
            "ttl": _ttl(wire),
            "id": wire.id,
        }
        if rtype in ("A", "AAAA"):
            return _address(wire, common)
        if rtype == "CAA":
            # Cloudflare already hands us the parsed flags/tag/value
            if wire.data.tag is None or wire.data.value is None:
                raise TranslationError("CAA record is missing tag or value", _wire_identity(wire))
            return CAA(flags=wire.data.flags or 0, tag=wire.data.tag, value=wire.data.value, **common)
        if rtype == "CNAME":
            return CNAME(target=wire.content, **common)
        if rtype == "MX":
            if wire.priority is None:
                return RR(type=rtype, data=wire.content, **common).parse()
            return MX(preference=wire.priority, target=wire.content, **common)
        if rtype == "NS":
            return NS(target=wire.content, **common)
        if rtype == "SRV":
            return _srv(wire, zone, common)
        if rtype == "TXT":
            return TXT(text=unwrap_txt(wire.content), **common)
        return RR(type=rtype, data=wire.content, **common).parse()
    except TranslationError:
        raise
    except DNS_ERRORS as e:
        raise TranslationError(f"invalid {rtype} record: {e}", _wire_identity(wire)) from e


# =============================================================================
# Generic -> wire
# =============================================================================


def to_wire(record: Record, zone: str | None = None) -> WireRecord:
    """Translate a generic record into the body Cloudflare expects.

    Args:
        record: Record to submit. A raw ``RR`` is parsed into its typed
            form first so that the type-specific fields get filled in.
        zone: Zone to qualify the owner name with. Without it the name is
            sent relative, which the API expands itself.

    Returns:
        The wire record (carrying the record's ID, if any).

    Raises:
        TranslationError: If a field is out of range or malformed.
    """
    if isinstance(record, RR):
        record = record.parse()

    try:
        rr = record.rr()
    except DNS_ERRORS as e:
        raise TranslationError(
            f"invalid {type(record).__name__} record: {e}", {"id": record.id, "name": record.name}
        ) from e
    identity = record.identity()

    if rr.ttl < timedelta(0):
        raise TranslationError(f"negative TTL {rr.ttl}", identity)
    if rr.ttl % timedelta(seconds=1):
        raise TranslationError(f"TTL {rr.ttl} is not a whole number of seconds", identity)
    seconds = int(rr.ttl.total_seconds())
    if seconds == AUTOMATIC_TTL:
        # Cloudflare reads a TTL of 1 as automatic
        raise TranslationError("TTL of 1 second is reserved for automatic, use 0", identity)

    def qualify(name: str) -> str:
        return absolute_name(name, zone) if zone is not None else name

    try:
        name = qualify(rr.name)
        data_name = qualify(record.name)
    except DNS_ERRORS as e:
        raise TranslationError(f"invalid owner name {rr.name!r}: {e}", identity) from e

    fields: dict = {
        "id": record.id,
        "type": rr.type,
        "name": name,
        "content": rr.data,
        "ttl": seconds or AUTOMATIC_TTL,
    }
    data: dict = {}

    if isinstance(record, SRV):
        data = {
            "service": f"_{record.service}",
            "proto": f"_{record.transport}",
            "name": data_name,
            "priority": record.priority,
            "weight": record.weight,
            "port": record.port,
            "target": record.target,
        }
    elif isinstance(record, ServiceBinding):
        data = {
            "priority": record.priority,
            "target": record.target,
            "value": record.params_text(),
        }
    elif isinstance(record, MX):
        fields["content"] = record.target
        fields["priority"] = record.preference
    elif isinstance(record, CAA):
        data = {"flags": record.flags, "tag": record.tag, "value": record.value}
    elif isinstance(record, CNAME):
        # Provider-specific: tunnel targets must be proxied, so force it on
        if record.target.rstrip(".").lower().endswith(TUNNEL_SUFFIX):
            fields["proxied"] = True
    elif isinstance(record, TXT):
        fields["content"] = wrap_txt(record.text)

    try:
        return WireRecord(**fields, data=WireRecordData(**data))
    except ValidationError as e:
        raise TranslationError(f"invalid {rr.type} record: {e}", identity) from e
