"""Provider-agnostic DNS record model.

Every record type is an immutable pydantic model carrying a zone-relative
owner name (``"@"`` for the zone apex), a TTL (zero meaning "let the
provider decide") and, once stored remotely, the provider's record ID.
Any record can be flattened into the generic :class:`RR` form, and
:meth:`RR.parse` turns raw RR data back into the richest typed record.

RR data is DNS presentation format, read and written with dnspython. TXT is
the exception: its RR data is the raw payload, without quoting.
"""

import base64
from abc import abstractmethod
from datetime import timedelta
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Annotated, Any, Literal

import dns.exception
import dns.name
import dns.rdata
import dns.rdataclass
import dns.rdatatype
from dns.rdtypes import svcbbase
from pydantic import BaseModel, ConfigDict, Field, model_validator

from cfdns.exceptions import RecordParseError, SrvNameError, TranslationError

Uint8 = Annotated[int, Field(ge=0, le=255)]
Uint16 = Annotated[int, Field(ge=0, le=65535)]

APEX = "@"

# Errors dnspython raises for malformed names and rdata
DNS_ERRORS = (ValueError, dns.exception.DNSException)


# =============================================================================
# Name helpers
# =============================================================================


def _origin(zone: str) -> dns.name.Name:
    return dns.name.from_text(zone.rstrip(".") + ".")


def relative_name(fqdn: str, zone: str) -> str:
    """Make a fully-qualified name relative to its zone.

    The zone apex becomes ``"@"``. Names outside the zone are returned
    without their trailing dot.

    Args:
        fqdn: Fully-qualified name, with or without trailing dot.
        zone: Zone name, with or without trailing dot.

    Returns:
        The zone-relative name.
    """
    if fqdn.rstrip(".") in ("", APEX):
        return APEX
    name = dns.name.from_text(fqdn.rstrip(".") + ".")
    return name.relativize(_origin(zone)).to_text(omit_final_dot=True)


def absolute_name(name: str, zone: str) -> str:
    """Qualify a zone-relative name with its zone.

    Names ending in a dot are already absolute and only lose the dot, which
    gives the form Cloudflare stores. A trailing ``"@"`` label stands for
    the apex (``"_sip._tcp.@"``).

    Args:
        name: Zone-relative (or absolute, dot-terminated) name.
        zone: Zone name, with or without trailing dot.

    Returns:
        The fully-qualified name without trailing dot.
    """
    if name.endswith(f".{APEX}"):
        name = name[: -len(APEX) - 1]
    if name in ("", APEX):
        return _origin(zone).to_text(omit_final_dot=True)
    qualified = dns.name.from_text(name, origin=_origin(zone))
    return qualified.to_text(omit_final_dot=True)


def split_srv_name(name: str, record: dict[str, Any] | None = None) -> tuple[str, str, str]:
    """Split an SRV owner name ``_service._proto[.name]`` into its parts.

    Returns:
        Service and transport without their underscore, and the remaining
        name (``"@"`` when there is none).

    Raises:
        SrvNameError: If the first two labels are not underscore labels.
    """
    labels = name.split(".", 2)
    if len(labels) < 2 or not (labels[0].startswith("_") and labels[1].startswith("_")):
        raise SrvNameError(name, record)
    rest = labels[2] if len(labels) == 3 else APEX
    return labels[0][1:], labels[1][1:], rest


def _target(text: str) -> dns.name.Name:
    # Relative targets stay relative; dot-terminated ones stay absolute
    return dns.name.from_text(text, origin=None)


def _make_rdata(rdtype: str, *fields: Any) -> dns.rdata.Rdata:
    rdtype_value = dns.rdatatype.from_text(rdtype)
    cls = dns.rdata.get_rdata_class(dns.rdataclass.IN, rdtype_value)
    return cls(dns.rdataclass.IN, rdtype_value, *fields)


def _parse_rdata(rdtype: str, data: str) -> dns.rdata.Rdata:
    return dns.rdata.from_text(dns.rdataclass.IN, rdtype, data)


# =============================================================================
# Service binding parameters
# =============================================================================


def _svc_param(key: Any, values: list[str]) -> svcbbase.Param | None:
    if key == svcbbase.ParamKey.MANDATORY:
        return svcbbase.MandatoryParam(values)
    if key == svcbbase.ParamKey.ALPN:
        return svcbbase.ALPNParam(values)
    if key == svcbbase.ParamKey.NO_DEFAULT_ALPN:
        if values:
            raise ValueError("no-default-alpn takes no value")
        return None
    if key == svcbbase.ParamKey.PORT:
        (port,) = values
        return svcbbase.PortParam(int(port))
    if key == svcbbase.ParamKey.IPV4HINT:
        return svcbbase.IPv4HintParam(values)
    if key == svcbbase.ParamKey.IPV6HINT:
        return svcbbase.IPv6HintParam(values)
    if key == svcbbase.ParamKey.ECH:
        (ech,) = values
        return svcbbase.ECHParam(base64.b64decode(ech))
    if not values:
        return None
    if len(values) > 1:
        raise ValueError(f"{svcbbase.key_to_text(key)} takes a single opaque value")
    return svcbbase.GenericParam(values[0].encode())


def _svc_values(param: svcbbase.Param | None) -> list[str]:
    if param is None:
        return []
    if isinstance(param, svcbbase.MandatoryParam):
        return [svcbbase.key_to_text(key) for key in param.keys]
    if isinstance(param, svcbbase.ALPNParam):
        return [alpn_id.decode() for alpn_id in param.ids]
    if isinstance(param, svcbbase.PortParam):
        return [str(param.port)]
    if isinstance(param, (svcbbase.IPv4HintParam, svcbbase.IPv6HintParam)):
        return [str(address) for address in param.addresses]
    if isinstance(param, svcbbase.ECHParam):
        return [base64.b64encode(param.ech).decode()]
    return [param.value.decode()]


def to_svc_params(params: dict[str, list[str]]) -> dict[Any, svcbbase.Param | None]:
    """Convert a ``{key: [values]}`` mapping into dnspython SvcParams.

    Keys are SvcParam names (``alpn``, ``no-default-alpn``, ``key65000``).

    Raises:
        ValueError: If a key is unknown or a value is malformed for its key.
    """
    converted: dict[Any, svcbbase.Param | None] = {}
    for key, values in params.items():
        param_key = svcbbase.ParamKey.make(key.lower().replace("-", "_"))
        converted[param_key] = _svc_param(param_key, values)
    return converted


def from_svc_params(params: dict[Any, svcbbase.Param | None]) -> dict[str, list[str]]:
    """Convert dnspython SvcParams back into a ``{key: [values]}`` mapping."""
    return {svcbbase.key_to_text(key): _svc_values(param) for key, param in params.items()}


# =============================================================================
# Records
# =============================================================================


class Record(BaseModel):
    """Base class of all typed records."""

    model_config = ConfigDict(frozen=True)

    name: str = APEX
    ttl: timedelta = timedelta(0)
    id: str | None = None

    @abstractmethod
    def rr(self) -> "RR":
        """Flatten the record into its generic RR form."""
        ...

    def rdata(self) -> dns.rdata.Rdata | None:
        """Build the dnspython rdata, or None for types kept as raw text."""
        return None

    @model_validator(mode="after")
    def _check_rdata(self) -> "Record":
        try:
            self.rdata()
        except DNS_ERRORS as e:
            raise ValueError(f"invalid {type(self).__name__} record: {e}") from e
        return self

    def _rr(self, rtype: str, data: str, name: str | None = None) -> "RR":
        return RR(
            name=self.name if name is None else name,
            ttl=self.ttl,
            id=self.id,
            type=rtype,
            data=data,
        )

    def identity(self) -> dict[str, str | None]:
        """Identifying fields used in error messages and log extras."""
        rr = self.rr()
        return {"id": self.id, "type": rr.type, "name": rr.name}

    def fingerprint(self) -> tuple[str, str | bytes]:
        """Type and canonical content, for comparing records by value.

        Hostnames compare case-insensitively and with or without their
        trailing dot, since Cloudflare stores them without one. Data that
        dnspython cannot parse is compared as-is.
        """
        rr = self.rr()
        rtype = rr.type.upper()
        if rtype == "TXT":
            return rtype, rr.data
        try:
            rdata = dns.rdata.from_text(
                dns.rdataclass.IN, rtype, rr.data, origin=dns.name.root, relativize=False
            )
        except DNS_ERRORS:
            return rtype, rr.data
        return rtype, rdata.to_digestable(dns.name.root)


class RR(Record):
    """Generic resource record: type name plus presentation-format data.

    Used for any record type that has no richer model, and as the common
    flattened form of every typed record.
    """

    type: str
    data: str

    def rr(self) -> "RR":
        return self

    def parse(self) -> Record:
        """Parse the RR data into the richest typed record.

        Returns:
            A typed record, or this RR if the type has no richer model.

        Raises:
            RecordParseError: If the data is malformed for its type.
            SrvNameError: If an SRV name lacks its service/proto labels.
        """
        parser = _PARSERS.get(self.type.upper())
        if parser is None:
            return self
        try:
            return parser(self)
        except TranslationError:
            raise
        except DNS_ERRORS as e:
            raise RecordParseError(
                f"malformed {self.type} data {self.data!r}: {e}", self.identity()
            ) from e


class Address(Record):
    """A or AAAA record, depending on the address family."""

    ip: IPv4Address | IPv6Address

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata("A" if self.ip.version == 4 else "AAAA", str(self.ip))

    def rr(self) -> RR:
        rtype = "A" if self.ip.version == 4 else "AAAA"
        return self._rr(rtype, self.rdata().to_text())


class CNAME(Record):
    target: str

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata("CNAME", _target(self.target))

    def rr(self) -> RR:
        return self._rr("CNAME", self.rdata().to_text())


class NS(Record):
    target: str

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata("NS", _target(self.target))

    def rr(self) -> RR:
        return self._rr("NS", self.rdata().to_text())


class MX(Record):
    preference: Uint16
    target: str

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata("MX", self.preference, _target(self.target))

    def rr(self) -> RR:
        return self._rr("MX", self.rdata().to_text())


class TXT(Record):
    """TXT record. ``text`` is the raw payload, without any quoting."""

    text: str

    def rr(self) -> RR:
        return self._rr("TXT", self.text)


class SRV(Record):
    """SRV record (RFC 2782).

    ``service`` and ``transport`` are stored without their leading
    underscore; the owner name is ``_service._transport.name``.
    """

    service: str
    transport: str
    priority: Uint16
    weight: Uint16
    port: Uint16
    target: str

    def owner_name(self) -> str:
        prefix = f"_{self.service}._{self.transport}"
        return prefix if self.name == APEX else f"{prefix}.{self.name}"

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata("SRV", self.priority, self.weight, self.port, _target(self.target))

    def rr(self) -> RR:
        return self._rr("SRV", self.rdata().to_text(), name=self.owner_name())


class CAA(Record):
    flags: Uint8 = 0
    tag: str
    value: str

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata("CAA", self.flags, self.tag.encode(), self.value.encode())

    def rr(self) -> RR:
        return self._rr("CAA", self.rdata().to_text())


class ServiceBinding(Record):
    """HTTPS or SVCB record (RFC 9460).

    ``params`` maps SvcParam names to their values, e.g.
    ``{"alpn": ["h2", "h3"], "no-default-alpn": []}``.
    """

    kind: Literal["HTTPS", "SVCB"] = "HTTPS"
    priority: Uint16
    target: str
    params: dict[str, list[str]] = Field(default_factory=dict)

    def rdata(self) -> dns.rdata.Rdata:
        return _make_rdata(
            self.kind, self.priority, _target(self.target), to_svc_params(self.params)
        )

    def params_text(self) -> str:
        """SvcParams in presentation format, without priority and target."""
        fields = self.rdata().to_text().split(maxsplit=2)
        return fields[2] if len(fields) == 3 else ""

    def rr(self) -> RR:
        return self._rr(self.kind, self.rdata().to_text())


# =============================================================================
# RR data parsers
# =============================================================================


def _common(rr: RR) -> dict:
    return {"name": rr.name, "ttl": rr.ttl, "id": rr.id}


def _parse_address(rr: RR) -> Address:
    rdata = _parse_rdata(rr.type.upper(), rr.data)
    return Address(ip=ip_address(rdata.address), **_common(rr))


def _parse_cname(rr: RR) -> CNAME:
    rdata = _parse_rdata("CNAME", rr.data)
    return CNAME(target=rdata.target.to_text(), **_common(rr))


def _parse_ns(rr: RR) -> NS:
    rdata = _parse_rdata("NS", rr.data)
    return NS(target=rdata.target.to_text(), **_common(rr))


def _parse_mx(rr: RR) -> MX:
    rdata = _parse_rdata("MX", rr.data)
    return MX(preference=rdata.preference, target=rdata.exchange.to_text(), **_common(rr))


def _parse_txt(rr: RR) -> TXT:
    return TXT(text=rr.data, **_common(rr))


def _parse_srv(rr: RR) -> SRV:
    service, transport, name = split_srv_name(rr.name, rr.identity())
    rdata = _parse_rdata("SRV", rr.data)
    return SRV(
        name=name,
        ttl=rr.ttl,
        id=rr.id,
        service=service,
        transport=transport,
        priority=rdata.priority,
        weight=rdata.weight,
        port=rdata.port,
        target=rdata.target.to_text(),
    )


def _parse_caa(rr: RR) -> CAA:
    rdata = _parse_rdata("CAA", rr.data)
    return CAA(
        flags=rdata.flags,
        tag=rdata.tag.decode(),
        value=rdata.value.decode(),
        **_common(rr),
    )


def _parse_service_binding(rr: RR) -> ServiceBinding:
    kind = rr.type.upper()
    rdata = _parse_rdata(kind, rr.data)
    return ServiceBinding(
        kind=kind,
        priority=rdata.priority,
        target=rdata.target.to_text(),
        params=from_svc_params(rdata.params),
        **_common(rr),
    )


_PARSERS = {
    "A": _parse_address,
    "AAAA": _parse_address,
    "CAA": _parse_caa,
    "CNAME": _parse_cname,
    "HTTPS": _parse_service_binding,
    "MX": _parse_mx,
    "NS": _parse_ns,
    "SRV": _parse_srv,
    "SVCB": _parse_service_binding,
    "TXT": _parse_txt,
}
