"""DNS record providers."""

from cfdns.providers.base import RecordAppender, RecordDeleter, RecordGetter, RecordSetter
from cfdns.providers.cloudflare import CloudflareProvider

__all__ = [
    "CloudflareProvider",
    "RecordAppender",
    "RecordDeleter",
    "RecordGetter",
    "RecordSetter",
]
