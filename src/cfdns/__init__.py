"""cfdns - Cloudflare adapter for generic DNS record management."""

__version__ = "0.1.0"

from cfdns.cache import ZoneCache  # noqa: E402
from cfdns.providers.cloudflare import CloudflareProvider  # noqa: E402

__all__ = ["CloudflareProvider", "ZoneCache"]
