"""Integration tests for the Cloudflare provider (requires a live test zone)."""

import uuid
from collections.abc import Generator

import pytest

from cfdns import CloudflareProvider
from cfdns.records import MX, SRV, TXT

pytestmark = pytest.mark.integration


@pytest.fixture
def cloudflare_provider(cloudflare_test_zone: str) -> Generator[CloudflareProvider]:
    """Create a CloudflareProvider from the environment.

    The cloudflare_test_zone fixture skips the test without credentials.
    """
    with CloudflareProvider.from_env() as provider:
        yield provider


@pytest.fixture
def label() -> str:
    """Unique owner name so parallel runs do not collide."""
    return f"cfdns-test-{uuid.uuid4().hex[:8]}"


class TestCloudflareProviderIntegration:
    """Integration tests for CloudflareProvider against the Cloudflare API."""

    def test_set_then_delete_txt(
        self, cloudflare_provider: CloudflareProvider, cloudflare_test_zone: str, label: str
    ):
        """A TXT record can be set, overwritten, listed and deleted."""
        zone = cloudflare_test_zone
        try:
            created = cloudflare_provider.set_records(zone, [TXT(name=label, text="first")])
            updated = cloudflare_provider.set_records(zone, [TXT(name=label, text='sec "ond"')])

            assert updated[0].id == created[0].id
            listed = [r for r in cloudflare_provider.get_records(zone) if r.name == label]
            assert listed == [TXT(name=label, id=created[0].id, text='sec "ond"')]
        finally:
            deleted = cloudflare_provider.delete_records(
                zone, [TXT(name=label, text='sec "ond"')]
            )

        assert len(deleted) == 1

    def test_append_and_delete_mx(
        self, cloudflare_provider: CloudflareProvider, cloudflare_test_zone: str, label: str
    ):
        """MX preference and target survive the round trip."""
        zone = cloudflare_test_zone
        record = MX(name=label, preference=10, target=f"mail.{zone}")

        created = cloudflare_provider.append_records(zone, [record])
        try:
            assert created[0].preference == 10
        finally:
            cloudflare_provider.delete_records(zone, created)

    def test_set_and_delete_srv(
        self, cloudflare_provider: CloudflareProvider, cloudflare_test_zone: str, label: str
    ):
        """SRV records are stored with all their components."""
        zone = cloudflare_test_zone
        record = SRV(
            name=label,
            service="sip",
            transport="tcp",
            priority=10,
            weight=5,
            port=5060,
            target=f"sip.{zone}".rstrip("."),
        )

        created = cloudflare_provider.set_records(zone, [record])
        try:
            assert created[0].model_copy(update={"id": None}) == record
        finally:
            cloudflare_provider.delete_records(zone, created)

    def test_delete_missing_record(
        self, cloudflare_provider: CloudflareProvider, cloudflare_test_zone: str, label: str
    ):
        """Deleting a record that does not exist is a no-op."""
        deleted = cloudflare_provider.delete_records(
            cloudflare_test_zone, [TXT(name=label, text="never created")]
        )

        assert deleted == []
