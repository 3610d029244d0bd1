"""Abstract capabilities of a DNS record provider."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from cfdns.records import Record


class RecordGetter(ABC):
    """Provider that can list the records of a zone."""

    @abstractmethod
    def get_records(self, zone: str, timeout: float | None = None) -> list[Record]:
        """List all records in the zone.

        Args:
            zone: The zone name (e.g. "example.com.").
            timeout: Per-call timeout in seconds for each remote call.

        Returns:
            The zone's records, with zone-relative names.

        Raises:
            Exception: If listing or translating any record fails.
        """
        ...


class RecordAppender(ABC):
    """Provider that can add records without touching existing ones."""

    @abstractmethod
    def append_records(
        self, zone: str, records: Sequence[Record], timeout: float | None = None
    ) -> list[Record]:
        """Create the given records in the zone.

        Args:
            zone: The zone name.
            records: Records to create, processed in order.
            timeout: Per-call timeout in seconds for each remote call.

        Returns:
            The records as created, in input order.

        Raises:
            Exception: If creating any record fails; earlier records stay created.
        """
        ...


class RecordSetter(ABC):
    """Provider that can create-or-update records."""

    @abstractmethod
    def set_records(
        self, zone: str, records: Sequence[Record], timeout: float | None = None
    ) -> list[Record]:
        """Make each record exist with exactly the given value.

        Args:
            zone: The zone name.
            records: Records to set, processed in order.
            timeout: Per-call timeout in seconds for each remote call.

        Returns:
            The records as stored, in input order.

        Raises:
            Exception: If setting any record fails; earlier records stay set.
        """
        ...


class RecordDeleter(ABC):
    """Provider that can delete records."""

    @abstractmethod
    def delete_records(
        self, zone: str, records: Sequence[Record], timeout: float | None = None
    ) -> list[Record]:
        """Delete the given records from the zone.

        Records that do not exist are ignored.

        Args:
            zone: The zone name.
            records: Records to delete, processed in order.
            timeout: Per-call timeout in seconds for each remote call.

        Returns:
            The records that were actually deleted.

        Raises:
            Exception: If a deletion fails; earlier records stay deleted.
        """
        ...
