"""Abstract base class for raw-entry sources."""

from abc import ABC, abstractmethod

from toggl2sheet.core.models import RawEntry


class EntrySource(ABC):
    """Common interface for producing raw time entries.

    Each source (CSV export, reports API) provides a concrete
    implementation behind this interface.  A source instance serves a
    single request.
    """

    @abstractmethod
    def produce(self) -> list[RawEntry]:
        """Return all entries delivered by the source, untrimmed.

        Raises:
            SourceUnavailable, MalformedInput, AuthFailed
        """
        pass

    def produce_trimmed(self, step: int) -> list[RawEntry]:
        """Return the produced entries snapped to a *step* ms grid."""
        return [entry.trim(step) for entry in self.produce()]
