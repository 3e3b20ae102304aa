"""Abstract base class for name-evidence sources.

Defines the contract every external catalog (streaming platform, metadata
registry, static famous-artist list) implements.  The coordinator only
talks to this interface, so adding a source means adding an adapter and
registering it in ``main.py``; the coordinator does not change.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from name_verifier.models.verification import NameType, PlatformEvidence


class ISourceAdapter(ABC):
    """Contract for a single evidence source.

    Implementations must never raise from :meth:`verify`: any failure is
    returned as a ``PlatformEvidence`` with ``available=False`` and the
    classified error attached.
    """

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Stable identifier, e.g. ``"spotify"``."""

    @property
    @abstractmethod
    def reliability(self) -> float:
        """Static reliability weight in [0.0, 1.0] used downstream."""

    @property
    @abstractmethod
    def timeout_seconds(self) -> float:
        """Per-call timeout applied by the adapter itself."""

    @abstractmethod
    async def verify(self, name: str, name_type: NameType) -> PlatformEvidence:
        """Search the source for *name* and return normalized evidence.

        Parameters
        ----------
        name:
            Non-empty candidate name (at most 200 characters).
        name_type:
            Whether *name* is a band or a song.

        Returns
        -------
        PlatformEvidence
            Normalized evidence; ``available=False`` on failure.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the source is configured and usable."""
