"""Public interface definitions for external collaborators.

Concrete adapters implement these ABCs and are injected at startup in
``name_verifier/main.py``:

    Interface        ->  Concrete implementations
    ─────────────────────────────────────────────────────────────────
    ISourceAdapter   ->  SpotifySource, ITunesSource, MusicBrainzSource,
                         BandcampSource, FamousArtistsSource
    ICacheProvider   ->  MemoryResultCache

Unit tests inject ``MagicMock(spec=...)`` fakes instead of real sources.
"""

from name_verifier.interfaces.cache_provider import ICacheProvider
from name_verifier.interfaces.source_adapter import ISourceAdapter

__all__ = ["ICacheProvider", "ISourceAdapter"]
