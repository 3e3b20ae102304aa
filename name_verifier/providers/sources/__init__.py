"""Source adapter implementations.

Five concrete ISourceAdapter implementations, queried in parallel by the
coordinator.  Each carries a static reliability weight used by the
aggregator, the confidence calculator and the decision engine:

    1. SpotifySource       (1.0) -- Spotify Web API, client-credentials
       token.  Requires SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET.
    2. ITunesSource        (0.9) -- iTunes Search API.  No key needed.
    3. FamousArtistsSource (0.9) -- offline fuzzy match against the bundled
       famous-artist list.
    4. BandcampSource      (0.8) -- Bandcamp search page scraping.  Strong
       for independent artists.
    5. MusicBrainzSource   (0.7) -- MusicBrainz open database via
       musicbrainzngs.  Rate limit: 1 req/sec.

All of them share BaseSourceAdapter, which owns timeouts, retries, error
classification and normalization into PlatformEvidence.
"""

from name_verifier.providers.sources.bandcamp_source import BandcampSource
from name_verifier.providers.sources.base_source import BaseSourceAdapter, SourceHit
from name_verifier.providers.sources.famous_artists_source import FamousArtistsSource
from name_verifier.providers.sources.itunes_source import ITunesSource
from name_verifier.providers.sources.musicbrainz_source import MusicBrainzSource
from name_verifier.providers.sources.spotify_source import SpotifySource

__all__ = [
    "BandcampSource",
    "BaseSourceAdapter",
    "FamousArtistsSource",
    "ITunesSource",
    "MusicBrainzSource",
    "SourceHit",
    "SpotifySource",
]
