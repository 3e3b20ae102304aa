"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables** -- e.g. SPOTIFY_CLIENT_ID=abc123
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``breaker_failure_threshold`` maps to env var
# ``BREAKER_FAILURE_THRESHOLD``.  Defaults apply when neither is set.
#
# The cache TTL table is validated at construction: a "taken" verdict must
# outlive an "available" one, which must outlive an "uncertain" one, and
# easter eggs are never cached.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from name_verifier.models.verification import VerificationStatus


class Settings(BaseSettings):
    """Name verifier settings.

    Environment variables override defaults. Loaded from .env when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Sources ===
    # Order here is the order sources are queried and reported.
    enabled_sources: list[str] = ["spotify", "itunes", "musicbrainz", "bandcamp", "famous"]
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    musicbrainz_app_name: str = "name-verifier"
    musicbrainz_app_version: str = "0.1.0"
    musicbrainz_contact: str = ""
    itunes_country: str = "US"

    # === Per-source timeouts (seconds) ===
    spotify_timeout_seconds: float = 8.0
    itunes_timeout_seconds: float = 6.0
    musicbrainz_timeout_seconds: float = 10.0
    bandcamp_timeout_seconds: float = 10.0
    famous_timeout_seconds: float = 1.0

    # === Retries ===
    source_retry_attempts: int = 1
    source_retry_backoff_seconds: float = 0.5

    # === Circuit breaker ===
    breaker_failure_threshold: int = 3
    breaker_recovery_timeout_seconds: float = 30.0
    breaker_success_threshold: int = 2
    breaker_monitoring_window_seconds: float = 60.0

    # === Concurrency / timeouts ===
    max_concurrent_source_calls: int = 3
    batch_chunk_size: int = 3
    request_timeout_seconds: float = 30.0

    # === Decision policy ===
    # When every source fails: False -> "uncertain", True -> low-confidence
    # "available".  Both carry aggregation quality "low".
    fail_open_on_total_failure: bool = False
    taken_confidence_threshold: float = 0.75
    high_reliability_threshold: float = 0.9

    # === Result cache TTLs (seconds) ===
    ttl_taken_seconds: int = 7200
    ttl_famous_artist_seconds: int = 7200
    ttl_available_seconds: int = 3600
    ttl_similar_seconds: int = 1800
    ttl_uncertain_seconds: int = 600
    ttl_error_seconds: int = 300
    ttl_easter_egg_seconds: int = 0

    # === Result cache ===
    cache_max_entries: int = 10000
    cache_sweep_interval_seconds: float = 600.0

    # === Request deduplication ===
    dedup_window_seconds: float = 2.0
    dedup_max_entries: int = 1000

    # === Reference data ===
    reference_data_path: str = ""

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_ttl_ordering(self) -> "Settings":
        if self.ttl_easter_egg_seconds != 0:
            raise ValueError("ttl_easter_egg_seconds must be 0; easter eggs are never cached")
        if not (
            self.ttl_taken_seconds
            > self.ttl_available_seconds
            > self.ttl_uncertain_seconds
            >= self.ttl_easter_egg_seconds
        ):
            raise ValueError("cache TTLs must satisfy taken > available > uncertain >= easter egg")
        if self.max_concurrent_source_calls < 1:
            raise ValueError("max_concurrent_source_calls must be >= 1")
        return self

    def ttl_table(self) -> dict[str, int]:
        """Return the cache TTL per decision outcome.

        Keys are the :class:`VerificationStatus` values plus ``"famous"``,
        ``"error"`` and ``"easter_egg"``.
        """
        return {
            VerificationStatus.TAKEN.value: self.ttl_taken_seconds,
            VerificationStatus.AVAILABLE.value: self.ttl_available_seconds,
            VerificationStatus.SIMILAR.value: self.ttl_similar_seconds,
            VerificationStatus.UNCERTAIN.value: self.ttl_uncertain_seconds,
            "famous": self.ttl_famous_artist_seconds,
            "error": self.ttl_error_seconds,
            "easter_egg": self.ttl_easter_egg_seconds,
        }

    def source_timeouts(self) -> dict[str, float]:
        return {
            "spotify": self.spotify_timeout_seconds,
            "itunes": self.itunes_timeout_seconds,
            "musicbrainz": self.musicbrainz_timeout_seconds,
            "bandcamp": self.bandcamp_timeout_seconds,
            "famous": self.famous_timeout_seconds,
        }

    def has_spotify_credentials(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)
