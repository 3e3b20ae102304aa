"""Constant-time shortcuts checked before any network work.

Two kinds of names never need the source fan-out:

- **Easter eggs** -- "NameJam" in any spelling that reduces to the same
  letters, plus names listed under ``easter_egg_names`` in the reference
  data.  Always ``available`` with a fixed message; never cached.
- **Famous artists** -- names on the famous-artist list are ``taken`` with
  very-high confidence and cached with the famous TTL.
"""

from __future__ import annotations

from dataclasses import dataclass

from name_verifier.config.loader import ReferenceData
from name_verifier.models.verification import (
    NameType,
    VerificationOptions,
    VerificationResult,
)
from name_verifier.services.decision_engine import DecisionEngine
from name_verifier.services.result_builder import ResultBuilder
from name_verifier.utils.logging import get_logger
from name_verifier.utils.text_normalizer import compact_letters

logger = get_logger(__name__)

_EASTER_EGG_LETTERS = "namejam"


@dataclass(frozen=True)
class ShortcutResult:
    """A shortcut verdict plus the TTL it should be cached with (0 = never)."""

    kind: str
    result: VerificationResult
    ttl_seconds: int


class ShortcutService:
    """Detects easter-egg and famous-artist names."""

    def __init__(
        self,
        reference_data: ReferenceData,
        decision_engine: DecisionEngine,
        result_builder: ResultBuilder,
    ) -> None:
        self._reference = reference_data
        self._engine = decision_engine
        self._builder = result_builder

    def is_easter_egg(self, name: str) -> bool:
        return compact_letters(name) == _EASTER_EGG_LETTERS or self._reference.is_easter_egg(name)

    def is_famous(self, name: str) -> bool:
        return self._reference.is_famous(name)

    def check(
        self,
        name: str,
        name_type: NameType,
        options: VerificationOptions | None = None,
    ) -> ShortcutResult | None:
        """Return a shortcut verdict for *name*, or ``None`` to verify normally."""
        options = options or VerificationOptions()

        if not options.skip_easter_eggs and self.is_easter_egg(name):
            decision = self._engine.easter_egg()
            logger.info("easter_egg_detected", name=name)
            return ShortcutResult(
                kind="easter_egg",
                result=self._builder.easter_egg(decision),
                ttl_seconds=decision.cache_ttl_seconds,
            )

        if not options.skip_famous_artists and self.is_famous(name):
            decision = self._engine.famous_artist(name)
            logger.info("famous_artist_detected", name=name, type=name_type.value)
            return ShortcutResult(
                kind="famous",
                result=self._builder.famous_artist(name, name_type, decision),
                ttl_seconds=decision.cache_ttl_seconds,
            )

        return None
