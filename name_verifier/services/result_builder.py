"""Builds the public :class:`VerificationResult` from a decision.

Everything here is presentation: the human-readable ``details`` text,
outbound search links for manual checking, and alternative-name
suggestions for ``taken`` / ``similar`` verdicts.  None of it feeds back
into the verdict itself.

Suggestions are deterministic per name: the random generator is seeded
with the lowercased name, so the same name always gets the same
alternatives and a cached result is byte-identical to a fresh one.
"""

from __future__ import annotations

import random
from urllib.parse import quote

from name_verifier.config.loader import ReferenceData
from name_verifier.models.verification import (
    AggregatedEvidence,
    Decision,
    DecisionReason,
    NameType,
    PlatformMatch,
    VerificationLink,
    VerificationResult,
    VerificationStatus,
)

MAX_SIMILAR_NAMES = 4
MAX_VERIFICATION_LINKS = 5
_MAX_GENRES = 2

EASTER_EGG_DETAILS = "We love you. Go to bed. <3"

_PLATFORM_DISPLAY_NAMES = {
    "spotify": "Spotify",
    "itunes": "Apple Music",
    "bandcamp": "Bandcamp",
    "musicbrainz": "MusicBrainz",
    "famous": "music database",
}


def platform_display_name(source_id: str) -> str:
    return _PLATFORM_DISPLAY_NAMES.get(source_id, source_id)


def search_links(name: str, name_type: NameType) -> list[VerificationLink]:
    """Standard manual-check links: Spotify, Google and Bandcamp or YouTube."""
    quoted = quote(f'"{name}"', safe="")
    quoted_typed = quote(f'"{name}" {name_type.value}', safe="")
    links = [
        VerificationLink(
            name="Spotify Search",
            url=f"https://open.spotify.com/search/{quoted}",
            source="Spotify",
        ),
        VerificationLink(
            name="Google Search",
            url=f"https://www.google.com/search?q={quoted_typed}",
            source="Google",
        ),
    ]
    if name_type is NameType.BAND:
        links.append(
            VerificationLink(
                name="Bandcamp Search",
                url=f"https://bandcamp.com/search?q={quoted}",
                source="Bandcamp",
            )
        )
    else:
        links.append(
            VerificationLink(
                name="YouTube Search",
                url=f"https://www.youtube.com/results?search_query={quoted}",
                source="YouTube",
            )
        )
    return links


class ResultBuilder:
    """Formats decisions into user-facing results.

    Parameters
    ----------
    reference_data:
        Thematic vocabulary for alternative-name suggestions.
    """

    def __init__(self, reference_data: ReferenceData) -> None:
        self._reference = reference_data

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def build(
        self,
        name: str,
        name_type: NameType,
        decision: Decision,
        evidence: AggregatedEvidence,
    ) -> VerificationResult:
        """Build the result for a decision made on live evidence."""
        similar_names = None
        if decision.status in (VerificationStatus.TAKEN, VerificationStatus.SIMILAR):
            similar_names = self.suggest_alternatives(name)

        return VerificationResult(
            status=decision.status,
            details=self._details(name_type, decision, evidence),
            similar_names=similar_names,
            verification_links=self._links(name, name_type, evidence),
            confidence=round(decision.confidence, 4),
            confidence_level=decision.confidence_level,
            aggregation_quality=evidence.aggregation_quality,
        )

    def easter_egg(self, decision: Decision) -> VerificationResult:
        return VerificationResult(
            status=decision.status,
            details=EASTER_EGG_DETAILS,
            verification_links=[],
            confidence=decision.confidence,
            confidence_level=decision.confidence_level,
        )

    def famous_artist(self, name: str, name_type: NameType, decision: Decision) -> VerificationResult:
        return VerificationResult(
            status=decision.status,
            details=(
                f"This is a famous {name_type.value} name with massive popularity. "
                "Try these alternatives:"
            ),
            similar_names=self.suggest_alternatives(name),
            verification_links=search_links(name, name_type),
            confidence=decision.confidence,
            confidence_level=decision.confidence_level,
        )

    def error(self, name: str, name_type: NameType, decision: Decision) -> VerificationResult:
        return VerificationResult(
            status=decision.status,
            details=(
                "Verification temporarily unavailable. "
                "Please verify manually using the links provided."
            ),
            verification_links=search_links(name, name_type),
            confidence=decision.confidence,
            confidence_level=decision.confidence_level,
        )

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def suggest_alternatives(self, name: str, count: int = MAX_SIMILAR_NAMES) -> list[str]:
        """Return up to *count* alternative names, never equal to *name*."""
        rng = random.Random(name.strip().lower())
        words = name.split()
        theme_words = list(self._reference.thematic_words(self._reference.theme_for(name)))
        connectors = list(self._reference.connectors)
        suffixes = list(self._reference.musical_suffixes)

        variations: list[str] = []
        if len(words) > 1:
            first, last = words[0], words[-1]
            if theme_words:
                variations.append(f"{_cap(rng.choice(theme_words))} {last}")
                variations.append(f"{first} {_cap(rng.choice(theme_words))}")
            if len(words) == 2 and connectors and theme_words:
                variations.append(
                    f"{first} {rng.choice(connectors)} {_cap(rng.choice(theme_words))}"
                )
        else:
            if theme_words:
                variations.append(f"{_cap(rng.choice(theme_words))} {name}")
                variations.append(f"{name} {_cap(rng.choice(theme_words))}")
            if suffixes:
                variations.append(f"{name} {rng.choice(suffixes)}")

        if name.lower().startswith("the ") and len(words) > 1:
            variations.append(" ".join(words[1:]))
        else:
            variations.append(f"The {name}")

        lowered = name.strip().lower()
        unique: list[str] = []
        for variation in variations:
            if variation.lower() != lowered and variation not in unique:
                unique.append(variation)
        return unique[:count]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _links(
        name: str, name_type: NameType, evidence: AggregatedEvidence
    ) -> list[VerificationLink]:
        links = search_links(name, name_type)
        seen = {link.url for link in links}
        for match in evidence.exact_matches + evidence.similar_matches:
            if len(links) >= MAX_VERIFICATION_LINKS:
                break
            if not match.url or match.url in seen:
                continue
            seen.add(match.url)
            links.append(
                VerificationLink(
                    name=f"{match.name} on {platform_display_name(match.source_id)}",
                    url=match.url,
                    source=platform_display_name(match.source_id),
                )
            )
        return links[:MAX_VERIFICATION_LINKS]

    def _details(
        self, name_type: NameType, decision: Decision, evidence: AggregatedEvidence
    ) -> str:
        kind = name_type.value
        if decision.status is VerificationStatus.TAKEN:
            if decision.primary_reason is DecisionReason.FAMOUS_ARTIST_MATCH:
                return f"This is a famous {kind} name with massive popularity. Try these alternatives:"
            top = evidence.exact_matches[0] if evidence.exact_matches else None
            if top is None:
                return f"This {kind} name is taken. Try these alternatives:"
            return f"{_describe_exact(kind, top)}. Try these alternatives:"

        if decision.status is VerificationStatus.SIMILAR:
            top = evidence.similar_matches[0] if evidence.similar_matches else None
            if top is None and evidence.exact_matches:
                top = evidence.exact_matches[0]
            platform = platform_display_name(top.source_id) if top else "music databases"
            if name_type is NameType.BAND:
                details = f"Similar band names found on {platform}"
                if top is not None and top.genres:
                    details += f" ({', '.join(top.genres[:_MAX_GENRES])})"
                return details + ". Consider these alternatives:"
            return (
                f"Similar song titles found on {platform} by various artists. "
                "Consider these alternatives:"
            )

        if decision.status is VerificationStatus.AVAILABLE:
            if decision.primary_reason is DecisionReason.PLATFORM_UNAVAILABLE:
                return (
                    "Verification temporarily limited due to platform availability. "
                    "Name appears to be available."
                )
            count = len(evidence.sources_succeeded)
            plural = "s" if count != 1 else ""
            return (
                f"No existing {kind} found with this name across "
                f"{count} music platform{plural}."
            )

        succeeded = len(evidence.sources_succeeded)
        total = len(evidence.sources_queried)
        if decision.primary_reason is DecisionReason.PLATFORM_UNAVAILABLE:
            return (
                f"Verification incomplete ({succeeded}/{total} platforms responded). "
                "Please verify manually using the links provided."
            )
        return (
            "Verification incomplete due to conflicting data. "
            "Please verify manually using the links provided."
        )


def _describe_exact(kind: str, match: PlatformMatch) -> str:
    platform = platform_display_name(match.source_id)
    details = f"This {kind} name exists on {platform}"
    if kind == NameType.SONG.value and match.artist:
        details += f" by {match.artist}"
    if match.genres:
        details += f" ({', '.join(match.genres[:_MAX_GENRES])})"
    if match.popularity:
        details += f". Popularity: {round(match.popularity)}/100"
    return details


def _cap(word: str) -> str:
    return word[:1].upper() + word[1:]
