"""Lexical and phonetic similarity between a candidate name and matches.

Three signals are computed on normalized names (see
``utils.text_normalizer.normalize_name``):

1. **Lexical** -- rapidfuzz ``token_sort_ratio``.  Token-level, so word
   order does not matter ("Cox Carl" == "Carl Cox").
2. **Phonetic** -- per-token Metaphone and Soundex codes from jellyfish,
   blended 0.7 / 0.3.  Equal Metaphone strings mean the names sound alike.
3. **Token overlap** -- Jaccard ratio of the token sets.

``overall_similarity`` is the lexical score when it is already an exact
match; otherwise the higher of the lexical score and the weighted blend
``0.4 * phonetic + 0.3 * lexical + 0.3 * token``, so a phonetic match can
lift a moderate lexical score but never drag a strong one down.

Match type thresholds:

    exact     lexical >= 0.97
    phonetic  phonetic codes equal AND lexical >= 0.6
    partial   token overlap >= 0.5
    fuzzy     lexical >= 0.3
    none      otherwise
"""

from __future__ import annotations

import jellyfish
from rapidfuzz import fuzz

from name_verifier.models.verification import (
    MatchType,
    PlatformMatch,
    SimilarityScore,
    UniquenessScore,
)
from name_verifier.services.uniqueness import UniquenessScorer
from name_verifier.utils.text_normalizer import normalize_name

EXACT_THRESHOLD = 0.97
PHONETIC_LEXICAL_FLOOR = 0.6
PARTIAL_TOKEN_OVERLAP = 0.5
FUZZY_THRESHOLD = 0.3

_PHONETIC_WEIGHT = 0.4
_LEXICAL_WEIGHT = 0.3
_TOKEN_WEIGHT = 0.3

_METAPHONE_SHARE = 0.7
_SOUNDEX_SHARE = 0.3


def phonetic_codes(name: str) -> tuple[str, str]:
    """Return ``(metaphone, soundex)`` codes for a name, token by token."""
    tokens = [t for t in normalize_name(name).split(" ") if t]
    metaphone = " ".join(jellyfish.metaphone(t) for t in tokens)
    soundex = " ".join(jellyfish.soundex(t) for t in tokens)
    return metaphone.strip(), soundex.strip()


def classify_match(lexical: float, phonetic_equal: bool, token_overlap: float) -> MatchType:
    if lexical >= EXACT_THRESHOLD:
        return MatchType.EXACT
    if phonetic_equal and lexical >= PHONETIC_LEXICAL_FLOOR:
        return MatchType.PHONETIC
    if token_overlap >= PARTIAL_TOKEN_OVERLAP:
        return MatchType.PARTIAL
    if lexical >= FUZZY_THRESHOLD:
        return MatchType.FUZZY
    return MatchType.NONE


class SimilarityScorer:
    """Scores candidate names against matches, and on their own.

    Parameters
    ----------
    uniqueness_scorer:
        Used by :meth:`score_uniqueness`.  A default scorer without
        genre vocabulary is created when omitted.
    """

    def __init__(self, uniqueness_scorer: UniquenessScorer | None = None) -> None:
        self._uniqueness = uniqueness_scorer or UniquenessScorer()

    def compare(self, candidate: str, match_name: str, source_id: str | None = None) -> SimilarityScore:
        """Score a single candidate-vs-match pair."""
        a = normalize_name(candidate)
        b = normalize_name(match_name)
        if not a or not b:
            return SimilarityScore(
                match_name=match_name,
                source_id=source_id,
                overall_similarity=0.0,
                phonetic_similarity=0.0,
                edit_distance=1.0,
                token_similarity=0.0,
                confidence=0.0,
                match_type=MatchType.NONE,
            )

        lexical = fuzz.token_sort_ratio(a, b) / 100.0

        tokens_a = set(a.split(" "))
        tokens_b = set(b.split(" "))
        token_overlap = len(tokens_a & tokens_b) / len(tokens_a | tokens_b)

        meta_a, sx_a = phonetic_codes(candidate)
        meta_b, sx_b = phonetic_codes(match_name)
        phonetic_equal = bool(meta_a) and meta_a == meta_b
        phonetic = (
            _METAPHONE_SHARE * fuzz.ratio(meta_a, meta_b) / 100.0
            + _SOUNDEX_SHARE * fuzz.token_sort_ratio(sx_a, sx_b) / 100.0
        )

        if lexical >= EXACT_THRESHOLD:
            overall = lexical
        else:
            blend = (
                _PHONETIC_WEIGHT * phonetic
                + _LEXICAL_WEIGHT * lexical
                + _TOKEN_WEIGHT * token_overlap
            )
            overall = max(lexical, blend)

        overall = min(1.0, overall)
        return SimilarityScore(
            match_name=match_name,
            source_id=source_id,
            overall_similarity=overall,
            phonetic_similarity=min(1.0, phonetic),
            edit_distance=max(0.0, 1.0 - lexical),
            token_similarity=token_overlap,
            confidence=overall,
            match_type=classify_match(lexical, phonetic_equal, token_overlap),
        )

    def score(self, candidate: str, matches: list[PlatformMatch]) -> list[SimilarityScore]:
        """Score *candidate* against every match, in input order."""
        return [self.compare(candidate, m.name, m.source_id) for m in matches]

    def score_uniqueness(self, candidate: str, genre: str | None = None) -> UniquenessScore:
        return self._uniqueness.score(candidate, genre=genre)
