"""Offline uniqueness scoring for candidate names.

Starts every name at 1.0 and adjusts it:

- ``-0.2`` per common dictionary / cliché music word ("love", "fire", ...)
- ``+0.1`` for names of 15 characters or more
- ``+0.3`` for 3+ word names containing at least two uncommon words
  longer than six characters
- ``+0.4 / word_count`` per unusual or technical term
- ``+0.15 / word_count`` per word from the requested genre's vocabulary

The result is clamped to [0, 1] and bucketed into a recommendation.  No
network access is involved, so this is always computable.
"""

from __future__ import annotations

from name_verifier.config.loader import ReferenceData
from name_verifier.models.verification import (
    UniquenessFactors,
    UniquenessRecommendation,
    UniquenessScore,
    WordAnalysis,
)

COMMON_WORDS = frozenset({
    "the", "and", "of", "to", "a", "in", "for", "is", "on", "that", "by", "this", "with", "i",
    "you", "it", "not", "or", "be", "are", "from", "at", "as", "your", "all", "any", "can",
    "had", "her", "was", "one", "our", "out", "day", "get", "has", "him", "his", "how", "man",
    "new", "now", "old", "see", "two", "way", "who", "boy", "did", "its", "let", "put", "say",
    "she", "too", "use", "but", "up", "time", "if", "no", "will", "so", "what", "there", "we",
    "may", "each", "which", "do", "their", "they", "go", "come",
    "music", "song", "band", "rock", "love", "life", "world", "night", "heart", "soul", "fire",
    "light", "dream", "sky", "star", "moon", "sun", "sound", "beat", "rhythm",
})

UNUSUAL_TERMS = frozenset({
    "amplitude", "temporal", "theremin", "bagpipes", "catastrophe", "fumbling", "navigating",
    "juggling", "robots", "ninjas", "kazoo", "elephants", "disappearing", "spinning", "ukulele",
    "clumsy", "sneaky", "twisted", "indigo", "eternal", "recorder", "accordion", "kaleidoscope",
    "velociraptor", "quantum", "nebula", "crystalline", "algorithmic", "synthetic", "polymorphic",
    "fractal", "holographic", "kinetic", "metamorphosis", "labyrinth", "constellation",
    "titanium", "chromatic", "ethereal", "luminescent", "magnetic", "electric", "atomic",
    "cosmic", "galactic", "dimensional", "parallax", "serendipity",
})

TECHNICAL_TERMS = frozenset({
    "synthesizer", "oscillator", "frequency", "harmonic", "resonance", "modulation",
    "distortion", "reverb", "delay", "chorus", "phaser", "flanger", "compressor", "equalizer",
    "amplifier", "vocoder", "sampler", "sequencer", "arpeggiator", "envelope", "filter", "midi",
    "analog", "digital", "stereo", "mono", "overdrive", "sustain", "attack", "decay", "release",
    "waveform", "timbre", "pitch", "octave",
})

_COMMON_WORD_PENALTY = 0.2
_LENGTH_BONUS = 0.1
_COMPLEXITY_BONUS = 0.3
_UNUSUAL_TERM_BONUS = 0.4
_GENRE_RELEVANCE_BONUS = 0.15

_LONG_NAME_LENGTH = 15
_UNUSUAL_WORD_LENGTH = 6
_COMPLEX_WORD_COUNT = 3


def _recommendation(score: float) -> UniquenessRecommendation:
    if score >= 0.8:
        return UniquenessRecommendation.VERY_UNIQUE
    if score >= 0.6:
        return UniquenessRecommendation.UNIQUE
    if score >= 0.4:
        return UniquenessRecommendation.SOMEWHAT_UNIQUE
    if score >= 0.2:
        return UniquenessRecommendation.COMMON
    return UniquenessRecommendation.VERY_COMMON


class UniquenessScorer:
    """Scores how distinctive a name is on its own.

    ``reference_data`` supplies genre vocabulary for the genre bonus; it is
    optional because the other factors need no external data.
    """

    def __init__(self, reference_data: ReferenceData | None = None) -> None:
        self._reference = reference_data

    def score(self, name: str, genre: str | None = None) -> UniquenessScore:
        words = [w for w in name.lower().split() if w]
        if not words:
            return UniquenessScore(score=0.0, recommendation=UniquenessRecommendation.VERY_COMMON)

        common = [w for w in words if w in COMMON_WORDS]
        unusual: list[str] = []
        technical: list[str] = []
        genre_terms: list[str] = []

        common_penalty = _COMMON_WORD_PENALTY * len(common)
        length_bonus = _LENGTH_BONUS if len(name) >= _LONG_NAME_LENGTH else 0.0

        complexity_bonus = 0.0
        if len(words) >= _COMPLEX_WORD_COUNT:
            uncommon = [w for w in words if w not in COMMON_WORDS and len(w) > _UNUSUAL_WORD_LENGTH]
            if len(uncommon) >= 2:
                complexity_bonus = _COMPLEXITY_BONUS
                unusual.extend(uncommon)

        unusual_bonus = 0.0
        per_word = _UNUSUAL_TERM_BONUS / len(words)
        for word in words:
            # Substring match in either direction: "ukuleles" contains "ukulele".
            if any(term in word or (len(word) > 3 and word in term) for term in UNUSUAL_TERMS):
                unusual_bonus += per_word
                if word not in unusual:
                    unusual.append(word)
            if word in TECHNICAL_TERMS or any(term in word for term in TECHNICAL_TERMS):
                unusual_bonus += per_word
                technical.append(word)

        genre_bonus = 0.0
        if genre and self._reference is not None:
            vocabulary = set(self._reference.thematic_words(genre.lower()))
            for word in words:
                if word in vocabulary:
                    genre_terms.append(word)
                    genre_bonus += _GENRE_RELEVANCE_BONUS / len(words)

        raw = 1.0 - common_penalty + length_bonus + complexity_bonus + unusual_bonus + genre_bonus
        score = max(0.0, min(1.0, raw))

        return UniquenessScore(
            score=score,
            factors=UniquenessFactors(
                common_word_penalty=common_penalty,
                length_bonus=length_bonus,
                complexity_bonus=complexity_bonus,
                unusual_term_bonus=unusual_bonus,
                genre_relevance_bonus=genre_bonus,
            ),
            word_analysis=WordAnalysis(
                total_words=len(words),
                common_words=common,
                unusual_words=unusual,
                technical_terms=technical,
                genre_terms=genre_terms,
            ),
            recommendation=_recommendation(score),
        )
