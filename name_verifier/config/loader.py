"""YAML reference-data loader.

# ─── REFERENCE DATA LAYERS ────────────────────────────────────────────
#
# Reference data is loaded in layers (later layers override earlier):
#
#   1. name_verifier/data/reference_data.yaml -- bundled defaults
#   2. Settings.reference_data_path            -- optional local file
#
# The _deep_merge helper merges dicts recursively and replaces lists:
#   base      = {"famous_artists": {"rock": [...]}}
#   overrides = {"famous_artists": {"hip_hop": [...]}}
#   result    = {"famous_artists": {"rock": [...], "hip_hop": [...]}}
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from name_verifier.utils.logging import get_logger

_BUNDLED_PATH = Path(__file__).resolve().parent.parent / "data" / "reference_data.yaml"

_logger = get_logger(__name__)


@dataclass(frozen=True)
class ReferenceData:
    """Static name lists used by shortcuts, the famous source and suggestions.

    Attributes
    ----------
    easter_egg_names:
        Lowercased names answered with the easter-egg result.
    famous_artists:
        Lowercased famous names across every category.
    famous_categories:
        The same names grouped by category, as listed in the YAML.
    themes:
        Theme name -> thematic words used for alternative-name suggestions.
    theme_keywords:
        Theme name -> keywords that put a name into that theme.
    connectors / musical_suffixes:
        Glue words for multi-word suggestions.
    """

    easter_egg_names: frozenset[str] = frozenset()
    famous_artists: frozenset[str] = frozenset()
    famous_categories: dict[str, tuple[str, ...]] = field(default_factory=dict)
    themes: dict[str, tuple[str, ...]] = field(default_factory=dict)
    theme_keywords: dict[str, tuple[str, ...]] = field(default_factory=dict)
    connectors: tuple[str, ...] = ()
    musical_suffixes: tuple[str, ...] = ()

    def is_easter_egg(self, name: str) -> bool:
        return name.strip().lower() in self.easter_egg_names

    def is_famous(self, name: str) -> bool:
        return name.strip().lower() in self.famous_artists

    def theme_for(self, name: str) -> str:
        """Return the first theme whose keywords appear in *name*."""
        lowered = name.lower()
        for theme, keywords in self.theme_keywords.items():
            if any(word in lowered for word in keywords):
                return theme
        return "emotional"

    def thematic_words(self, theme: str) -> tuple[str, ...]:
        return self.themes.get(theme) or self.themes.get("music", ())


def load_reference_data(path: str | None = None) -> ReferenceData:
    """Load bundled reference data, optionally overlaid with *path*.

    Args:
        path: Optional YAML file whose contents are deep-merged over the
              bundled defaults.  A missing file is logged and ignored.

    Returns:
        A frozen :class:`ReferenceData`.
    """
    raw = _read_yaml(_BUNDLED_PATH)
    if path:
        _deep_merge(raw, _read_yaml(Path(path)))

    categories = {
        str(category): tuple(str(n).strip().lower() for n in names or [])
        for category, names in (raw.get("famous_artists") or {}).items()
    }
    famous = frozenset(name for names in categories.values() for name in names)
    easter = frozenset(str(n).strip().lower() for n in raw.get("easter_egg_names") or [])

    thematic = raw.get("thematic_words") or {}
    data = ReferenceData(
        easter_egg_names=easter,
        famous_artists=famous,
        famous_categories=categories,
        themes={k: tuple(v or []) for k, v in (thematic.get("themes") or {}).items()},
        theme_keywords={
            k: tuple(v or []) for k, v in (thematic.get("theme_keywords") or {}).items()
        },
        connectors=tuple(thematic.get("connectors") or []),
        musical_suffixes=tuple(thematic.get("musical_suffixes") or []),
    )

    _logger.debug(
        "reference_data_loaded",
        easter_eggs=len(data.easter_egg_names),
        famous=len(data.famous_artists),
        themes=len(data.themes),
    )
    return data


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        _logger.warning("reference_data_missing", path=str(path))
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
