"""Configuration module -- exports Settings and the reference-data loader."""

from name_verifier.config.loader import ReferenceData, load_reference_data
from name_verifier.config.settings import Settings

__all__ = ["ReferenceData", "Settings", "load_reference_data"]
