"""Configuration module -- exports Settings and load_config."""

from coteacher.config.loader import load_config
from coteacher.config.settings import Settings

__all__ = ["Settings", "load_config"]
