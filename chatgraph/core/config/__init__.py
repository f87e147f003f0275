"""Configuration module."""

from chatgraph.core.config.loader import load_config
from chatgraph.core.config.schema import Config

__all__ = ["Config", "load_config"]
