"""Configuration module for moverec."""

from .models import MoveRecConfig, load_config, save_config

__all__ = ["MoveRecConfig", "load_config", "save_config"]
