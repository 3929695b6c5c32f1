"""
Configuration module - Settings loaded from the environment.
"""

from common.config.base_settings import Settings

__all__ = ["Settings"]
