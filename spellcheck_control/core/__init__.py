"""Spellcheck Control Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from spellcheck_control.core.config import ConfigManager
    from spellcheck_control.core.logging import Logger, get_logger
    from spellcheck_control.core import constants
"""

from spellcheck_control.core import config, constants, logging

__all__ = [
    "config",
    "constants",
    "logging",
]
