"""
Services for py2fah.

This package contains the FAH command catalogue and settings loading.
"""

from .fah_command_service import FAHCommandService
from .configuration_service import (
    ClientSettings,
    load_settings,
    setup_logging,
)

__all__ = [
    'FAHCommandService',
    'ClientSettings',
    'load_settings',
    'setup_logging',
]
