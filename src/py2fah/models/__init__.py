"""
Data models for py2fah.

This package contains the connection settings and the typed records
decoded from FAH client replies.
"""

from .connection import (
    DEFAULT_ADDR,
    DEFAULT_HOST,
    DEFAULT_PORT,
    CommandPhase,
    ConnectionConfig,
    ConnectionState,
    ConnectionStatus,
)

from .base import RecordModel

from .options import Options, Power

from .slot import (
    SimulationInfo,
    SlotInfo,
    SlotOptions,
    SlotQueueInfo,
)

from .info import (
    BuildInfo,
    ClientInfo,
    Info,
    SystemInfo,
)

__all__ = [
    'DEFAULT_ADDR',
    'DEFAULT_HOST',
    'DEFAULT_PORT',
    'CommandPhase',
    'ConnectionConfig',
    'ConnectionState',
    'ConnectionStatus',
    'RecordModel',
    'Options',
    'Power',
    'SimulationInfo',
    'SlotInfo',
    'SlotOptions',
    'SlotQueueInfo',
    'BuildInfo',
    'ClientInfo',
    'Info',
    'SystemInfo',
]
