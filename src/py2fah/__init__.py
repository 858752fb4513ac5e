# py2fah package
"""Client library for the Folding@home client command port."""

__version__ = "0.1.0"

from .core.errors import (
    FAHError,
    ConnectError,
    InvalidCommandError,
    ProtocolError,
    FormatError,
    ValidationError,
    ConfigurationError,
)
from .core.tcp_connection import FAHConnection
from .core.pyon_protocol import decode_pyon, decode_pyon_string, decode_log_update
from .core.command_codes import LogUpdatesArg
from .models.connection import DEFAULT_ADDR, DEFAULT_PORT, ConnectionConfig
from .services.fah_command_service import FAHCommandService

__all__ = [
    "FAHError",
    "ConnectError",
    "InvalidCommandError",
    "ProtocolError",
    "FormatError",
    "ValidationError",
    "ConfigurationError",
    "FAHConnection",
    "decode_pyon",
    "decode_pyon_string",
    "decode_log_update",
    "LogUpdatesArg",
    "DEFAULT_ADDR",
    "DEFAULT_PORT",
    "ConnectionConfig",
    "FAHCommandService",
]
