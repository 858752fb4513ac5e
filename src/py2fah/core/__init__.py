"""
Core layer for FAH client communication.

This package contains the connection, message framing and PyON decoding
used to talk to a FAH client's command port.
"""

from .errors import (
    FAHError,
    ConnectError,
    InvalidCommandError,
    ProtocolError,
    FormatError,
    ValidationError,
    ConfigurationError,
    ErrorCodes,
)
from .socket_reader import END_OF_MESSAGE, read_message
from .tcp_connection import (
    CommandChannel,
    FAHConnection,
    exec_command,
    exec_eval,
)
from .pyon_protocol import (
    PyONDecoder,
    decode_log_update,
    decode_pyon,
    decode_pyon_string,
    rewrite_literals,
)
from .command_codes import LogUpdatesArg

__all__ = [
    'FAHError',
    'ConnectError',
    'InvalidCommandError',
    'ProtocolError',
    'FormatError',
    'ValidationError',
    'ConfigurationError',
    'ErrorCodes',
    'END_OF_MESSAGE',
    'read_message',
    'CommandChannel',
    'FAHConnection',
    'exec_command',
    'exec_eval',
    # PyON decoding
    'PyONDecoder',
    'decode_log_update',
    'decode_pyon',
    'decode_pyon_string',
    'rewrite_literals',
    'LogUpdatesArg',
]
