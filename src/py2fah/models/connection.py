"""
Connection models for py2fah.

This module provides data structures for describing and observing the
command connection to a FAH client.

Classes:
    ConnectionConfig: Immutable configuration for a connection
    ConnectionState: Lifecycle state of a connection
    CommandPhase: Progress of the command currently on the wire
    ConnectionStatus: Snapshot of a connection's state
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 36330

# Default command address of a local FAH client
DEFAULT_ADDR = f":{DEFAULT_PORT}"


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Immutable configuration for a FAH command connection.

    Attributes:
        host: Host name or IP address of the FAH client
        port: Command port (default: 36330)
        connect_timeout: Seconds allowed for dialing and the welcome banner
        io_timeout: Transport deadline for each read/write once connected
                    (None = block indefinitely)

    Example:
        >>> config = ConnectionConfig.from_address("192.168.1.10:36330")
        >>> valid, errors = config.validate()
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_timeout: Optional[float] = 2.0
    io_timeout: Optional[float] = None

    @property
    def address(self) -> str:
        """Address in host:port form."""
        return f"{self.host}:{self.port}"

    @classmethod
    def from_address(cls, address: str, **kwargs) -> 'ConnectionConfig':
        """
        Build a config from a "host:port" string.

        An empty host (":36330") means localhost, and a bare port number
        ("36330") is accepted as well.

        Raises:
            ValueError: If the port part is not a number
        """
        if not isinstance(address, str) or not address:
            raise ValueError(f"Invalid address: {address!r}")

        if address.isdigit():
            return cls(host=DEFAULT_HOST, port=int(address), **kwargs)

        if ":" not in address:
            return cls(host=address, **kwargs)

        p = address.rindex(":")
        host, port_text = address[:p], address[p + 1:]
        if not port_text.isdigit():
            raise ValueError(f"Invalid port in address: {address!r}")
        return cls(host=host or DEFAULT_HOST, port=int(port_text), **kwargs)

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the connection configuration.

        Returns:
            Tuple of (is_valid, list_of_error_messages)
        """
        errors = []

        if not isinstance(self.host, str) or not self.host.strip():
            errors.append(f"Invalid host: {self.host!r}")

        if not isinstance(self.port, int) or isinstance(self.port, bool):
            errors.append(f"Port must be an integer, got {type(self.port).__name__}")
        elif not (1 <= self.port <= 65535):
            errors.append(f"Port out of range (1-65535): {self.port}")

        for name in ("connect_timeout", "io_timeout"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(f"{name} must be a number, got {type(value).__name__}")
            elif value <= 0:
                errors.append(f"{name} must be positive: {value}")

        return (len(errors) == 0, errors)


class ConnectionState(Enum):
    """
    Lifecycle states of a connection.

    States:
        DISCONNECTED: No transport is open
        CONNECTING: Dialing and reading the welcome banner
        CONNECTED: Ready to execute commands
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class CommandPhase(Enum):
    """Progress of a single command while connected."""

    IDLE = "idle"
    SENDING = "sending"
    AWAITING_BOUNDARY = "awaiting_boundary"


@dataclass
class ConnectionStatus:
    """
    Snapshot of a connection's status.

    Attributes:
        state: Current connection state
        host: Host if connected, None otherwise
        port: Port if connected, None otherwise
        connected_at: When the current transport was established
        reconnects: Number of silent reconnections performed
        last_error: Last error message, if any
    """

    state: ConnectionState
    host: Optional[str] = None
    port: Optional[int] = None
    connected_at: Optional[datetime] = None
    reconnects: int = 0
    last_error: Optional[str] = None
