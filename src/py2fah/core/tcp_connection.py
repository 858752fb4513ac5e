"""
TCP connection management for the FAH client command port.

This module owns the socket to the FAH client and implements the two
primitive operations every remote command is built on: execute a command
and execute a command through ``eval``.

Two layers are provided:
- Raw: CommandChannel plus exec_command()/exec_eval(). No locking, no
  reconnection; an end of stream surfaces directly as ProtocolError.
- Session: FAHConnection. Serializes commands behind a lock and silently
  redials the stored address when the client closes the stream mid-read.
"""

import socket
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Tuple

from py2fah.models.connection import (
    CommandPhase,
    ConnectionConfig,
    ConnectionState,
    ConnectionStatus,
)
from .errors import (
    ConnectError,
    ErrorCodes,
    InvalidCommandError,
    ProtocolError,
)
from .socket_reader import read_message

logger = logging.getLogger(__name__)

# The client echoes a trailing backslash when eval output ends in "\n"
EVAL_TEMPLATE = 'eval "$({command})\\n"'


class CommandChannel:
    """
    An open command socket whose welcome banner has been consumed.

    Example:
        >>> channel = CommandChannel.open(ConnectionConfig())
        >>> exec_command(channel, "num-slots")
        b'PyON 1 num-slots\\n1\\n---'
        >>> channel.close()
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.reader = sock.makefile("rb")
        self.phase = CommandPhase.IDLE

    @classmethod
    def open(cls, config: ConnectionConfig) -> 'CommandChannel':
        """
        Dial the FAH client and discard its welcome banner.

        Raises:
            ConnectError: If the socket cannot be opened or the banner read fails
        """
        try:
            sock = socket.create_connection(
                (config.host, config.port), timeout=config.connect_timeout
            )
        except OSError as e:
            code = (ErrorCodes.CONNECTION_TIMEOUT if isinstance(e, socket.timeout)
                    else ErrorCodes.CONNECTION_REFUSED)
            raise ConnectError(
                f"Could not connect to FAH client at {config.address}",
                address=config.address,
                error_code=code,
                cause=e,
                suggestions=[
                    "Check that FAHClient is running",
                    f"Check that command port {config.port} accepts connections from this host",
                ]
            ) from e

        channel = cls(sock)
        try:
            banner = read_message(channel.reader)
        except (ProtocolError, OSError) as e:
            channel.close()
            raise ConnectError(
                f"Failed to read welcome message from {config.address}",
                address=config.address,
                error_code=ErrorCodes.WELCOME_READ_FAILED,
                cause=e
            ) from e

        logger.debug(f"Discarded {len(banner)} byte welcome message")
        sock.settimeout(config.io_timeout)
        return channel

    def send_line(self, command: str) -> None:
        """Write command text terminated by a single newline."""
        self.phase = CommandPhase.SENDING
        try:
            self.sock.sendall(command.encode("utf-8") + b"\n")
        except OSError:
            self.phase = CommandPhase.IDLE
            raise

    def read_message(self) -> bytes:
        """Read one reply up to the next prompt."""
        self.phase = CommandPhase.AWAITING_BOUNDARY
        try:
            return read_message(self.reader)
        finally:
            self.phase = CommandPhase.IDLE

    def set_timeout(self, timeout: Optional[float]) -> None:
        """
        Apply a transport deadline to subsequent reads and writes.

        After a read times out the buffered reader refuses further reads,
        so the channel has to be reopened.
        """
        self.sock.settimeout(timeout)

    def close(self) -> None:
        """Close the reader and the socket."""
        try:
            self.reader.close()
        finally:
            self.sock.close()


def _check_command(command: str) -> None:
    if "\n" in command:
        raise InvalidCommandError(
            "Command contains newline",
            command=command,
            error_code=ErrorCodes.INVALID_COMMAND
        )


def exec_command(channel: CommandChannel, command: str) -> bytes:
    """
    Send a command and return the reply.

    An empty command is answered locally with b"" because the FAH client
    does not reply to empty input.

    Raises:
        InvalidCommandError: If command contains a newline
        ProtocolError: If the stream ends before the reply is complete
        OSError: On transport failure
    """
    if command == "":
        return b""

    _check_command(command)

    channel.send_line(command)
    return channel.read_message()


def exec_eval(channel: CommandChannel, command: str) -> bytes:
    """
    Execute a command through ``eval`` so its output keeps a trailing newline.

    Used for commands whose output would otherwise run into the prompt.

    Raises:
        Same as exec_command()
    """
    if command == "":
        return b""

    _check_command(command)

    result = exec_command(channel, EVAL_TEMPLATE.format(command=command))
    if result.endswith(b"\\"):
        result = result[:-1]
    return result


class FAHConnection:
    """
    Session with one FAH client.

    At most one command is on the wire at any time: the lock is held for
    the whole write + read round trip and while the socket is replaced
    during reconnection.

    If the client closes the stream while a reply is awaited, the session
    closes the socket, redials the stored address, discards the new welcome
    banner and then re-raises the ProtocolError. The failed command is not
    replayed; retrying is the caller's decision.

    There is no internal timeout. Use ConnectionConfig.io_timeout or
    set_timeout() to bound blocking reads.

    Example:
        >>> with FAHConnection.dial(":36330") as connection:
        ...     connection.execute("pause")
    """

    def __init__(self, config: Optional[ConnectionConfig] = None):
        """
        Initialize a disconnected session.

        Args:
            config: Connection settings (default: localhost:36330)
        """
        self.config = config or ConnectionConfig()
        self._channel: Optional[CommandChannel] = None
        self._lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._connected_at: Optional[datetime] = None
        self._reconnects = 0
        self._last_error: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    @classmethod
    def dial(cls, address: str, **kwargs) -> 'FAHConnection':
        """
        Connect to a "host:port" address and return the open session.

        Args:
            address: Address such as "192.168.1.10:36330" or ":36330"
            **kwargs: Extra ConnectionConfig fields (connect_timeout, io_timeout)
        """
        connection = cls(ConnectionConfig.from_address(address, **kwargs))
        connection.connect()
        return connection

    def connect(self) -> 'FAHConnection':
        """
        Open the transport and discard the welcome banner.

        Returns:
            self, to allow chaining

        Raises:
            ValueError: If the configuration is invalid
            ConnectError: If the client cannot be reached
        """
        valid, errors = self.config.validate()
        if not valid:
            raise ValueError(f"Invalid connection configuration: {', '.join(errors)}")

        with self._lock:
            if self._channel is not None:
                self.logger.warning("Already connected. Disconnecting first.")
                self._close_unsafe()

            self.logger.info(f"Connecting to FAH client at {self.config.address}")
            self._state = ConnectionState.CONNECTING
            try:
                self._channel = CommandChannel.open(self.config)
            except ConnectError as e:
                self._state = ConnectionState.DISCONNECTED
                self._last_error = e.message
                self.logger.error(f"Connection failed: {e.message}")
                raise

            self._state = ConnectionState.CONNECTED
            self._connected_at = datetime.now()
            self.logger.info(f"Connected to {self.config.address}")
        return self

    def execute(self, command: str) -> bytes:
        """
        Execute a command and return the raw reply bytes.

        Args:
            command: Command text without newline

        Returns:
            Reply bytes before the next prompt (b"" for an empty command)

        Raises:
            InvalidCommandError: If command contains a newline
            ProtocolError: If the client closed the stream mid-reply
                           (the session has reconnected)
            ConnectError: If not connected, or reconnecting failed
            OSError: On other transport failures
        """
        if command == "":
            return b""
        _check_command(command)
        return self._run(exec_command, command)

    def execute_eval(self, command: str) -> bytes:
        """
        Execute a command wrapped in ``eval`` and return the reply bytes.

        Raises:
            Same as execute()
        """
        if command == "":
            return b""
        _check_command(command)
        return self._run(exec_eval, command)

    @contextmanager
    def exclusive(self):
        """
        Hold the session for a sequence of commands.

        Commands issued by other threads wait until the block exits.
        Commands issued inside the block by the same thread run normally.

        Example:
            >>> with connection.exclusive():
            ...     connection.execute("log-updates start")
            ...     reply = connection.execute_eval("eval")
        """
        with self._lock:
            yield self

    def _run(self, executor, command: str) -> bytes:
        with self._lock:
            if self._channel is None:
                raise ConnectError(
                    "Not connected to FAH client",
                    address=self.config.address,
                    error_code=ErrorCodes.NOT_CONNECTED
                )

            self.logger.debug(f"Executing {command!r}")
            try:
                return executor(self._channel, command)
            except ProtocolError as e:
                self._last_error = e.message
                self._reconnect_unsafe(e)
                raise

    def _reconnect_unsafe(self, cause: ProtocolError) -> None:
        """
        Replace the socket after the client closed it. Caller holds the lock.

        Raises:
            ConnectError: If redialing fails (the session is left disconnected)
        """
        self._close_unsafe()
        self._state = ConnectionState.CONNECTING
        try:
            self._channel = CommandChannel.open(self.config)
        except ConnectError as e:
            self._state = ConnectionState.DISCONNECTED
            self._last_error = e.message
            self.logger.error(f"Reconnection to {self.config.address} failed: {e.message}")
            raise ConnectError(
                f"Lost connection to {self.config.address} and could not reconnect",
                address=self.config.address,
                error_code=ErrorCodes.RECONNECT_FAILED,
                cause=e
            ) from cause

        self._state = ConnectionState.CONNECTED
        self._connected_at = datetime.now()
        self._reconnects += 1
        self.logger.warning(f"Reconnected to {self.config.address} due to end of stream")

    def set_timeout(self, timeout: Optional[float]) -> None:
        """
        Set a transport deadline for subsequent reads and writes.

        A command that exceeds it raises socket.timeout (an OSError).
        Reconnections keep using ConnectionConfig.io_timeout.
        """
        with self._lock:
            if self._channel is None:
                raise ConnectError(
                    "Not connected to FAH client",
                    address=self.config.address,
                    error_code=ErrorCodes.NOT_CONNECTED
                )
            self._channel.set_timeout(timeout)

    def close(self) -> None:
        """
        Close the connection. Safe to call multiple times.
        """
        with self._lock:
            self._close_unsafe()

    def _close_unsafe(self) -> None:
        """Internal close without locking (called when lock is already held)."""
        if self._channel is not None:
            try:
                self._channel.close()
                self.logger.info(f"Closed connection to {self.config.address}")
            except OSError as e:
                self.logger.error(f"Error closing command socket: {e}")
            finally:
                self._channel = None

        self._state = ConnectionState.DISCONNECTED
        self._connected_at = None

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def command_phase(self) -> CommandPhase:
        """Progress of the command currently being executed."""
        channel = self._channel
        return channel.phase if channel is not None else CommandPhase.IDLE

    def is_connected(self) -> bool:
        """Check whether a transport is open."""
        return self._state is ConnectionState.CONNECTED

    def get_connection_info(self) -> Tuple[Optional[str], Optional[int]]:
        """
        Get current connection information.

        Returns:
            Tuple of (host, port) or (None, None) if not connected
        """
        if self.is_connected():
            return self.config.host, self.config.port
        return None, None

    def get_status(self) -> ConnectionStatus:
        """Snapshot of the connection state."""
        host, port = self.get_connection_info()
        return ConnectionStatus(
            state=self._state,
            host=host,
            port=port,
            connected_at=self._connected_at,
            reconnects=self._reconnects,
            last_error=self._last_error
        )

    def __enter__(self) -> 'FAHConnection':
        if self._channel is None:
            self.connect()
        return self

    def __exit__(self, *excinfo) -> bool:
        self.close()
        return False

