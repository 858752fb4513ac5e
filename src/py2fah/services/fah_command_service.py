"""
Command service for the FAH client telnet API.

Each method formats one command, runs it on a FAHConnection and decodes
the reply. Arguments are checked before anything is sent so that caller
input can never change the shape of a command.
"""

import logging
from typing import Any, List, Optional, Union

from py2fah.core.command_codes import (
    ClientCommands,
    LogUpdatesArg,
    OptionCommands,
    QueryCommands,
    SlotCommands,
)
from py2fah.core.error_formatting import log_error
from py2fah.core.errors import (
    ErrorCodes,
    FAHError,
    FormatError,
    ValidationError,
)
from py2fah.core.pyon_protocol import PyONDecoder
from py2fah.core.tcp_connection import FAHConnection
from py2fah.models.info import Info
from py2fah.models.options import Options, Power
from py2fah.models.slot import SimulationInfo, SlotInfo, SlotQueueInfo
from py2fah.utils.fah_time import FAHDuration, parse_fah_duration

# Characters that would split or re-key an "options key=value" command
OPTION_KEY_FORBIDDEN = "= !"


class FAHCommandService:
    """
    Typed access to the FAH client commands.

    Commands that change client state return None; the client does not
    report whether they took effect.

    Example:
        >>> with FAHConnection.dial(":36330") as connection:
        ...     service = FAHCommandService(connection)
        ...     service.pause_all()
        ...     print(service.num_slots())
    """

    def __init__(self, connection: FAHConnection, decoder: Optional[PyONDecoder] = None):
        """
        Initialize command service.

        Args:
            connection: Connected FAHConnection
            decoder: PyON decoder (default: PyONDecoder())
        """
        self.connection = connection
        self.decoder = decoder or PyONDecoder()
        self.logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _execute(self, command: str) -> bytes:
        try:
            return self.connection.execute(command)
        except FAHError as e:
            log_error(e, level=logging.WARNING, include_trace=False,
                      extra_context={'command': command})
            raise

    def _execute_eval(self, command: str) -> bytes:
        try:
            return self.connection.execute_eval(command)
        except FAHError as e:
            log_error(e, level=logging.WARNING, include_trace=False,
                      extra_context={'command': command})
            raise

    def _query(self, command: str, shape=None) -> Any:
        reply = self._execute(command)
        try:
            return self.decoder.decode(reply, shape)
        except FAHError as e:
            log_error(e, level=logging.WARNING, include_trace=False,
                      extra_context={'command': command})
            raise

    @staticmethod
    def _slot_arg(slot: int) -> str:
        if isinstance(slot, bool) or not isinstance(slot, int):
            raise ValidationError(
                f"Slot must be an integer, got {type(slot).__name__}",
                field_name="slot",
                error_code=ErrorCodes.TYPE_ERROR
            )
        if slot < 0:
            raise ValidationError(
                f"Slot must not be negative: {slot}",
                field_name="slot",
                error_code=ErrorCodes.OUT_OF_RANGE
            )
        return str(slot)

    @staticmethod
    def _word_arg(name: str, value: str) -> str:
        if not isinstance(value, str) or not value or any(c.isspace() for c in value):
            raise ValidationError(
                f"{name} must be a non-empty string without whitespace: {value!r}",
                field_name=name,
                error_code=ErrorCodes.INVALID_PARAMETER
            )
        return value

    # ------------------------------------------------------------------
    # Client
    # ------------------------------------------------------------------

    def help(self) -> str:
        """Return the client's command help text."""
        return self._execute(ClientCommands.HELP).decode("utf-8", errors="replace")

    def configured(self) -> bool:
        """True if the client has a user, team or passkey set."""
        return self._query(ClientCommands.CONFIGURED, bool)

    def do_cycle(self) -> None:
        """Run one client cycle."""
        self._execute(ClientCommands.DO_CYCLE)

    def download_core(self, core_type: str, url: str) -> None:
        """Download a core, e.g. download_core("0xa7", "https://...")."""
        command = " ".join((
            ClientCommands.DOWNLOAD_CORE,
            self._word_arg("core_type", core_type),
            self._word_arg("url", url),
        ))
        self._execute(command)

    def info_raw(self) -> List[Any]:
        """Return the "info" reply as nested lists."""
        return self._query(ClientCommands.INFO, list)

    def info(self) -> Info:
        """Return build and machine information."""
        return self._query(ClientCommands.INFO, Info.from_list)

    def num_slots(self) -> int:
        return self._query(ClientCommands.NUM_SLOTS, int)

    def ppd(self) -> float:
        """Estimated points per day for all slots."""
        return self._query(ClientCommands.PPD, float)

    def uptime(self) -> FAHDuration:
        """
        Client uptime.

        Raises:
            FormatError: If the reply is not a duration
        """
        reply = self._execute_eval(ClientCommands.UPTIME)
        text = reply.decode("utf-8", errors="replace").strip()
        try:
            return parse_fah_duration(text)
        except ValueError as e:
            raise FormatError(
                f"Invalid uptime: {text!r}",
                payload=text,
                error_code=ErrorCodes.PARSE_ERROR,
                cause=e
            ) from e

    def request_id(self) -> None:
        """Request an ID from the assignment server."""
        self._execute(ClientCommands.REQUEST_ID)

    def request_ws(self) -> None:
        """Request work server assignment from the assignment server."""
        self._execute(ClientCommands.REQUEST_WS)

    def screensaver(self) -> None:
        """Unpause slots waiting for the screensaver; they pause again on disconnect."""
        self._execute(ClientCommands.SCREENSAVER)

    def shutdown(self) -> None:
        """Stop all FAH processes."""
        self._execute(ClientCommands.SHUTDOWN)

    def wait_for_units(self) -> None:
        """Block until all slots are paused."""
        self._execute(ClientCommands.WAIT_FOR_UNITS)

    def log_updates(self, arg: Union[LogUpdatesArg, str]) -> str:
        """
        Start, restart or stop log updates and return the current log.

        The log arrives after the prompt that acknowledges log-updates, so
        it is collected with a second, eval'd command. The session is held
        across both so other threads cannot interleave.

        Raises:
            ValidationError: If arg is not start, restart or stop
            FormatError: If the log reply is malformed
        """
        try:
            arg = LogUpdatesArg(arg)
        except ValueError as e:
            raise ValidationError(
                f"Invalid log-updates argument: {arg!r}",
                field_name="arg",
                error_code=ErrorCodes.INVALID_PARAMETER,
                cause=e
            ) from e

        with self.connection.exclusive():
            self._execute(f"{ClientCommands.LOG_UPDATES} {arg.value}")
            reply = self._execute_eval(ClientCommands.EVAL)
        return self.decoder.decode_log_update(reply)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def always_on(self, slot: int) -> None:
        """Set a slot to run always."""
        self._execute(f"{SlotCommands.ALWAYS_ON} {self._slot_arg(slot)}")

    def finish(self, slot: int) -> None:
        """Pause a slot when its current work unit completes."""
        self._execute(f"{SlotCommands.FINISH} {self._slot_arg(slot)}")

    def finish_all(self) -> None:
        """Pause every slot when its current work unit completes."""
        self._execute(SlotCommands.FINISH)

    def on_idle(self, slot: int) -> None:
        """Set a slot to run only while the machine is idle."""
        self._execute(f"{SlotCommands.ON_IDLE} {self._slot_arg(slot)}")

    def on_idle_all(self) -> None:
        self._execute(SlotCommands.ON_IDLE)

    def pause_all(self) -> None:
        self._execute(SlotCommands.PAUSE)

    def pause_slot(self, slot: int) -> None:
        # The client does not report whether the slot exists
        self._execute(f"{SlotCommands.PAUSE} {self._slot_arg(slot)}")

    def unpause_all(self) -> None:
        self._execute(SlotCommands.UNPAUSE)

    def unpause_slot(self, slot: int) -> None:
        self._execute(f"{SlotCommands.UNPAUSE} {self._slot_arg(slot)}")

    def simulation_info(self, slot: int) -> SimulationInfo:
        """Simulation progress of one slot."""
        command = f"{SlotCommands.SIMULATION_INFO} {self._slot_arg(slot)}"
        return self._query(command, SimulationInfo.from_dict)

    def slot_info(self) -> List[SlotInfo]:
        """Status of every slot."""
        return self._query(QueryCommands.SLOT_INFO, SlotInfo.list_from_rows)

    def queue_info(self) -> List[SlotQueueInfo]:
        """Work units held by the client."""
        return self._query(QueryCommands.QUEUE_INFO, SlotQueueInfo.list_from_rows)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def options_get(self) -> Options:
        """All client options, including defaults."""
        command = f"{OptionCommands.OPTIONS} {OptionCommands.ALL_FLAG}"
        return self._query(command, Options.from_dict)

    def options_set(self, key: str, value: Any) -> None:
        """
        Set one client option.

        Args:
            key: Option name, e.g. "power"
            value: New value; bools are sent as true/false

        Raises:
            ValidationError: If key contains '=', ' ' or '!', or a string
                             value contains a space
        """
        if not isinstance(key, str) or not key or any(c in OPTION_KEY_FORBIDDEN for c in key):
            raise ValidationError(
                f"Invalid option key: {key!r}",
                field_name="key",
                error_code=ErrorCodes.INVALID_PARAMETER,
                suggestions=["Option keys must not contain '=', spaces or '!'"]
            )

        if isinstance(value, bool):
            text = "true" if value else "false"
        elif isinstance(value, Power):
            text = value.value
        else:
            text = str(value)

        if isinstance(value, str) and " " in value:
            raise ValidationError(
                f"Option value for '{key}' contains a space",
                field_name=key,
                error_code=ErrorCodes.INVALID_PARAMETER
            )

        self._execute(f"{OptionCommands.OPTIONS} {key}={text}")
