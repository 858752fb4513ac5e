"""
Command names for the FAH client telnet API.

This module collects the text commands understood by FAHClient's command
port, grouped by what they act on. Commands that take a slot argument are
sent as "<command> <slot>"; without a slot they apply to every slot.

Usage Example:
    >>> from py2fah.core.command_codes import SlotCommands
    >>> connection.execute(f"{SlotCommands.PAUSE} 0")
"""

from enum import Enum


class ClientCommands:
    """
    Commands that query or control the client as a whole.
    """

    HELP = "help"
    INFO = "info"
    CONFIGURED = "configured"  # PyON bool
    NUM_SLOTS = "num-slots"  # PyON int
    PPD = "ppd"  # PyON float, total for all slots
    UPTIME = "uptime"  # Duration text without trailing newline, needs eval
    DO_CYCLE = "do-cycle"
    SHUTDOWN = "shutdown"
    SCREENSAVER = "screensaver"
    WAIT_FOR_UNITS = "wait-for-units"
    DOWNLOAD_CORE = "download-core"
    REQUEST_ID = "request-id"
    REQUEST_WS = "request-ws"
    LOG_UPDATES = "log-updates"
    EVAL = "eval"


class SlotCommands:
    """
    Commands taking an optional slot number.
    """

    PAUSE = "pause"
    UNPAUSE = "unpause"
    FINISH = "finish"
    ON_IDLE = "on_idle"
    ALWAYS_ON = "always_on"  # Slot number required
    SIMULATION_INFO = "simulation-info"  # Slot number required


class QueryCommands:
    """
    Commands returning PyON lists of records.
    """

    SLOT_INFO = "slot-info"
    QUEUE_INFO = "queue-info"


class OptionCommands:
    """
    Client option commands.

    "options -a" lists every option including defaults;
    "options <key>=<value>" sets one.
    """

    OPTIONS = "options"
    ALL_FLAG = "-a"


class LogUpdatesArg(Enum):
    """Argument for the log-updates command."""

    START = "start"
    RESTART = "restart"
    STOP = "stop"
