"""Slot, work unit and simulation records.

These are the typed forms of the "slot-info", "queue-info" and
"simulation-info <slot>" replies.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from py2fah.utils.fah_time import (
    INVALID_TIME,
    FAHDuration,
    FAHTime,
    parse_fah_duration,
    parse_fah_time,
)
from .base import (
    FieldTable,
    RecordModel,
    string_bool,
    string_int,
    to_bool,
    to_dict,
    to_float,
    to_int,
    to_str,
)


@dataclass
class SlotOptions(RecordModel):
    """Per-slot option overrides carried in SlotInfo.options."""

    machine_id: str = ""
    paused: bool = False

    FIELDS = {
        "machine-id": ("machine_id", str),
        "paused": ("paused", string_bool),
    }


@dataclass
class SlotInfo(RecordModel):
    """
    One entry of the "slot-info" reply.

    Attributes:
        id: Slot id, e.g. "00"
        status: e.g. "RUNNING", "PAUSED", "READY"
        description: e.g. "cpu:3"
        options: Raw per-slot option overrides
        reason: Why the slot is paused, if it is
        idle: Whether the slot only runs while the machine is idle
    """

    id: str = ""
    status: str = ""
    description: str = ""
    options: Dict[str, Any] = field(default_factory=dict)
    reason: str = ""
    idle: bool = False

    FIELDS = {
        "id": ("id", to_str),
        "status": ("status", to_str),
        "description": ("description", to_str),
        "options": ("options", to_dict),
        "reason": ("reason", to_str),
        "idle": ("idle", to_bool),
    }

    @property
    def slot_options(self) -> SlotOptions:
        """The options mapping parsed into a SlotOptions record."""
        return SlotOptions.from_dict(self.options)


@dataclass
class SlotQueueInfo(RecordModel):
    """
    One work unit entry of the "queue-info" reply.

    Durations use FAHDuration and may be unknown; times use FAHTime and
    may be invalid.
    """

    id: str = ""
    state: str = ""
    error: str = ""
    project: int = 0
    run: int = 0
    clone: int = 0
    gen: int = 0
    core: str = ""
    unit: str = ""
    percent_done: str = ""
    eta: FAHDuration = field(default_factory=FAHDuration)
    ppd: int = 0
    credit_estimate: int = 0
    waiting_on: str = ""
    next_attempt: FAHDuration = field(default_factory=FAHDuration)
    time_remaining: FAHDuration = field(default_factory=FAHDuration)
    total_frames: int = 0
    frames_done: int = 0
    assigned: FAHTime = INVALID_TIME
    timeout: FAHTime = INVALID_TIME
    deadline: FAHTime = INVALID_TIME
    ws: str = ""
    cs: str = ""
    attempts: int = 0
    slot: str = ""
    tpf: FAHDuration = field(default_factory=FAHDuration)
    base_credit: int = 0

    FIELDS = {
        "id": ("id", to_str),
        "state": ("state", to_str),
        "error": ("error", to_str),
        "project": ("project", to_int),
        "run": ("run", to_int),
        "clone": ("clone", to_int),
        "gen": ("gen", to_int),
        "core": ("core", to_str),
        "unit": ("unit", to_str),
        "percentdone": ("percent_done", to_str),
        "eta": ("eta", parse_fah_duration),
        "ppd": ("ppd", string_int),
        "creditestimate": ("credit_estimate", string_int),
        "waitingon": ("waiting_on", to_str),
        "nextattempt": ("next_attempt", parse_fah_duration),
        "timeremaining": ("time_remaining", parse_fah_duration),
        "totalframes": ("total_frames", to_int),
        "framesdone": ("frames_done", to_int),
        "assigned": ("assigned", parse_fah_time),
        "timeout": ("timeout", parse_fah_time),
        "deadline": ("deadline", parse_fah_time),
        "ws": ("ws", to_str),
        "cs": ("cs", to_str),
        "attempts": ("attempts", to_int),
        "slot": ("slot", to_str),
        "tpf": ("tpf", parse_fah_duration),
        "basecredit": ("base_credit", string_int),
    }


@dataclass
class SimulationInfo(RecordModel):
    """Progress of the simulation running in one slot ("simulation-info")."""

    user: str = ""
    team: str = ""
    project: int = 0
    run: int = 0
    clone: int = 0
    gen: int = 0
    core_type: int = 0
    core: str = ""
    total_iterations: int = 0
    iterations_done: int = 0
    energy: int = 0
    temperature: int = 0
    start_time: FAHTime = INVALID_TIME
    timeout: int = 0
    deadline: int = 0
    eta: int = 0
    progress: float = 0.0
    slot: int = 0

    FIELDS = {
        "user": ("user", to_str),
        "team": ("team", to_str),
        "project": ("project", to_int),
        "run": ("run", to_int),
        "clone": ("clone", to_int),
        "gen": ("gen", to_int),
        "core_type": ("core_type", to_int),
        "core": ("core", to_str),
        "total_iterations": ("total_iterations", to_int),
        "iterations_done": ("iterations_done", to_int),
        "energy": ("energy", to_int),
        "temperature": ("temperature", to_int),
        "start_time": ("start_time", parse_fah_time),
        "timeout": ("timeout", to_int),
        "deadline": ("deadline", to_int),
        "eta": ("eta", to_int),
        "progress": ("progress", to_float),
        "slot": ("slot", to_int),
    }
