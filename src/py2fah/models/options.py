"""
FAH client option models.

The client reports its options as a flat PyON mapping of kebab-case names
to strings ("options -a"). Options converts that mapping into typed
attributes through the explicit OPTION_FIELDS table.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from .base import FieldTable, RecordModel, string_bool, string_int

logger = logging.getLogger(__name__)


class Power(Enum):
    """Client power level."""

    NULL = ""
    LIGHT = "LIGHT"
    MEDIUM = "MEDIUM"
    FULL = "FULL"

    @classmethod
    def from_string(cls, text: str) -> 'Power':
        """
        Parse a power level, ignoring case.

        Raises:
            ValueError: If text is not a known power level
        """
        try:
            return cls(text.upper())
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid power level: {text!r}") from None

    def __str__(self) -> str:
        return self.value


@dataclass
class Options(RecordModel):
    """
    Typed view of the FAH client options.

    Attributes mirror the option names with dashes replaced by
    underscores. Options the table does not know are kept in ``extra``
    as raw values.

    Example:
        >>> options = Options.from_dict({"power": "light", "paused": "false"})
        >>> options.power
        <Power.LIGHT: 'LIGHT'>
    """

    allow: str = ""
    capture_directory: str = ""
    capture_on_error: bool = False
    capture_packets: bool = False
    capture_requests: bool = False
    capture_responses: bool = False
    capture_sockets: bool = False
    cause: str = ""
    certificate_file: str = ""
    checkpoint: int = 0
    child: bool = False
    client_subtype: str = ""
    client_threads: int = 0
    client_type: str = ""
    command_address: str = ""
    command_allow_no_pass: str = ""
    deny: str = ""
    command_deny_no_pass: str = ""
    command_enable: bool = False
    command_port: int = 0
    config_rotate: bool = False
    config_rotate_dir: str = ""
    config_rotate_max: int = 0
    connection_timeout: int = 0
    core_priority: str = ""
    cpu_species: str = ""
    cpu_type: str = ""
    cpu_usage: int = 0
    cpus: int = 0
    crl_file: str = ""
    cuda_index: str = ""
    cycle_rate: int = 0
    cycles: int = 0
    daemon: bool = False
    debug_sockets: bool = False
    disable_sleep_when_active: bool = False
    disable_viz: bool = False
    dump_after_deadline: bool = False
    exception_locations: bool = False
    exit_when_done: bool = False
    extra_core_args: str = ""
    fold_anon: bool = False
    gpu: bool = False
    gpu_index: str = ""
    gpu_usage: int = 0
    gui_enabled: bool = False
    http_addresses: str = ""
    https_addresses: str = ""
    idle: bool = False
    log: str = ""
    log_color: bool = False
    log_crlf: bool = False
    log_date: bool = False
    log_date_periodically: int = 0
    log_domain: bool = False
    log_domain_levels: str = ""
    log_header: bool = False
    log_level: bool = False
    log_no_info_header: bool = False
    log_redirect: bool = False
    log_rotate: bool = False
    log_rotate_dir: str = ""
    log_rotate_max: int = 0
    log_short_level: bool = False
    log_simple_domains: bool = False
    log_thread_id: bool = False
    log_thread_prefix: bool = False
    log_time: bool = False
    log_to_screen: bool = False
    log_truncate: bool = False
    machine_id: int = 0
    max_connect_time: int = 0
    max_connections: int = 0
    max_packet_size: str = ""
    max_queue: int = 0
    max_request_length: int = 0
    max_shutdown_wait: int = 0
    max_slot_errors: int = 0
    max_unit_errors: int = 0
    max_units: int = 0
    memory: str = ""
    min_connect_time: int = 0
    next_unit_percentage: int = 0
    priority: str = ""
    no_assembly: bool = False
    open_web_control: bool = False
    opencl_index: str = ""
    os_species: str = ""
    os_type: str = ""
    passkey: str = ""
    password: str = ""
    pause_on_battery: bool = False
    pause_on_start: bool = False
    paused: bool = False
    pid: bool = False
    pid_file: str = ""
    power: Power = Power.NULL
    private_key_file: str = ""
    project_key: int = 0
    proxy: str = ""
    proxy_enable: bool = False
    proxy_pass: str = ""
    proxy_user: str = ""
    respawn: bool = False
    service: bool = False
    service_description: str = ""
    service_restart: bool = False
    service_restart_delay: int = 0
    session_cookie: str = ""
    session_lifetime: int = 0
    session_timeout: int = 0
    smp: bool = False
    stack_traces: bool = False
    stall_detection_enabled: bool = False
    stall_percent: int = 0
    stall_timeout: int = 0
    team: int = 0
    user: str = ""
    verbosity: int = 0
    web_allow: str = ""
    web_deny: str = ""
    web_enable: bool = False

    extra: Dict[str, Any] = field(default_factory=dict)

    def unknown_field(self, key: str, value: Any) -> None:
        logger.debug(f"Unknown option kept as raw value: {key}")
        self.extra[key] = value

    def to_client_strings(self) -> Dict[str, str]:
        """Render options back into the client's kebab-case string form."""
        result = {}
        for key, (attribute, _) in OPTION_FIELDS.items():
            value = getattr(self, attribute)
            if isinstance(value, bool):
                value = "true" if value else "false"
            result[key] = str(value)
        result.update({key: str(value) for key, value in self.extra.items()})
        return result


# Option name -> (attribute, converter)
OPTION_FIELDS: FieldTable = {
    "allow": ("allow", str),
    "capture-directory": ("capture_directory", str),
    "capture-on-error": ("capture_on_error", string_bool),
    "capture-packets": ("capture_packets", string_bool),
    "capture-requests": ("capture_requests", string_bool),
    "capture-responses": ("capture_responses", string_bool),
    "capture-sockets": ("capture_sockets", string_bool),
    "cause": ("cause", str),
    "certificate-file": ("certificate_file", str),
    "checkpoint": ("checkpoint", string_int),
    "child": ("child", string_bool),
    "client-subtype": ("client_subtype", str),
    "client-threads": ("client_threads", string_int),
    "client-type": ("client_type", str),
    "command-address": ("command_address", str),
    "command-allow-no-pass": ("command_allow_no_pass", str),
    "deny": ("deny", str),
    "command-deny-no-pass": ("command_deny_no_pass", str),
    "command-enable": ("command_enable", string_bool),
    "command-port": ("command_port", string_int),
    "config-rotate": ("config_rotate", string_bool),
    "config-rotate-dir": ("config_rotate_dir", str),
    "config-rotate-max": ("config_rotate_max", string_int),
    "connection-timeout": ("connection_timeout", string_int),
    "core-priority": ("core_priority", str),
    "cpu-species": ("cpu_species", str),
    "cpu-type": ("cpu_type", str),
    "cpu-usage": ("cpu_usage", string_int),
    "cpus": ("cpus", string_int),
    "crl-file": ("crl_file", str),
    "cuda-index": ("cuda_index", str),
    "cycle-rate": ("cycle_rate", string_int),
    "cycles": ("cycles", string_int),
    "daemon": ("daemon", string_bool),
    "debug-sockets": ("debug_sockets", string_bool),
    "disable-sleep-when-active": ("disable_sleep_when_active", string_bool),
    "disable-viz": ("disable_viz", string_bool),
    "dump-after-deadline": ("dump_after_deadline", string_bool),
    "exception-locations": ("exception_locations", string_bool),
    "exit-when-done": ("exit_when_done", string_bool),
    "extra-core-args": ("extra_core_args", str),
    "fold-anon": ("fold_anon", string_bool),
    "gpu": ("gpu", string_bool),
    "gpu-index": ("gpu_index", str),
    "gpu-usage": ("gpu_usage", string_int),
    "gui-enabled": ("gui_enabled", string_bool),
    "http-addresses": ("http_addresses", str),
    "https-addresses": ("https_addresses", str),
    "idle": ("idle", string_bool),
    "log": ("log", str),
    "log-color": ("log_color", string_bool),
    "log-crlf": ("log_crlf", string_bool),
    "log-date": ("log_date", string_bool),
    "log-date-periodically": ("log_date_periodically", string_int),
    "log-domain": ("log_domain", string_bool),
    "log-domain-levels": ("log_domain_levels", str),
    "log-header": ("log_header", string_bool),
    "log-level": ("log_level", string_bool),
    "log-no-info-header": ("log_no_info_header", string_bool),
    "log-redirect": ("log_redirect", string_bool),
    "log-rotate": ("log_rotate", string_bool),
    "log-rotate-dir": ("log_rotate_dir", str),
    "log-rotate-max": ("log_rotate_max", string_int),
    "log-short-level": ("log_short_level", string_bool),
    "log-simple-domains": ("log_simple_domains", string_bool),
    "log-thread-id": ("log_thread_id", string_bool),
    "log-thread-prefix": ("log_thread_prefix", string_bool),
    "log-time": ("log_time", string_bool),
    "log-to-screen": ("log_to_screen", string_bool),
    "log-truncate": ("log_truncate", string_bool),
    "machine-id": ("machine_id", string_int),
    "max-connect-time": ("max_connect_time", string_int),
    "max-connections": ("max_connections", string_int),
    "max-packet-size": ("max_packet_size", str),
    "max-queue": ("max_queue", string_int),
    "max-request-length": ("max_request_length", string_int),
    "max-shutdown-wait": ("max_shutdown_wait", string_int),
    "max-slot-errors": ("max_slot_errors", string_int),
    "max-unit-errors": ("max_unit_errors", string_int),
    "max-units": ("max_units", string_int),
    "memory": ("memory", str),
    "min-connect-time": ("min_connect_time", string_int),
    "next-unit-percentage": ("next_unit_percentage", string_int),
    "priority": ("priority", str),
    "no-assembly": ("no_assembly", string_bool),
    "open-web-control": ("open_web_control", string_bool),
    "opencl-index": ("opencl_index", str),
    "os-species": ("os_species", str),
    "os-type": ("os_type", str),
    "passkey": ("passkey", str),
    "password": ("password", str),
    "pause-on-battery": ("pause_on_battery", string_bool),
    "pause-on-start": ("pause_on_start", string_bool),
    "paused": ("paused", string_bool),
    "pid": ("pid", string_bool),
    "pid-file": ("pid_file", str),
    "power": ("power", Power.from_string),
    "private-key-file": ("private_key_file", str),
    "project-key": ("project_key", string_int),
    "proxy": ("proxy", str),
    "proxy-enable": ("proxy_enable", string_bool),
    "proxy-pass": ("proxy_pass", str),
    "proxy-user": ("proxy_user", str),
    "respawn": ("respawn", string_bool),
    "service": ("service", string_bool),
    "service-description": ("service_description", str),
    "service-restart": ("service_restart", string_bool),
    "service-restart-delay": ("service_restart_delay", string_int),
    "session-cookie": ("session_cookie", str),
    "session-lifetime": ("session_lifetime", string_int),
    "session-timeout": ("session_timeout", string_int),
    "smp": ("smp", string_bool),
    "stack-traces": ("stack_traces", string_bool),
    "stall-detection-enabled": ("stall_detection_enabled", string_bool),
    "stall-percent": ("stall_percent", string_int),
    "stall-timeout": ("stall_timeout", string_int),
    "team": ("team", string_int),
    "user": ("user", str),
    "verbosity": ("verbosity", string_int),
    "web-allow": ("web_allow", str),
    "web-deny": ("web_deny", str),
    "web-enable": ("web_enable", string_bool),
}

Options.FIELDS = OPTION_FIELDS
