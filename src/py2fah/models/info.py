"""
Client build and machine information ("info" command).

The reply is a list of sections, each section a list whose first element
is the section title followed by [display name, value] pairs:

    [["FAHClient", ["Version", "7.6.21"], ...], ["CBang", ...], ...]

Info reads the first four sections positionally and maps display names
to attributes through explicit per-section tables.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from py2fah.core.errors import ErrorCodes, FormatError, ValidationError
from .base import string_int

logger = logging.getLogger(__name__)

SECTION_TITLES = ("FAHClient", "CBang", "System", "libFAH")


@dataclass
class BuildInfo:
    """Build details shared by the CBang and libFAH sections."""

    date: str = ""
    time: str = ""
    revision: str = ""
    branch: str = ""
    compiler: str = ""
    options: str = ""
    platform: str = ""
    bits: str = ""
    mode: str = ""


@dataclass
class ClientInfo(BuildInfo):
    """The FAHClient section."""

    version: str = ""
    author: str = ""
    copyright: str = ""
    homepage: str = ""
    args: str = ""
    config: str = ""


@dataclass
class SystemInfo:
    """The System section."""

    cpu: str = ""
    cpu_id: str = ""
    cpus: int = 0
    memory: str = ""
    free_memory: str = ""
    threads: str = ""
    os_version: str = ""
    has_battery: str = ""
    on_battery: str = ""
    utc_offset: str = ""
    pid: str = ""
    cwd: str = ""
    os: str = ""
    os_arch: str = ""
    gpus: int = 0
    # "GPU 0", "CUDA Device 0", ... keyed by display name
    devices: Dict[str, str] = field(default_factory=dict)


SectionTable = Dict[str, Tuple[str, Callable[[str], Any]]]

BUILD_FIELDS: SectionTable = {
    "Date": ("date", str),
    "Time": ("time", str),
    "Revision": ("revision", str),
    "Branch": ("branch", str),
    "Compiler": ("compiler", str),
    "Options": ("options", str),
    "Platform": ("platform", str),
    "Bits": ("bits", str),
    "Mode": ("mode", str),
}

CLIENT_FIELDS: SectionTable = dict(BUILD_FIELDS, **{
    "Version": ("version", str),
    "Author": ("author", str),
    "Copyright": ("copyright", str),
    "Homepage": ("homepage", str),
    "Args": ("args", str),
    "Config": ("config", str),
})

SYSTEM_FIELDS: SectionTable = {
    "CPU": ("cpu", str),
    "CPU ID": ("cpu_id", str),
    "CPUs": ("cpus", string_int),
    "Memory": ("memory", str),
    "Free Memory": ("free_memory", str),
    "Threads": ("threads", str),
    "OS Version": ("os_version", str),
    "Has Battery": ("has_battery", str),
    "On Battery": ("on_battery", str),
    "UTC Offset": ("utc_offset", str),
    "PID": ("pid", str),
    "CWD": ("cwd", str),
    "OS": ("os", str),
    "OS Arch": ("os_arch", str),
    "GPUs": ("gpus", string_int),
}

# Per-device entries in the System section
DEVICE_PREFIXES = ("GPU ", "CUDA Device ", "OpenCL Device ")


def _fill_section(target: Any, section: List[Any], table: SectionTable) -> None:
    title = section[0]
    for item in section[1:]:
        if not isinstance(item, list) or len(item) < 2 or not isinstance(item[0], str):
            raise FormatError(
                f"Invalid entry in info section {title}: {item!r}",
                payload=repr(item),
                error_code=ErrorCodes.INVALID_FORMAT
            )

        key, raw = item[0], item[1]
        entry = table.get(key)
        if entry is None:
            if isinstance(target, SystemInfo) and key.startswith(DEVICE_PREFIXES):
                target.devices[key] = str(raw)
            else:
                logger.debug(f"Discarded info field: {key}")
            continue

        attribute, convert = entry
        try:
            value = convert(raw)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid value for info field '{key}': {raw!r}",
                field_name=key,
                error_code=ErrorCodes.TYPE_ERROR,
                cause=e
            ) from e
        setattr(target, attribute, value)


@dataclass
class Info:
    """
    Parsed "info" reply.

    Example:
        >>> info = Info.from_list(decode_pyon(connection.execute("info"), list))
        >>> info.fah_client.version
        '7.6.21'
    """

    fah_client: ClientInfo = field(default_factory=ClientInfo)
    cbang: BuildInfo = field(default_factory=BuildInfo)
    system: SystemInfo = field(default_factory=SystemInfo)
    lib_fah: BuildInfo = field(default_factory=BuildInfo)

    @classmethod
    def from_list(cls, sections: Any) -> 'Info':
        """
        Build Info from the decoded section list.

        Raises:
            FormatError: If the first four sections are missing or misnamed
            ValidationError: If a numeric field is not a number
        """
        if (not isinstance(sections, list) or len(sections) < len(SECTION_TITLES)
                or any(not isinstance(section, list) or not section or section[0] != title
                       for section, title in zip(sections, SECTION_TITLES))):
            raise FormatError(
                f"Info sections must start with {', '.join(SECTION_TITLES)}",
                payload=repr(sections),
                error_code=ErrorCodes.INVALID_FORMAT
            )

        info = cls()
        _fill_section(info.fah_client, sections[0], CLIENT_FIELDS)
        _fill_section(info.cbang, sections[1], BUILD_FIELDS)
        _fill_section(info.system, sections[2], SYSTEM_FIELDS)
        _fill_section(info.lib_fah, sections[3], BUILD_FIELDS)
        return info
