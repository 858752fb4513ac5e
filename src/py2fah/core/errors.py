"""
Error hierarchy for the FAH client API.

Every error raised by the session, the PyON decoder, the command service
and the settings loader is a FAHError carrying a numeric code and a
context dict describing what failed.

Error Code Ranges:
- 1000-1999: Connection errors
- 2000-2999: Command/protocol errors
- 4000-4999: Data format errors
- 6000-6999: Configuration errors
- 7000-7999: Validation errors
"""

from typing import Optional, Dict, Any, List
import traceback


class ErrorCodes:
    """Error codes raised by py2fah."""

    # Connection errors (1000-1999)
    CONNECTION_REFUSED = 1001
    CONNECTION_TIMEOUT = 1002
    WELCOME_READ_FAILED = 1004
    RECONNECT_FAILED = 1005
    NOT_CONNECTED = 1006

    # Command errors (2000-2999)
    INVALID_COMMAND = 2001
    END_OF_STREAM = 2003

    # Data errors (4000-4999)
    PARSE_ERROR = 4004
    INVALID_FORMAT = 4005
    EMPTY_BODY = 4006
    SHAPE_MISMATCH = 4007

    # Configuration errors (6000-6999)
    CONFIG_INVALID = 6002

    # Validation errors (7000-7999)
    INVALID_PARAMETER = 7001
    OUT_OF_RANGE = 7002
    TYPE_ERROR = 7004

    UNKNOWN_ERROR = 9000


class FAHError(Exception):
    """
    Base exception for all py2fah errors.

    The context dict is copied, so callers may reuse the mapping they pass.
    Subclasses set CATEGORY and add their own keys after construction.
    """

    DEFAULT_CODE = ErrorCodes.UNKNOWN_ERROR
    CATEGORY = 'UNKNOWN'

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """
        Initialize a FAH error.

        Args:
            message: Human-readable error description
            error_code: Numeric error code (default: the class DEFAULT_CODE)
            context: Additional context information
            cause: Original exception if this wraps another error
            suggestions: Possible solutions or next steps
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.DEFAULT_CODE
        self.context = dict(context or {})
        self.context['category'] = self.CATEGORY
        self.cause = cause
        self.suggestions = list(suggestions or [])

        self.stack_trace = traceback.format_exc() if cause else None

        if cause:
            self.context['original_error'] = str(cause)
            self.context['original_type'] = type(cause).__name__

    def format_user_message(self) -> str:
        """Format error for user display (without technical details)."""
        msg = f"{self.message}"
        if self.suggestions:
            msg += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                msg += f"\n  {i}. {suggestion}"
        return msg

    def format_log_message(self, include_trace: bool = True) -> str:
        """Format error for logging (with all details)."""
        parts = [
            f"[{self.error_code}] {self.__class__.__name__}: {self.message}"
        ]

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        if include_trace and self.stack_trace:
            parts.append(f"Stack trace:\n{self.stack_trace}")

        return " | ".join(parts)


class ConnectError(FAHError):
    """The transport could not be established or the welcome banner could not be read."""
    DEFAULT_CODE = ErrorCodes.CONNECTION_REFUSED
    CATEGORY = 'CONNECTION'

    def __init__(self, message: str, address: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if address:
            self.context['address'] = address


class InvalidCommandError(FAHError):
    """A command would desynchronize framing (it contains a newline)."""
    DEFAULT_CODE = ErrorCodes.INVALID_COMMAND
    CATEGORY = 'COMMAND'

    def __init__(self, message: str, command: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if command is not None:
            self.context['command'] = command


class ProtocolError(FAHError):
    """
    The remote closed the stream before a message boundary was seen.

    Attributes:
        partial: Bytes accumulated before the end of stream
    """
    DEFAULT_CODE = ErrorCodes.END_OF_STREAM
    CATEGORY = 'PROTOCOL'

    def __init__(self, message: str, partial: bytes = b'', **kwargs):
        super().__init__(message, **kwargs)
        self.partial = partial
        self.context['partial_length'] = len(partial)


class FormatError(FAHError):
    """A reply payload does not match the PyON or escaped-string grammar, or the expected shape."""
    DEFAULT_CODE = ErrorCodes.INVALID_FORMAT
    CATEGORY = 'DATA'

    def __init__(self, message: str, payload: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if payload is not None:
            # Log transcripts can be huge
            self.context['payload'] = payload[:200]


class ConfigurationError(FAHError):
    """A settings file or environment override is unreadable or invalid."""
    DEFAULT_CODE = ErrorCodes.CONFIG_INVALID
    CATEGORY = 'CONFIGURATION'

    def __init__(self, message: str, setting_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if setting_name:
            self.context['setting'] = setting_name


class ValidationError(FAHError):
    """A command argument or a typed record field has an invalid value."""
    DEFAULT_CODE = ErrorCodes.INVALID_PARAMETER
    CATEGORY = 'VALIDATION'

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if field_name:
            self.context['field'] = field_name
