"""
PyON decoding for FAH client replies.

Structured replies from the FAH client use PyON, a Python-literal flavored
JSON wrapped in a header line and a sentinel trailer:

    PyON 1 <message-name>
    <body>
    ---

The body is JSON except that it spells null/true/false as the Python
literals None/True/False, and its strings may contain \\xHH escapes.
Replies to ``log-updates`` carry a single escaped string instead of general
data and end with an extra blank line.
"""

import json
import logging
import re
from typing import Any, Callable, Optional, Union

from .errors import ErrorCodes, FormatError, ValidationError

logger = logging.getLogger(__name__)

PYON_TAG = "PyON"
PYON_SENTINEL = "\n---"
LOG_UPDATE_SUFFIX = "\n---\n\n"

# None maps to "" rather than null; the client uses None for unset strings
LITERAL_REWRITES = {
    "None": '""',
    "True": "true",
    "False": "false",
}

_ESCAPED = re.compile(r'\\x[0-9a-fA-F]{2}|\\n|\\r|\\"|\\\\')

_SIMPLE_ESCAPES = {
    "\\n": "\n",
    "\\r": "\r",
    '\\"': '"',
    "\\\\": "\\",
}

Payload = Union[bytes, bytearray, str]


def _to_text(payload: Payload) -> str:
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", errors="replace")
    return payload


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def rewrite_literals(text: str) -> str:
    """
    Rewrite Python literals in a PyON body into JSON.

    None, True and False are replaced only where they stand as whole words
    outside double-quoted strings, so string content is never altered.
    Inside strings, \\xHH escapes become the equivalent JSON \\u00HH escape.

    Example:
        >>> rewrite_literals('{"idle": False, "reason": "None left"}')
        '{"idle": false, "reason": "None left"}'
    """
    out = []
    i = 0
    length = len(text)
    in_string = False

    while i < length:
        char = text[i]

        if in_string:
            if char == "\\" and i + 1 < length:
                escape = text[i + 1]
                if (escape == "x" and i + 3 < length
                        and all(c in "0123456789abcdefABCDEF" for c in text[i + 2:i + 4])):
                    out.append("\\u00" + text[i + 2:i + 4])
                    i += 4
                    continue
                out.append(text[i:i + 2])
                i += 2
                continue
            if char == '"':
                in_string = False
            out.append(char)
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
            continue

        if _is_word_char(char):
            start = i
            while i < length and _is_word_char(text[i]):
                i += 1
            word = text[start:i]
            out.append(LITERAL_REWRITES.get(word, word))
            continue

        out.append(char)
        i += 1

    return "".join(out)


def extract_body(payload: Payload, suffix: str = PYON_SENTINEL) -> str:
    """
    Strip the PyON header line and trailer from a payload.

    Args:
        payload: Raw reply
        suffix: Trailer that must end the payload

    Returns:
        Text between the header line and the trailer

    Raises:
        FormatError: If the tag, the trailer or the body is missing
    """
    text = _to_text(payload)

    if not text.startswith(PYON_TAG) or not text.endswith(suffix):
        raise FormatError(
            "Invalid PyON format",
            payload=text,
            error_code=ErrorCodes.INVALID_FORMAT
        )

    header_end = text.find("\n")
    body = text[header_end + 1:len(text) - len(suffix)]
    if header_end < 0 or header_end + 1 > len(text) - len(suffix) or body == "":
        raise FormatError(
            "PyON message has an empty body",
            payload=text,
            error_code=ErrorCodes.EMPTY_BODY
        )
    return body


def _check_shape(value: Any, shape: type) -> Any:
    if shape is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if shape in (int, float) and isinstance(value, bool):
        raise TypeError(f"expected {shape.__name__}, got bool")
    if not isinstance(value, shape):
        raise TypeError(f"expected {shape.__name__}, got {type(value).__name__}")
    return value


def decode_pyon(payload: Payload, shape: Optional[Union[type, Callable[[Any], Any]]] = None) -> Any:
    """
    Decode a PyON reply into Python values.

    Args:
        payload: Raw reply as returned by FAHConnection.execute()
        shape: What the caller expects:
            - None: any value; JSON numbers decode to float
            - int, float, bool, str, list or dict: the value must have that type
              (integers are only kept as int when shape is not None/float)
            - any other callable: applied to the decoded value
              (e.g. SlotInfo.from_dict); its TypeError/ValueError/KeyError
              and ValidationError become FormatError

    Returns:
        The decoded value

    Raises:
        FormatError: If the payload is malformed or does not fit shape

    Example:
        >>> decode_pyon(b"PyON 1 ppd\\n1234\\n---")
        1234.0
        >>> decode_pyon(b"PyON 1 num-slots\\n2\\n---", int)
        2
    """
    body = extract_body(payload)
    rewritten = rewrite_literals(body)

    parse_int = float if shape is None or shape is float else int
    try:
        value = json.loads(rewritten, parse_int=parse_int)
    except json.JSONDecodeError as e:
        raise FormatError(
            f"Invalid PyON body: {e}",
            payload=body,
            error_code=ErrorCodes.PARSE_ERROR,
            cause=e
        ) from e

    if shape is None:
        return value

    try:
        if isinstance(shape, type) and shape in (int, float, bool, str, list, dict):
            return _check_shape(value, shape)
        return shape(value)
    except (TypeError, ValueError, KeyError) as e:
        raise FormatError(
            f"PyON value does not match expected shape: {e}",
            payload=body,
            error_code=ErrorCodes.SHAPE_MISMATCH,
            cause=e
        ) from e
    except ValidationError as e:
        # A record field with the wrong type is malformed reply data
        raise FormatError(
            f"PyON value does not match expected shape: {e}",
            payload=body,
            error_code=ErrorCodes.SHAPE_MISMATCH,
            context={'field': e.context.get('field')},
            cause=e
        ) from e


def _replace_escape(match: "re.Match") -> str:
    escape = match.group(0)
    simple = _SIMPLE_ESCAPES.get(escape)
    if simple is not None:
        return simple
    return chr(int(escape[2:], 16))


def decode_pyon_string(payload: Payload) -> str:
    """
    Decode a double-quoted PyON string.

    Recognizes \\n, \\r, \\", \\\\ and \\xHH. Any other backslash sequence
    is kept verbatim.

    Raises:
        FormatError: If payload is shorter than 2 characters or not quoted

    Example:
        >>> decode_pyon_string(b'"a\\\\x01b"')
        'a\\x01b'
    """
    text = _to_text(payload)
    if len(text) < 2 or text[0] != '"' or text[-1] != '"':
        raise FormatError(
            "Not a valid PyON string",
            payload=text,
            error_code=ErrorCodes.INVALID_FORMAT
        )

    return _ESCAPED.sub(_replace_escape, text[1:-1])


def decode_log_update(payload: Payload) -> str:
    """
    Decode a log-update reply into the log text it carries.

    The log body is a single escaped string which may contain \\x00
    sequences, so it is decoded with decode_pyon_string() rather than as
    JSON.

    Raises:
        FormatError: If the framing or the string is malformed
    """
    body = extract_body(payload, suffix=LOG_UPDATE_SUFFIX)
    return decode_pyon_string(body)


class PyONDecoder:
    """
    Decodes FAH client replies.

    Thin object wrapper over the module functions so services can hold a
    decoder the same way they hold a connection.

    Example:
        >>> decoder = PyONDecoder()
        >>> decoder.decode(b"PyON 1 configured\\nTrue\\n---", bool)
        True
    """

    def decode(self, payload: Payload, shape=None) -> Any:
        """Decode a PyON reply; see decode_pyon()."""
        return decode_pyon(payload, shape)

    def decode_string(self, payload: Payload) -> str:
        """Decode a quoted PyON string; see decode_pyon_string()."""
        return decode_pyon_string(payload)

    def decode_log_update(self, payload: Payload) -> str:
        """Decode a log-update reply; see decode_log_update()."""
        return decode_log_update(payload)
