"""Base model classes for records decoded from FAH client replies.

Records are populated through an explicit FIELDS table mapping each key the
client sends to an attribute name and a converter, so every field a record
understands is spelled out in one place.
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Tuple, Type, TypeVar

from py2fah.core.errors import ErrorCodes, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound='RecordModel')

FieldTable = Dict[str, Tuple[str, Callable[[Any], Any]]]


def string_bool(text: str) -> bool:
    """Parse "true"/"false" exactly; the client never sends other spellings."""
    if text == "true":
        return True
    if text == "false":
        return False
    raise ValueError(f"Invalid boolean string: {text!r}")


def string_int(text: str) -> int:
    """Parse a decimal integer sent as a string. Empty text is 0."""
    if not isinstance(text, str):
        raise ValueError(f"Expected integer string, got {type(text).__name__}")
    if text == "":
        return 0
    return int(text, 10)


def to_int(value: Any) -> int:
    """Accept a JSON integer (or an integral float) but not a bool."""
    if isinstance(value, bool):
        raise ValueError(f"Expected integer, got bool: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"Expected integer, got {value!r}")


def to_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected number, got {value!r}")
    return float(value)


def to_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected boolean, got {value!r}")
    return value


def to_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Expected string, got {value!r}")
    return value


def to_dict(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"Expected mapping, got {value!r}")
    return dict(value)


@dataclass
class RecordModel:
    """Base class for records built from decoded PyON data.

    Subclasses declare FIELDS (client key -> (attribute, converter)).
    Keys missing from the data keep the attribute's default. Keys not in
    FIELDS are passed to unknown_field(), which logs and drops them.
    """

    FIELDS: ClassVar[FieldTable] = {}

    @classmethod
    def from_dict(cls: Type[T], data: Mapping[str, Any]) -> T:
        """Create a record from a decoded mapping.

        Raises:
            TypeError: If data is not a mapping
            ValidationError: If a known field has a value of the wrong form
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")

        record = cls()
        for key, raw in data.items():
            entry = cls.FIELDS.get(key)
            if entry is None:
                record.unknown_field(key, raw)
                continue

            attribute, convert = entry
            try:
                value = convert(raw)
            except (TypeError, ValueError) as e:
                raise ValidationError(
                    f"Invalid value for {cls.__name__} field '{key}': {raw!r}",
                    field_name=key,
                    error_code=ErrorCodes.TYPE_ERROR,
                    cause=e
                ) from e
            setattr(record, attribute, value)
        return record

    @classmethod
    def list_from_rows(cls: Type[T], rows: Any) -> List[T]:
        """Create one record per mapping in a decoded list."""
        if not isinstance(rows, list):
            raise TypeError(f"{cls.__name__} rows must be a list, got {type(rows).__name__}")
        return [cls.from_dict(row) for row in rows]

    def unknown_field(self, key: str, value: Any) -> None:
        logger.debug(f"Discarded {type(self).__name__} field: {key}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to a JSON friendly dictionary."""
        result = asdict(self)
        for name, value in result.items():
            if isinstance(value, Enum):
                result[name] = value.value
            elif isinstance(value, (datetime, timedelta)):
                result[name] = str(value)
        return result

    def to_json(self) -> str:
        """Convert record to JSON string."""
        return json.dumps(self.to_dict(), default=str)
