"""Synchronous input validation for commands. Raises before any I/O."""

import math
from typing import Any

from kvshadow.errors import ValidationError
from kvshadow.models import ScoreBound


def require(command: str, *values: Any) -> None:
    """All parameters present."""
    if any(v is None or (isinstance(v, (str, list, tuple, dict)) and len(v) == 0) for v in values):
        raise ValidationError(f"Incomplete {command} parameter(s)")


def require_str(command: str, name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{command} `{name}` parameter must be a string")
    return value


def require_int(command: str, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{command} `{name}` parameter must be an integer")
    return value


def require_number(command: str, name: str, value: Any) -> float:
    """A finite int/float, or a string holding one."""
    if isinstance(value, bool):
        raise ValidationError(f"{command} `{name}` parameter must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{command} `{name}` parameter must be a number") from None
    if math.isnan(number):
        raise ValidationError(f"{command} `{name}` parameter must be a number")
    return number


def require_value(command: str, name: str, value: Any) -> str:
    """A cache value: strings as-is, numbers stringified."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"{command} `{name}` parameter must be a string")
    return str(value)


def require_strings(command: str, name: str, value: Any) -> list[str]:
    """A string or a non-empty list of strings."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValidationError(f"{command} `{name}` parameter must be a string OR an array of strings")


def require_score_members(command: str, value: Any) -> list[tuple[float, str]]:
    """[score, member, score, member, ...] -> [(score, member), ...]."""
    if not isinstance(value, (list, tuple)) or not value or len(value) % 2:
        raise ValidationError(
            f"{command} `scoreMembers` parameter must be an array containing sequentially "
            "at least a score and member pair, where the score is a floating point and the member is a string"
        )
    pairs = []
    for score, member in zip(value[::2], value[1::2]):
        pairs.append((require_number(command, "score", score), require_str(command, "member", member)))
    return pairs


def require_field_values(command: str, value: Any) -> dict[str, str]:
    """A {field: value} dict or a flat [field, value, ...] list."""
    if isinstance(value, dict) and value:
        items = list(value.items())
    elif isinstance(value, (list, tuple)) and value and len(value) % 2 == 0:
        items = list(zip(value[::2], value[1::2]))
    else:
        raise ValidationError(
            f"{command} `fieldValues` parameter must be a mapping or an array of field and value pairs"
        )
    return {require_str(command, "field", f): require_value(command, "value", v) for f, v in items}


def parse_score_bound(command: str, name: str, value: Any) -> ScoreBound:
    """Cache-style range bound: number, `(number`, `-inf`, `+inf` or `inf`."""
    if isinstance(value, bool):
        raise ValidationError(f"{command} `{name}` parameter must be floating point OR `inf` OR `-inf`")
    if isinstance(value, (int, float)):
        return ScoreBound(float(value))
    if isinstance(value, str):
        text = value.strip()
        exclusive = text.startswith("(")
        if exclusive:
            text = text[1:]
        if text.lower() in ("inf", "+inf", "-inf"):
            return ScoreBound(-math.inf if text.startswith("-") else math.inf, exclusive)
        try:
            number = float(text)
        except ValueError:
            pass
        else:
            if not math.isnan(number) and not math.isinf(number):
                return ScoreBound(number, exclusive)
    raise ValidationError(f"{command} `{name}` parameter must be floating point OR `inf` OR `-inf`")
