"""
StateProof Canonical JSON (RFC 8785 / JCS)

Ensures logically identical values produce identical byte representations,
across processes and across independent implementations of the same
contract.

Rules:
- Object keys sorted by UTF-16 code unit order
- No whitespace between tokens
- Numbers serialized the way ECMAScript renders an IEEE-754 double
  (shortest round-trip digits, -0 becomes 0, 1.0 becomes 1)
- Strings escaped with the minimal JSON escape set
- Arrays preserve order
- UTF-8 output, no BOM
"""

import math
import re
from typing import Any, Dict, List, Union

from .exceptions import CanonicalizationError


# Largest integer magnitude a double represents exactly
MAX_SAFE_INTEGER = 2 ** 53

_ESCAPES = {
    '"': '\\"',
    '\\': '\\\\',
    '\b': '\\b',
    '\f': '\\f',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
}

# Control characters, quote, backslash and lone surrogates
_NEEDS_ESCAPE = re.compile('[\x00-\x1f"\\\\\ud800-\udfff]')


def canonicalize(obj: Any) -> bytes:
    """
    Convert a JSON-like value to RFC 8785 canonical bytes.

    Accepts None, bool, int, float, str, dict (string keys) and list/tuple,
    nested arbitrarily.

    Returns:
        UTF-8 encoded bytes of canonical JSON

    Raises:
        CanonicalizationError: for NaN/Infinity, non-string keys,
            out-of-range integers or unsupported types
    """
    return canonicalize_str(obj).encode('utf-8')


def canonicalize_str(obj: Any) -> str:
    """Return canonical JSON as string."""
    parts: List[str] = []
    _serialize(obj, parts)
    return ''.join(parts)


def _serialize(value: Any, out: List[str]) -> None:
    if value is None:
        out.append('null')
    elif value is True:
        out.append('true')
    elif value is False:
        out.append('false')
    elif isinstance(value, int):
        out.append(_serialize_int(value))
    elif isinstance(value, float):
        out.append(serialize_number(value))
    elif isinstance(value, str):
        out.append(_serialize_string(value))
    elif isinstance(value, dict):
        _serialize_object(value, out)
    elif isinstance(value, (list, tuple)):
        _serialize_array(value, out)
    else:
        raise CanonicalizationError(f"Cannot canonicalize type: {type(value).__name__}")


def _serialize_object(obj: Dict[str, Any], out: List[str]) -> None:
    """
    Serialize an object with its members sorted by key.

    Keys compare as sequences of UTF-16 code units, which is what the
    big-endian UTF-16 encoding gives under plain byte comparison.
    """
    for key in obj:
        if not isinstance(key, str):
            raise CanonicalizationError(
                f"Object keys must be strings, got {type(key).__name__}"
            )
    out.append('{')
    first = True
    for key in sorted(obj, key=_utf16_sort_key):
        if not first:
            out.append(',')
        first = False
        out.append(_serialize_string(key))
        out.append(':')
        _serialize(obj[key], out)
    out.append('}')


def _serialize_array(arr: Union[List, tuple], out: List[str]) -> None:
    out.append('[')
    for i, item in enumerate(arr):
        if i:
            out.append(',')
        _serialize(item, out)
    out.append(']')


def _utf16_sort_key(key: str) -> bytes:
    return key.encode('utf-16-be', 'surrogatepass')


def _serialize_string(s: str) -> str:
    return '"' + _NEEDS_ESCAPE.sub(_escape_char, s) + '"'


def _escape_char(match: 're.Match[str]') -> str:
    ch = match.group(0)
    escaped = _ESCAPES.get(ch)
    if escaped is not None:
        return escaped
    return '\\u%04x' % ord(ch)


def _serialize_int(value: int) -> str:
    if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
        return str(value)
    try:
        as_double = float(value)
    except OverflowError:
        raise CanonicalizationError(f"Integer out of IEEE-754 range: {value}")
    return serialize_number(as_double)


def serialize_number(value: float) -> str:
    """
    Render a double the way ECMAScript's Number.prototype.toString does.

    Python's repr() already yields the shortest digit string that round-trips;
    only the placement of the decimal point and exponent differs.
    """
    if math.isnan(value) or math.isinf(value):
        raise CanonicalizationError(f"Number not representable in JSON: {value!r}")
    if value == 0:
        return '0'

    sign = '-' if value < 0 else ''
    mantissa, _, exp = repr(abs(value)).partition('e')
    int_part, _, frac_part = mantissa.partition('.')
    digits = int_part + frac_part
    point = len(int_part) + (int(exp) if exp else 0)

    stripped = digits.lstrip('0')
    point -= len(digits) - len(stripped)
    digits = stripped.rstrip('0')
    k = len(digits)

    if k <= point <= 21:
        return sign + digits + '0' * (point - k)
    if 0 < point <= 21:
        return sign + digits[:point] + '.' + digits[point:]
    if -6 < point <= 0:
        return sign + '0.' + '0' * (-point) + digits

    exponent = point - 1
    exp_str = ('e+' if exponent >= 0 else 'e-') + str(abs(exponent))
    if k == 1:
        return sign + digits + exp_str
    return sign + digits[0] + '.' + digits[1:] + exp_str
