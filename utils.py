import re

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def _leading_int(amount):
    match = _LEADING_INT_RE.match(str(amount))
    if match is None:
        raise ValueError(f"Amount is not numeric: {amount!r}")
    return int(match.group(1))


def from_decimals(amount, decimals=9):
    """Scale a raw on-chain amount down, e.g. lamports to SOL.

    `amount` may be text, an int or a float; anything after the leading
    integer (a fraction, a unit suffix) is dropped before scaling.
    """
    return _leading_int(amount) * 1.0 / 10 ** decimals


def to_decimals(amount, decimals=9):
    """Scale a UI amount up to its raw on-chain value, returned as text.

    Not an exact inverse of from_decimals once the float loses precision.
    """
    value = amount * 10 ** decimals
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
