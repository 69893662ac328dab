"""Field normalizer: strips wrapper punctuation and unifies quoting.

The raw substrings look like ``: 'web01', `` (Python repr) or
``: "web01", `` (``json.dumps``). Values and keys lose a fixed number of
characters on each side; host, clock and server are translated to the
single-quote form first when the payload is double-quoted.
"""

import re

from zbxingest.core.exceptions import (
    MalformedPayloadError,
    TimestampParseError,
)
from zbxingest.core.models import (
    ExtractedFields,
    NormalizedFields,
    QuoteStyle,
    ValueKind,
)

VALUE_TRIM = 2
KEY_TRIM = 3
CLOCK_TRIM = 2

NORMALIZE_STAGE = TimestampParseError.stage

_INTEGER_RE = re.compile(r"([+-]?)0*([0-9]+)")

# Clocks are signed 64-bit integers on the wire.
CLOCK_MIN = -(2**63)
CLOCK_MAX = 2**63 - 1
_CLOCK_MAX_DIGITS = len(str(CLOCK_MAX))


def _trim(text: str, n: int) -> str:
    if len(text) <= 2 * n:
        return ""
    return text[n:-n]


def _to_single_quotes(text: str) -> str:
    return text.replace('"', "'")


def clean_name(raw: str, label: str = "host") -> str:
    """Return the text between the first pair of single quotes."""
    parts = raw.split("'")
    if len(parts) < 3:
        raise MalformedPayloadError(
            f"{label} has no quoted value: {raw!r}", stage=NORMALIZE_STAGE
        )
    return parts[1]


def clean_clock(raw: str) -> float:
    """Parse a raw clock substring as Unix seconds.

    Raises:
        TimestampParseError: The trimmed text is not a base-10 integer or
            falls outside the signed 64-bit range.
    """
    text = _trim(raw, CLOCK_TRIM).strip("'")
    match = _INTEGER_RE.fullmatch(text)
    if not match:
        raise TimestampParseError(f"clock is not an integer: {text!r}")
    sign, digits = match.groups()
    if len(digits) > _CLOCK_MAX_DIGITS:
        raise TimestampParseError(f"clock out of range: {text[:32]!r}")
    value = int(sign + digits)
    if not CLOCK_MIN <= value <= CLOCK_MAX:
        raise TimestampParseError(f"clock out of range: {text!r}")
    return float(value)


def value_kind(value_text: str) -> ValueKind:
    """A value holding a single quote is textual, anything else numeric."""
    if "'" in value_text:
        return ValueKind.TEXTUAL
    return ValueKind.NUMERIC


def normalize_fields(extracted: ExtractedFields) -> NormalizedFields:
    """Turn raw extracted substrings into clean, unquoted fields.

    Args:
        extracted: Output of the field extractor.

    Returns:
        NormalizedFields with the value type decided.

    Raises:
        MalformedPayloadError: Host or server carry no quoted value, or the
            key is empty after trimming.
        TimestampParseError: The clock is not an integer.
    """
    host, clock, server = extracted.host, extracted.clock, extracted.server
    value_text = _trim(extracted.value, VALUE_TRIM)
    if extracted.quote_style is QuoteStyle.DOUBLE:
        host = _to_single_quotes(host)
        clock = _to_single_quotes(clock)
        server = _to_single_quotes(server)
        value_text = _to_single_quotes(value_text)

    key = _trim(extracted.key, KEY_TRIM)
    if not key:
        raise MalformedPayloadError(
            f"empty key in {extracted.key!r}", stage=NORMALIZE_STAGE
        )

    return NormalizedFields(
        host=clean_name(host, "host"),
        timestamp=clean_clock(clock),
        value_text=value_text,
        key=key,
        server=clean_name(server, "server"),
        kind=value_kind(value_text),
    )
