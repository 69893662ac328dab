"""Field extractor: carves a raw payload into its five labelled parts."""

from zbxingest.core.exceptions import MalformedPayloadError
from zbxingest.core.models import ExtractedFields, QuoteStyle

# Payload labels, in the order they appear on the wire.
MARKERS = ("host", "clock", "value", "key", "server")


def decode_payload(body: bytes | str) -> str:
    """Return the payload as text, replacing undecodable bytes."""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def detect_quote_style(text: str) -> QuoteStyle:
    """Double-quoted if the payload contains ``"host"``, single-quoted otherwise."""
    if QuoteStyle.DOUBLE.marker("host") in text:
        return QuoteStyle.DOUBLE
    return QuoteStyle.SINGLE


def _split_after(text: str, marker: str) -> str:
    parts = text.split(marker)
    if len(parts) < 2:
        raise MalformedPayloadError(f"marker {marker} not found")
    return parts[1]


def extract_fields(body: bytes | str) -> ExtractedFields:
    """Split a raw payload on its quoted markers.

    Each marker is searched for in the text that follows the previous one,
    so markers that are missing or out of order both surface as a split
    with too few parts.

    Args:
        body: Raw payload bytes or text.

    Returns:
        ExtractedFields holding the raw substrings and the quote style.

    Raises:
        MalformedPayloadError: A marker is absent or out of order.
    """
    text = decode_payload(body)
    style = detect_quote_style(text)
    try:
        rest = _split_after(text, style.marker("host"))
        raw: dict[str, str] = {}
        for label, next_label in zip(MARKERS, MARKERS[1:]):
            parts = rest.split(style.marker(next_label))
            if len(parts) < 2:
                raise MalformedPayloadError(
                    f"marker {style.marker(next_label)} not found after {label}"
                )
            raw[label] = parts[0]
            rest = parts[1]
        raw["server"] = rest
    except MalformedPayloadError as exc:
        raise exc.with_payload(text)
    return ExtractedFields(quote_style=style, **raw)
