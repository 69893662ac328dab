"""End-to-end parsing of one raw payload into a MetricPoint."""

import logging
from dataclasses import dataclass

from zbxingest.core.assemble import assemble_point
from zbxingest.core.classify import classify_with_rule
from zbxingest.core.exceptions import IngestError
from zbxingest.core.extract import decode_payload, extract_fields
from zbxingest.core.messages import build_message
from zbxingest.core.models import MetricPoint, TypedMetricMessage
from zbxingest.core.normalize import normalize_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseResult:
    """Intermediate and final products of one pipeline run.

    Attributes:
        message: The typed message built from the payload.
        rule: Name of the classification rule that decided the key.
        point: The assembled point.
    """

    message: TypedMetricMessage
    rule: str
    point: MetricPoint


def parse_message(body: bytes | str) -> TypedMetricMessage:
    """Run the extractor, normalizer and builder over *body*."""
    return build_message(normalize_fields(extract_fields(body)))


def run_pipeline(body: bytes | str) -> ParseResult:
    """Parse *body* through every stage.

    Raises:
        IngestError: Any stage failed; ``payload`` holds the decoded body.
    """
    try:
        message = parse_message(body)
        rule, structured = classify_with_rule(message.key, message.value)
        point = assemble_point(message, structured)
    except IngestError as exc:
        raise exc.with_payload(decode_payload(body))
    logger.debug("key %r classified by rule %s", message.key, rule)
    return ParseResult(message=message, rule=rule, point=point)


def parse_payload(body: bytes | str) -> MetricPoint:
    """Turn one raw payload into a MetricPoint.

    Raises:
        MalformedPayloadError: Markers missing or out of order.
        TimestampParseError: The clock is not an integer.
        ValueParseError: A numeric value is not a float.
        PointConstructionError: The point cannot be encoded.
    """
    return run_pipeline(body).point
