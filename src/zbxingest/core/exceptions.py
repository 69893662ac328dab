"""Exception hierarchy for the ingestion pipeline.

Every pipeline stage raises its own ``IngestError`` subclass. All of them
are recoverable at message granularity: the consumer logs the failure with
its ``stage`` and discards the message, other messages are unaffected.
"""


class IngestError(Exception):
    """Root of the ingestion exception hierarchy.

    Attributes:
        stage: Pipeline stage that raised the error. Defaults to the class
            stage; a later stage reusing an error kind overrides it.
        payload: Raw payload text being processed, when known.
    """

    stage = "ingest"

    def __init__(
        self,
        message: str,
        payload: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message)
        self.payload = payload
        if stage is not None:
            self.stage = stage

    def with_payload(self, payload: str) -> "IngestError":
        """Attach the raw payload if none was recorded yet."""
        if self.payload is None:
            self.payload = payload
        return self


class MalformedPayloadError(IngestError):
    """A marker is missing or out of order, or a field has no quoted value."""

    stage = "extract"


class TimestampParseError(IngestError):
    """The clock substring is not a base-10 integer."""

    stage = "normalize"


class ValueParseError(IngestError):
    """A numeric value could not be parsed as a float."""

    stage = "build"


class PointConstructionError(IngestError):
    """The assembled point cannot be encoded for the sink."""

    stage = "assemble"
