class BillingError(Exception):
    """Base class for errors raised by the relay.

    `status_code` is the HTTP status a route answers with, `code` a stable
    machine-readable identifier returned next to the message.
    """

    status_code = 500
    code = "billing_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class SignatureInvalid(BillingError):
    status_code = 400
    code = "signature_invalid"


class EnrichmentFailed(BillingError):
    status_code = 500
    code = "enrichment_failed"


class SinkFailure(BillingError):
    """Raised inside a sink; always caught and logged by the sink writer."""

    code = "sink_failure"

    def __init__(self, sink: str, message: str = ""):
        super().__init__(message)
        self.sink = sink


class ValidationError(BillingError):
    status_code = 400
    code = "validation_error"


class UpstreamProviderError(BillingError):
    status_code = 500
    code = "upstream_provider_error"


class NotFound(BillingError):
    status_code = 404
    code = "not_found"
