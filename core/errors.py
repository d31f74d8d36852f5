"""
core/errors.py -- Error taxonomy shared by the core, the stores and the API.

Every failure a request can end in is one of these. Each class carries the
HTTP status it maps to and a stable machine-readable code; api/main.py owns
the single exception handler that turns them into the JSON error envelope.

The constructor message is for the server log only. Clients always receive
the class-level public_message, never the internal detail.
"""


class ServiceError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    public_message: str = "Request Failed"


class OriginRejected(ServiceError):
    status_code = 403
    code = "origin_rejected"
    public_message = "Forbidden: Invalid origin"


class AccessDenied(ServiceError):
    status_code = 401
    code = "access_denied"
    public_message = "Invalid access password"


class RateLimited(ServiceError):
    status_code = 429
    code = "rate_limited"
    public_message = "Too many requests. Please try again later."


class ValidationFailed(ServiceError):
    status_code = 400
    code = "validation_error"
    public_message = "Request validation failed."


class NoDataFound(ServiceError):
    status_code = 404
    code = "not_found"
    public_message = "No data found."

    def __init__(self, public_message: str = "", detail: str = "") -> None:
        super().__init__(detail or public_message)
        if public_message:
            self.public_message = public_message


class PayloadTooLarge(ServiceError):
    status_code = 413
    code = "payload_too_large"
    public_message = "Request body too large."


class UpstreamUnavailable(ServiceError):
    status_code = 500
    code = "upstream_unavailable"
    public_message = "Request Failed"


class ConfigurationMissing(ServiceError):
    status_code = 500
    code = "configuration_missing"
    public_message = "Request Failed"


class FeatureDisabled(ServiceError):
    status_code = 503
    code = "feature_disabled"
    public_message = "This feature is currently disabled."
