"""Error taxonomy shared by services and the HTTP layer."""

POLICY_BLOCK_MESSAGE = (
    "We can't process images that may include minors, celebrities, "
    "or sensitive/controversial topics."
)


class PhotoRestoreError(Exception):
    """Base error rendered to clients as a JSON payload."""

    status_code = 500
    error = "internal_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.error)
        self.message = message

    def payload(self) -> dict[str, object]:
        """Return the JSON body for this error."""
        body: dict[str, object] = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


class InvalidRequest(PhotoRestoreError):
    """Malformed input; not retried."""

    status_code = 400

    def payload(self) -> dict[str, object]:
        return {"error": self.message or "Invalid request"}


class PayloadTooLarge(PhotoRestoreError):
    status_code = 413

    def payload(self) -> dict[str, object]:
        return {"error": self.message or "Image too large"}


class Forbidden(PhotoRestoreError):
    status_code = 403
    error = "forbidden"


class PaymentNotCompleted(InvalidRequest):
    def __init__(self) -> None:
        super().__init__("Payment not completed")


class RateLimited(PhotoRestoreError):
    """Raised when a fixed window is exhausted."""

    status_code = 429
    error = "rate_limited"

    def __init__(self, limit: int, reset_at: float) -> None:
        super().__init__(None)
        self.limit = limit
        self.reset_at = reset_at

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class PaymentRequired(PhotoRestoreError):
    """Raised when neither the free restore nor credits are available."""

    status_code = 402
    error = "payment_required"

    def __init__(self, credits: int) -> None:
        super().__init__("Not enough credits. Each image costs 100 credits.")
        self.credits = credits

    def payload(self) -> dict[str, object]:
        return {
            "error": self.error,
            "message": self.message,
            "credits": self.credits,
            "freeRemaining": 0,
        }


class ContentBlocked(PhotoRestoreError):
    """Raised when every provider refused the request on policy grounds."""

    status_code = 422
    error = "blocked"

    def __init__(self) -> None:
        super().__init__(POLICY_BLOCK_MESSAGE)


class UpstreamFailure(PhotoRestoreError):
    """Raised when no provider produced an image."""

    status_code = 502
    error = "upstream_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Unable to process this image right now.")


class ProviderNotConfigured(PhotoRestoreError):
    error = "Server misconfigured"

    def __init__(self) -> None:
        super().__init__("No image generation provider API key is configured")

    def payload(self) -> dict[str, object]:
        return {"error": self.error, "detail": self.message}


class PaymentNotConfigured(PhotoRestoreError):
    def payload(self) -> dict[str, object]:
        return {"error": "Stripe not configured"}


class PaymentProviderError(PhotoRestoreError):
    """Raised when the payment provider rejects or fails a call."""

    def payload(self) -> dict[str, object]:
        return {"error": self.message or "Payment provider error"}
