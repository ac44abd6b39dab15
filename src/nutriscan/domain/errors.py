"""Error taxonomy for the scan pipeline and coach."""

MAX_IMAGE_BYTES = 5 * 1024 * 1024
GATEWAY_UNREACHABLE_STATUS = 503


class NutriScanError(Exception):
    """Base error for user-facing failures."""

    message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class AcquisitionError(NutriScanError):
    """Input could not be acquired from the camera or an upload."""

    remediation: str = "manual_entry"


class CameraPermissionDeniedError(AcquisitionError):
    message = (
        "Camera access denied. Please allow camera access in your system settings."
    )


class CameraNotFoundError(AcquisitionError):
    message = "No camera found on this device."


class InvalidImageError(AcquisitionError):
    message = "Please upload an image file."
    remediation = "reupload"


class ImageTooLargeError(InvalidImageError):
    message = "Please upload an image smaller than 5MB."


class ProductNotFoundError(NutriScanError):
    """Every product lookup strategy missed."""

    message = (
        "Could not find product information. "
        "Please try uploading a photo of the nutrition label instead."
    )
    suggestion = "upload_label"


class AIContractError(NutriScanError):
    """Model reply did not contain the expected JSON."""

    message = "Analysis failed. Please try again."

    def __init__(self, message: str | None = None, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class GatewayError(NutriScanError):
    """Non-success status from the AI gateway."""

    message = "AI gateway error"

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        super().__init__()
        self.status_code = status_code
        self.detail = detail


class CoachUnavailableError(GatewayError):
    message = "Failed to get response from NutriCoach"


class RateLimitedError(GatewayError):
    message = "Rate limits exceeded, please try again later."


class QuotaExhaustedError(GatewayError):
    message = "AI usage limit reached. Please try again later."


def gateway_error_for_status(
    status_code: int,
    detail: str | None = None,
    fallback: type[GatewayError] = GatewayError,
) -> GatewayError:
    """Map an HTTP status from the gateway to a typed error."""
    if status_code == 429:  # noqa: PLR2004
        return RateLimitedError(status_code, detail)
    if status_code == 402:  # noqa: PLR2004
        return QuotaExhaustedError(status_code, detail)
    return fallback(status_code, detail)
