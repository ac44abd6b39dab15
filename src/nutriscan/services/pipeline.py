"""Scan pipeline entry point."""

import logging
from dataclasses import dataclass, replace

from nutriscan.domain.errors import (
    AcquisitionError,
    AIContractError,
    GatewayError,
    NutriScanError,
    ProductNotFoundError,
    QuotaExhaustedError,
    RateLimitedError,
)
from nutriscan.domain.nutrition import ImagePayload, NutritionRecord
from nutriscan.domain.profiles import UserProfile
from nutriscan.domain.scanning import FailureKind, ScanFailure, ScanSession
from nutriscan.services.analysis import AnalysisOrchestrator
from nutriscan.services.labels import LabelExtractor, validate_image
from nutriscan.services.products import ProductResolver

_logger = logging.getLogger(__name__)


@dataclass
class ScanPipeline:
    """Resolve nutrition data for one scan and analyze it."""

    resolver: ProductResolver
    label_extractor: LabelExtractor
    orchestrator: AnalysisOrchestrator

    async def run(
        self,
        *,
        barcode: str | None = None,
        image: ImagePayload | None = None,
        profile: UserProfile | None = None,
    ) -> ScanSession:
        """Run one scan; failures are returned on the session, never raised."""
        barcode = barcode.strip() if barcode else None
        session = ScanSession.start(barcode=barcode)
        if not barcode and image is None:
            return session.failed(
                ScanFailure(
                    kind=FailureKind.ACQUISITION,
                    message="Please provide a barcode or a label photo.",
                    status_code=400,
                )
            )
        try:
            if image is not None:
                validate_image(image)
            record = await self._resolve(barcode, image)
            analysis = await self.orchestrator.analyze(
                record, profile if profile and not profile.is_empty() else None
            )
        except AcquisitionError as exc:
            return session.failed(
                ScanFailure(
                    kind=FailureKind.ACQUISITION,
                    message=exc.message,
                    status_code=400,
                    suggestion=exc.remediation,
                )
            )
        except ProductNotFoundError:
            _logger.info("No product information for barcode %s", barcode)
            return session.failed(
                ScanFailure(
                    kind=FailureKind.NOT_FOUND,
                    message=ProductNotFoundError.message,
                    status_code=400,
                    suggestion=ProductNotFoundError.suggestion,
                )
            )
        except AIContractError as exc:
            _logger.error("AI contract violation: %s; raw=%r", exc, exc.raw)
            return session.failed(
                ScanFailure(
                    kind=FailureKind.AI_CONTRACT,
                    message=AIContractError.message,
                    status_code=500,
                )
            )
        except GatewayError as exc:
            _logger.error("AI gateway error %s: %s", exc.status_code, exc.detail)
            return session.failed(_gateway_failure(exc))
        except Exception:
            _logger.exception("Unexpected scan failure for barcode %s", barcode)
            return session.failed(
                ScanFailure(
                    kind=FailureKind.UNEXPECTED,
                    message=NutriScanError.message,
                    status_code=500,
                )
            )
        _logger.info(
            "Analysis complete for %s (score=%s)",
            record.product_name,
            analysis.health_score,
        )
        return session.completed(record, analysis)

    async def _resolve(
        self, barcode: str | None, image: ImagePayload | None
    ) -> NutritionRecord:
        if barcode:
            try:
                return await self.resolver.resolve(barcode)
            except ProductNotFoundError:
                if image is None:
                    raise
                _logger.info("Barcode %s missed; falling back to label photo", barcode)
        if image is None:
            raise ProductNotFoundError
        record = await self.label_extractor.extract(image)
        if barcode and record.barcode is None:
            return replace(record, barcode=barcode)
        return record


def _gateway_failure(exc: GatewayError) -> ScanFailure:
    if isinstance(exc, RateLimitedError):
        return ScanFailure(
            kind=FailureKind.RATE_LIMITED,
            message=RateLimitedError.message,
            status_code=429,
        )
    if isinstance(exc, QuotaExhaustedError):
        return ScanFailure(
            kind=FailureKind.QUOTA_EXHAUSTED,
            message=QuotaExhaustedError.message,
            status_code=402,
        )
    return ScanFailure(
        kind=FailureKind.GATEWAY, message=GatewayError.message, status_code=500
    )
