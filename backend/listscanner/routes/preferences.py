"""
List Scanner Backend — Consent and Usage Routes
================================================

What:  The privacy consent that gates cloud OCR, and the weekly OCR usage
       counter with its cost warning.

    GET  /api/consent                 → current answer (false until given)
    PUT  /api/consent                 → record the user's answer
    GET  /api/usage                   → this week's scan count and warning state
    POST /api/usage/warning/dismiss   → hide the cost warning until next week
"""

from fastapi import APIRouter, Depends

from listscanner.repositories.usage_repository import UsageSummary
from listscanner.result import unwrap
from listscanner.routes.dependencies import AppServices, get_services
from listscanner.schemas.common import ErrorResponse
from listscanner.schemas.preferences import ConsentRequest, ConsentResponse, UsageResponse

router = APIRouter(prefix="/api", tags=["Preferences"])

_SERVER_ERROR = {500: {"description": "Preferences could not be read or saved", "model": ErrorResponse}}


def _usage_response(summary: UsageSummary) -> UsageResponse:
    return UsageResponse(
        weekly_usage=summary.weekly_usage,
        week_start=summary.week_start,
        warning_threshold=summary.warning_threshold,
        show_cost_warning=summary.show_cost_warning,
    )


@router.get("/consent", response_model=ConsentResponse, responses=_SERVER_ERROR, summary="Get the cloud OCR consent")
async def get_consent(services: AppServices = Depends(get_services)) -> ConsentResponse:
    return ConsentResponse(consented=unwrap(await services.consent.has_user_consented()))


@router.put("/consent", response_model=ConsentResponse, responses=_SERVER_ERROR, summary="Give or withdraw the cloud OCR consent")
async def set_consent(body: ConsentRequest, services: AppServices = Depends(get_services)) -> ConsentResponse:
    return ConsentResponse(consented=unwrap(await services.consent.set_user_consent(body.consented)))


@router.get("/usage", response_model=UsageResponse, responses=_SERVER_ERROR, summary="Get this week's OCR usage")
async def get_usage(services: AppServices = Depends(get_services)) -> UsageResponse:
    return _usage_response(unwrap(await services.usage.get_usage_summary()))


@router.post(
    "/usage/warning/dismiss",
    response_model=UsageResponse,
    responses=_SERVER_ERROR,
    summary="Dismiss the cost warning for the rest of the week",
)
async def dismiss_cost_warning(services: AppServices = Depends(get_services)) -> UsageResponse:
    unwrap(await services.usage.mark_warning_shown())
    return _usage_response(unwrap(await services.usage.get_usage_summary()))
