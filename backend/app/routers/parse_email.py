"""
Pharma email parsing router.

Endpoints:
  POST    /   — parse one inbound email into a structured inquiry
  OPTIONS /   — CORS preflight

Response envelopes:
  200  {success: true,  data, rawAiResponse}
  503  {success: false, error, fallbackData}   ANTHROPIC_API_KEY not configured
  500  {success: false, error}                 model/API failure, bad model output,
                                               or an unreadable request body

Emails judged not to be genuine inquiries are NOT errors: they return 200
with confidence floored to "low" / 0.1 and the caller decides what to do.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from app.cors import get_cors_headers
from app.models.inquiry import (
    EmailParseRequest,
    ParseFailureResponse,
    ParseSuccessResponse,
)
from app.services.email_parser import parse_pharma_email

logger = logging.getLogger(__name__)

router = APIRouter()


@router.options("")
def parse_email_preflight():
    return Response(status_code=200, headers=get_cors_headers())


@router.post("")
def parse_email(payload: EmailParseRequest):
    """
    Classify and extract a pharmaceutical inquiry from an inbound email.

    The sender domain is resolved against the learned company-domain table
    before the model is called; a known company always wins over the
    model-extracted one.
    """
    logger.info(
        f"Parse request received — from={payload.from_email!r}, "
        f"subject={payload.email_subject!r}"
    )

    try:
        outcome = parse_pharma_email(payload)
    except Exception as exc:
        logger.exception(f"Error parsing email from {payload.from_email!r}")
        failure = ParseFailureResponse(error=str(exc) or "Failed to parse email")
        return JSONResponse(
            status_code=500,
            content=failure.model_dump(by_alias=True, exclude={"fallback_data"}),
            headers=get_cors_headers(),
        )

    if outcome.degraded:
        failure = ParseFailureResponse(error=outcome.error, fallback_data=outcome.inquiry)
        return JSONResponse(
            status_code=503,
            content=failure.model_dump(by_alias=True, mode="json"),
            headers=get_cors_headers(),
        )

    success = ParseSuccessResponse(
        data=outcome.inquiry,
        raw_ai_response=outcome.raw_ai_response,
    )
    return JSONResponse(
        status_code=200,
        content=success.model_dump(by_alias=True, mode="json"),
        headers=get_cors_headers(),
    )
