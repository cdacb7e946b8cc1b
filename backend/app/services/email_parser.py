"""
Pharma email parsing pipeline.

Turns one inbound email into a ParsedInquiry:

  1. Resolve the sender domain against the learned company-domain table.
  2. Without an Anthropic credential, stop and build a low-confidence fallback
     record from the sender fields alone (degraded mode).
  3. Otherwise classify + extract with Claude, normalize the response, resolve
     the company name (domain mapping > extracted > "Unknown Company"), and
     learn a new domain mapping when one was missing.

No HTTP concerns live here; the router maps ParseOutcome to status codes.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from app.models.inquiry import EmailParseRequest, ParsedInquiry
from app.services.domain_mapping import (
    extract_address,
    extract_domain,
    learn_domain_mapping,
    lookup_domain_mapping,
    record_domain_match,
)
from app.services.extractor import build_user_prompt, extract_inquiry_with_claude
from app.services.normalizer import normalize_ai_response

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown Company"
FALLBACK_CONFIDENCE_SCORE = 0.3

MISSING_API_KEY_ERROR = (
    "Anthropic API key not configured. "
    "Please add ANTHROPIC_API_KEY to the backend environment."
)


@dataclass
class ParseOutcome:
    """
    Result of one pipeline run.

    degraded=True means extraction was skipped (no credential); inquiry then
    holds the fallback record and error explains why.
    """
    inquiry: ParsedInquiry
    raw_ai_response: dict = field(default_factory=dict)
    degraded: bool = False
    error: Optional[str] = None


def _get_api_key() -> Optional[str]:
    api_key = os.getenv("ANTHROPIC_API_KEY", "").strip()
    return api_key or None


def build_fallback_inquiry(
    request: EmailParseRequest,
    sender_address: str,
    company_from_domain: Optional[str],
    auto_detected_company: bool,
) -> ParsedInquiry:
    """Minimal low-confidence record built only from sender fields and the domain lookup."""
    return ParsedInquiry(
        product_name="",
        specification=None,
        quantity="",
        company_name=company_from_domain or UNKNOWN_COMPANY,
        contact_person=request.from_name or None,
        contact_email=sender_address,
        coa_requested=False,
        msds_requested=False,
        sample_requested=False,
        price_requested=True,
        purpose_icons=["price"],
        urgency="medium",
        confidence="low",
        confidence_score=FALLBACK_CONFIDENCE_SCORE,
        detected_language="unknown",
        auto_detected_company=auto_detected_company,
        auto_detected_contact=False,
    )


def parse_pharma_email(request: EmailParseRequest) -> ParseOutcome:
    """
    Run the full parsing pipeline for one email.

    Raises:
        ModelAPIError: the Claude call failed.
        ValueError: the model reply was not a JSON object.
    """
    sender_address = extract_address(request.from_email) or request.from_email
    domain = extract_domain(sender_address)
    company_from_domain: Optional[str] = None
    auto_detected_company = False

    if domain:
        mapping = lookup_domain_mapping(domain)
        if mapping:
            company_from_domain = mapping.company_name
            auto_detected_company = True
            logger.info(f"Domain {domain} matched known company {company_from_domain!r}")
            record_domain_match(mapping)

    api_key = _get_api_key()
    if not api_key:
        logger.warning("ANTHROPIC_API_KEY not set — returning fallback inquiry without extraction")
        return ParseOutcome(
            inquiry=build_fallback_inquiry(
                request, sender_address, company_from_domain, auto_detected_company
            ),
            degraded=True,
            error=MISSING_API_KEY_ERROR,
        )

    user_prompt = build_user_prompt(
        email_subject=request.email_subject,
        email_body=request.email_body,
        from_email=sender_address,
        from_name=request.from_name,
        known_company=company_from_domain,
    )
    ai_response = extract_inquiry_with_claude(user_prompt, api_key=api_key)

    normalized = normalize_ai_response(ai_response)

    extracted_company = normalized["company_name"]
    final_company_name = company_from_domain or extracted_company or UNKNOWN_COMPANY

    if not company_from_domain and extracted_company and domain:
        learn_domain_mapping(
            domain,
            extracted_company,
            confidence_score=normalized["reported_confidence_score"],
        )

    if not normalized["is_valid_inquiry"]:
        logger.info(
            f"Email from {request.from_email} is not a genuine inquiry"
            + (f": {normalized['rejection_reason']}" if normalized["rejection_reason"] else "")
        )

    inquiry = ParsedInquiry(
        product_name=normalized["product_name"],
        specification=normalized["specification"],
        quantity=normalized["quantity"],
        supplier_name=normalized["supplier_name"],
        supplier_country=normalized["supplier_country"],
        company_name=final_company_name,
        contact_person=normalized["contact_person"] or request.from_name or None,
        contact_email=sender_address,
        contact_phone=normalized["contact_phone"],
        coa_requested=normalized["coa_requested"],
        msds_requested=normalized["msds_requested"],
        sample_requested=normalized["sample_requested"],
        price_requested=normalized["price_requested"],
        purpose_icons=normalized["purpose_icons"],
        delivery_date_expected=normalized["delivery_date_expected"],
        urgency=normalized["urgency"],
        remarks=normalized["remarks"],
        confidence=normalized["confidence"],
        confidence_score=normalized["confidence_score"],
        detected_language=normalized["detected_language"],
        auto_detected_company=auto_detected_company,
        auto_detected_contact=False,
    )

    logger.info(
        f"Parsed inquiry from {request.from_email}: product={inquiry.product_name!r}, "
        f"confidence={inquiry.confidence} ({inquiry.confidence_score})"
    )

    return ParseOutcome(inquiry=inquiry, raw_ai_response=ai_response)
