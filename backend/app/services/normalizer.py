"""
Normalization service for inquiry extraction results.

The model does not reliably use the key names the prompt asks for: the same
field may come back as "companyName", "company_name" or "company" across
calls. _FIELD_ALIASES is the single table of accepted key names per logical
field; resolve_field() reads it in order and takes the first non-empty value.

On top of alias resolution this module coerces loosely typed values (string
booleans, numeric strings, day-first dates) and derives the values the record
must not take from the model verbatim: purpose_icons and the confidence floor
for emails that are not genuine inquiries.
"""

import datetime
import logging
import re
from typing import Any, List, Optional

from app.models.inquiry import ConfidenceLevel, PURPOSE_ICON_ORDER, Urgency

logger = logging.getLogger(__name__)

# Ordered alias keys per logical field (first non-empty match wins)
_FIELD_ALIASES = {
    "product_name": ("productName", "product_name"),
    "specification": ("specification", "spec", "grade"),
    "quantity": ("quantity",),
    "supplier_name": ("supplierName", "supplier_name", "supplier"),
    "supplier_country": ("supplierCountry", "supplier_country", "country"),
    "company_name": ("companyName", "company_name", "company"),
    "contact_person": ("contactPerson", "contact_person", "contact"),
    "contact_phone": ("contactPhone", "contact_phone", "phone", "whatsapp"),
    "coa_requested": ("coaRequested", "coa_requested", "coa"),
    "msds_requested": ("msdsRequested", "msds_requested", "msds"),
    "sample_requested": ("sampleRequested", "sample_requested", "sample"),
    "price_requested": ("priceRequested", "price_requested", "price"),
    "delivery_date_expected": ("deliveryDateExpected", "delivery_date", "deliveryDate"),
    "urgency": ("urgency",),
    "remarks": ("remarks", "notes", "additional_info"),
    "confidence": ("confidence",),
    "confidence_score": ("confidenceScore", "confidence_score"),
    "detected_language": ("detectedLanguage", "language"),
    "is_inquiry": ("isInquiry", "is_inquiry"),
    "rejection_reason": ("rejectionReason", "rejection_reason"),
}

# Purpose tag -> boolean field it is derived from
_PURPOSE_FLAGS = {
    "price": "price_requested",
    "coa": "coa_requested",
    "msds": "msds_requested",
    "sample": "sample_requested",
}

_TRUE_STRINGS = {"true", "yes", "y", "1", "ya"}
_FALSE_STRINGS = {"false", "no", "n", "0", "tidak"}

DEFAULT_CONFIDENCE_SCORE = 0.7
MIN_INQUIRY_CONFIDENCE = 0.4
NON_INQUIRY_CONFIDENCE_SCORE = 0.1

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Day-first numeric dates: 03.04.26, 03/04/2026, 3-4-2026
_DAY_FIRST_DATE_RE = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{2}|\d{4})$")

_WRITTEN_DATE_FORMATS = [
    "%d %B %Y",    # "3 April 2026"
    "%d %b %Y",    # "3 Apr 2026"
    "%B %d, %Y",   # "April 3, 2026"
    "%b %d, %Y",   # "Apr 3, 2026"
    "%Y/%m/%d",    # "2026/04/03"
]


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def resolve_field(ai_response: dict, field: str) -> Any:
    """
    Return the first non-empty value among the alias keys for a field.

    False and 0 are real values, not absence. Returns None when no alias
    carries a value.

    Examples:
        {"company": "PT Kimia"}, "company_name"              -> "PT Kimia"
        {"companyName": "", "company": "PT Kimia"}, ...      -> "PT Kimia"
        {"priceRequested": False}, "price_requested"         -> False
    """
    for key in _FIELD_ALIASES[field]:
        value = ai_response.get(key)
        if not _is_empty(value):
            return value
    return None


def coerce_text(value: Any) -> Optional[str]:
    """Strip strings; stringify other scalars; None/empty -> None."""
    if value is None:
        return None
    if isinstance(value, (list, dict)):
        return None
    text = value.strip() if isinstance(value, str) else str(value)
    return text or None


def coerce_bool(value: Any, default: bool = False) -> bool:
    """
    Interpret a loosely typed boolean from the model.

    Examples:
        True     -> True
        "yes"    -> True
        "tidak"  -> False  (Indonesian "no")
        1        -> True
        None     -> default
        "maybe"  -> default
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in _TRUE_STRINGS:
            return True
        if lower in _FALSE_STRINGS:
            return False
    logger.debug("coerce_bool: unrecognised boolean %r, using default", value)
    return default


def coerce_score(value: Any) -> Optional[float]:
    """Parse a confidence score, clamped to [0, 1]. Non-numeric -> None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        logger.debug("coerce_score: non-numeric score %r", value)
        return None
    return min(max(score, 0.0), 1.0)


def normalize_urgency(value: Any) -> str:
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in {u.value for u in Urgency}:
            return lower
    return Urgency.MEDIUM.value


def normalize_confidence(value: Any) -> str:
    if isinstance(value, str):
        lower = value.strip().lower()
        if lower in {c.value for c in ConfidenceLevel}:
            return lower
    return ConfidenceLevel.MEDIUM.value


def normalize_delivery_date(value: Any) -> Optional[str]:
    """
    Convert a delivery date to ISO 8601 (YYYY-MM-DD).

    Numeric dates are read day-first (European/Indonesian order), and
    two-digit years are taken as 20YY.

    Examples:
        "2026-04-03"  -> "2026-04-03"
        "03.04.26"    -> "2026-04-03"
        "03/04/2026"  -> "2026-04-03"
        "3 April 2026"-> "2026-04-03"
        "next month"  -> None
        None          -> None
    """
    if not isinstance(value, str) or not value.strip():
        return None

    stripped = value.strip()

    if _ISO_DATE_RE.match(stripped):
        return stripped

    match = _DAY_FIRST_DATE_RE.match(stripped)
    if match:
        day, month, year = (int(part) for part in match.groups())
        if year < 100:
            year += 2000
        try:
            return datetime.date(year, month, day).isoformat()
        except ValueError:
            logger.debug("normalize_delivery_date: invalid calendar date %r", value)
            return None

    for fmt in _WRITTEN_DATE_FORMATS:
        try:
            return datetime.datetime.strptime(stripped, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue

    logger.debug("normalize_delivery_date: could not parse date string %r", value)
    return None


def derive_purpose_icons(
    price_requested: bool,
    coa_requested: bool,
    msds_requested: bool,
    sample_requested: bool,
) -> List[str]:
    """
    Build purpose tags from the document-request flags, in fixed order.

    Never empty: with no flag set the inquiry is treated as a price request.
    """
    flags = {
        "price_requested": price_requested,
        "coa_requested": coa_requested,
        "msds_requested": msds_requested,
        "sample_requested": sample_requested,
    }
    icons = [tag for tag in PURPOSE_ICON_ORDER if flags[_PURPOSE_FLAGS[tag]]]
    return icons or ["price"]


def is_valid_inquiry(
    is_inquiry: Any,
    confidence_score: float,
    product_name: Optional[str],
) -> bool:
    """
    A genuine inquiry: not explicitly flagged otherwise by the model, scored
    at or above MIN_INQUIRY_CONFIDENCE, and naming a product.
    """
    flagged_not_inquiry = is_inquiry is not None and not coerce_bool(is_inquiry, default=True)
    return (
        not flagged_not_inquiry
        and confidence_score >= MIN_INQUIRY_CONFIDENCE
        and bool(product_name)
    )


def normalize_ai_response(ai_response: dict) -> dict:
    """
    Fold a raw model response into canonical, typed field values.

    This is the main entry point. It returns snake_case keys matching
    ParsedInquiry fields, plus "is_valid_inquiry" and "rejection_reason".
    Sender-derived fields (company resolution, contact email, auto-detect
    flags) are left to the caller.
    """
    price_requested = coerce_bool(
        resolve_field(ai_response, "price_requested"), default=True
    )
    coa_requested = coerce_bool(resolve_field(ai_response, "coa_requested"))
    msds_requested = coerce_bool(resolve_field(ai_response, "msds_requested"))
    sample_requested = coerce_bool(resolve_field(ai_response, "sample_requested"))

    product_name = coerce_text(resolve_field(ai_response, "product_name")) or ""

    reported_score = coerce_score(resolve_field(ai_response, "confidence_score"))
    score = reported_score if reported_score is not None else DEFAULT_CONFIDENCE_SCORE

    valid = is_valid_inquiry(
        resolve_field(ai_response, "is_inquiry"),
        score,
        product_name,
    )

    if valid:
        confidence = normalize_confidence(resolve_field(ai_response, "confidence"))
        confidence_score = score
    else:
        confidence = ConfidenceLevel.LOW.value
        confidence_score = NON_INQUIRY_CONFIDENCE_SCORE

    return {
        "product_name": product_name,
        "specification": coerce_text(resolve_field(ai_response, "specification")),
        "quantity": coerce_text(resolve_field(ai_response, "quantity")) or "",
        "supplier_name": coerce_text(resolve_field(ai_response, "supplier_name")),
        "supplier_country": coerce_text(resolve_field(ai_response, "supplier_country")),
        "company_name": coerce_text(resolve_field(ai_response, "company_name")),
        "contact_person": coerce_text(resolve_field(ai_response, "contact_person")),
        "contact_phone": coerce_text(resolve_field(ai_response, "contact_phone")),
        "coa_requested": coa_requested,
        "msds_requested": msds_requested,
        "sample_requested": sample_requested,
        "price_requested": price_requested,
        "purpose_icons": derive_purpose_icons(
            price_requested, coa_requested, msds_requested, sample_requested
        ),
        "delivery_date_expected": normalize_delivery_date(
            resolve_field(ai_response, "delivery_date_expected")
        ),
        "urgency": normalize_urgency(resolve_field(ai_response, "urgency")),
        "remarks": coerce_text(resolve_field(ai_response, "remarks")),
        "confidence": confidence,
        "confidence_score": confidence_score,
        "reported_confidence_score": reported_score,
        "detected_language": (
            coerce_text(resolve_field(ai_response, "detected_language")) or "unknown"
        ),
        "is_valid_inquiry": valid,
        "rejection_reason": coerce_text(resolve_field(ai_response, "rejection_reason")),
    }
