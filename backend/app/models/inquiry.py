"""
Pydantic models for the pharma email parsing endpoint.

Models:
  EmailParseRequest   — inbound request body (camelCase JSON)
  ParsedInquiry       — canonical structured inquiry record
  ParseSuccessResponse / ParseFailureResponse — response envelopes
  DomainMapping       — row from crm_company_domain_mapping
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Fixed display order of purpose tags
PURPOSE_ICON_ORDER = ("price", "coa", "msds", "sample")


class EmailParseRequest(BaseModel):
    """Request body for POST /api/parse-pharma-email."""
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    email_subject: str
    email_body: str
    from_email: str
    from_name: Optional[str] = None


class ParsedInquiry(BaseModel):
    """
    Canonical inquiry record built from the model response.

    Serialized with camelCase keys so the CRM frontend can bind it directly
    to the inquiry form. Frozen: never mutated after construction.
    """
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "frozen": True,
        "use_enum_values": True,
    }

    product_name: str = ""
    specification: Optional[str] = None
    quantity: str = ""
    supplier_name: Optional[str] = None
    supplier_country: Optional[str] = None
    company_name: str
    contact_person: Optional[str] = None
    contact_email: str
    contact_phone: Optional[str] = None
    coa_requested: bool = False
    msds_requested: bool = False
    sample_requested: bool = False
    price_requested: bool = True
    purpose_icons: List[str] = Field(default_factory=lambda: ["price"], min_length=1)
    delivery_date_expected: Optional[str] = None
    urgency: Urgency = Urgency.MEDIUM
    remarks: Optional[str] = None
    confidence: ConfidenceLevel = ConfidenceLevel.MEDIUM
    confidence_score: float = Field(ge=0.0, le=1.0)
    detected_language: str = "unknown"
    auto_detected_company: bool = False
    auto_detected_contact: bool = False


class ParseSuccessResponse(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    success: bool = True
    data: ParsedInquiry
    raw_ai_response: Dict[str, Any]


class ParseFailureResponse(BaseModel):
    """
    Failure envelope.

    fallback_data is only set in degraded mode (no model credential) so the
    caller can still create a minimally populated inquiry.
    """
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    success: bool = False
    error: str
    fallback_data: Optional[ParsedInquiry] = None


class DomainMapping(BaseModel):
    """crm_company_domain_mapping record from the database."""
    model_config = {"extra": "ignore"}

    email_domain: str
    company_name: str
    confidence_score: Optional[float] = None
    is_verified: bool = False
    match_count: int = 0
    last_matched: Optional[str] = None
