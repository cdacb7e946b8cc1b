"""
Inquiry extraction service.
Sends an inbound email to Claude with a fixed classification + extraction
prompt and returns the model's JSON object as a plain dict.
"""

import json
import os
from typing import Optional

import anthropic

# Model configuration
MODEL = "claude-sonnet-4-5-20250929"
MAX_TOKENS = 2048
TEMPERATURE = 0.3

SYSTEM_PROMPT = """\
You are an AI assistant specialized in parsing PHARMACEUTICAL INDUSTRY INQUIRY emails ONLY.

CRITICAL: Only extract data from emails that are legitimate pharmaceutical/chemical product inquiries or quotation requests.

REJECT these email types (set isInquiry: false):
- Marketing emails (Amazon, Google, YouTube, Instagram, StackBlitz, etc.)
- Social media notifications
- Promotional content
- Service announcements
- Newsletter subscriptions
- Account confirmations
- Partnership pitches from marketing agencies
- Any email NOT related to pharmaceutical/chemical product purchases

ACCEPT only these:
- Emails requesting price quotations for pharmaceutical/chemical products
- Inquiry emails with product names like APIs, excipients, raw materials
- Emails with pharmaceutical technical terms (API, USP, EP, BP, GMP, COA, MSDS, etc.)
- Business inquiries from pharmaceutical companies, distributors, or manufacturers
- Keywords: "Permintaan Penawaran Harga" (Indonesian for price quotation request), "quotation", "inquiry", "penawaran", "bahan baku"

Extract information for VALID inquiries:
1. Product name (e.g., "Sodium Hypophosphite Pharma Grade", "Triamcinolone Acetonide USP", "Valacyclovir HCL Hydrate")
2. Specification/Grade (e.g., "BP, Powder", "USP", "EP", "IP", "JP", "GMP Certified", "Pharma Grade", "Food Grade", "Technical Grade", "India BP, Powder 150 KG")
3. Quantity with units (e.g., "150 KG", "2 MT", "500 KG")
4. Supplier/Manufacturer name if mentioned (e.g., "Hetero Drugs", "Sun Pharma", "Aurobindo")
5. Country of origin if mentioned (e.g., "India", "China", "USA")
6. Company name from signature
7. Contact person name
8. Whether COA (Certificate of Analysis) is requested
9. Whether MSDS (Material Safety Data Sheet) is requested
10. Whether sample is requested
11. Whether price quotation is requested
12. Expected delivery date (parse formats like "03.04.26", "DD.MM.YY", "DD/MM/YYYY" and convert to YYYY-MM-DD; dates are day-first, never US month-first)
13. Urgency level
14. Phone/WhatsApp number
15. Detect language (Indonesian/English)
16. Confidence score (0.0 to 1.0) - Set BELOW 0.4 for non-pharma emails

Common pharmaceutical specifications to extract:
- Pharmacopeia standards: BP (British), USP (US), EP (European), IP (Indian), JP (Japanese)
- Physical forms: Powder, Granules, Liquid, Crystals, Tablets
- Grades: Pharma Grade, Food Grade, Industrial Grade, Technical Grade, GMP Certified
- Combine specification parts: "India BP, Powder 150 KG" -> specification: "India BP, Powder"

Respond with ONLY a single valid JSON object matching this schema:
{
  "isInquiry": boolean,
  "productName": string,
  "specification": string | null,
  "quantity": string,
  "supplierName": string | null,
  "supplierCountry": string | null,
  "companyName": string,
  "contactPerson": string | null,
  "contactPhone": string | null,
  "coaRequested": boolean,
  "msdsRequested": boolean,
  "sampleRequested": boolean,
  "priceRequested": boolean,
  "purposeIcons": string[],
  "deliveryDateExpected": "YYYY-MM-DD" | null,
  "urgency": "low" | "medium" | "high" | "urgent",
  "remarks": string | null,
  "confidence": "high" | "medium" | "low",
  "confidenceScore": number,
  "detectedLanguage": string,
  "rejectionReason": string | null
}

IMPORTANT: deliveryDateExpected must be in YYYY-MM-DD format. Parse dates like "03.04.26" as "2026-04-03".
"""


class ModelAPIError(RuntimeError):
    """The language model API call did not complete successfully."""


def build_user_prompt(
    email_subject: str,
    email_body: str,
    from_email: str,
    from_name: Optional[str] = None,
    known_company: Optional[str] = None,
) -> str:
    """Render the per-email user message, including the domain company hint if known."""
    known_company_line = (
        f"\nKNOWN COMPANY (from domain): {known_company}\n" if known_company else ""
    )

    return (
        "Parse this pharmaceutical inquiry email:\n\n"
        f"SUBJECT: {email_subject}\n"
        f"FROM: {from_name or ''} <{from_email}>\n"
        f"{known_company_line}\n"
        "BODY:\n"
        f"{email_body}\n\n"
        "Respond with a JSON object containing the extracted information."
    )


def parse_json_object(raw_text: str) -> dict:
    """
    Parse the model's reply into a dict.

    Handles markdown code fences. Raises ValueError if the reply is not a
    JSON object.
    """
    json_text = raw_text.strip()
    if json_text.startswith("```"):
        lines = json_text.split("\n")
        lines = [l for l in lines if not l.strip().startswith("```")]
        json_text = "\n".join(lines)

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Model returned invalid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError(
            f"Model returned JSON {type(parsed).__name__}, expected an object"
        )

    return parsed


def extract_inquiry_with_claude(
    user_prompt: str,
    api_key: str = None,
) -> dict:
    """
    Send one email to Claude for classification and extraction.

    Returns:
        The raw model response as a dict (keys as the model chose them).

    Raises:
        ModelAPIError: the API call failed; the upstream error text is kept verbatim.
        ValueError: the reply was not a JSON object.
    """
    if api_key is None:
        api_key = os.getenv("ANTHROPIC_API_KEY")

    client = anthropic.Anthropic(api_key=api_key)

    try:
        response = client.messages.create(
            model=MODEL,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": user_prompt}],
        )
    except anthropic.APIError as e:
        raise ModelAPIError(f"Anthropic API error: {e}") from e

    raw_text = response.content[0].text

    return parse_json_object(raw_text)
