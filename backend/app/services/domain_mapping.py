"""
Company-domain mapping store.

Reads and maintains the crm_company_domain_mapping table, which maps a sender's
email domain to a known company name. The table is learned opportunistically:
a row is inserted the first time the model extracts a company name for an
unknown domain, and its match counter is bumped on every later hit.

Write operations are best-effort. A failed counter update or insert is logged
and swallowed so that maintaining the learning table never blocks the
extraction response.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional

from app.db import supabase_admin
from app.models.inquiry import DomainMapping

logger = logging.getLogger(__name__)

DOMAIN_MAPPING_TABLE = "crm_company_domain_mapping"

# Confidence stored for a learned mapping when the model gave no score
DEFAULT_MAPPING_CONFIDENCE = 0.7


def extract_address(email_address: Optional[str]) -> str:
    """
    Return the bare address from a sender field, unwrapping "Name <addr>".

    Examples:
        "Budi <budi@pharmaco.id>"  -> "budi@pharmaco.id"
        " buyer@pharmaco.id "      -> "buyer@pharmaco.id"
        None                       -> ""
    """
    if not email_address:
        return ""

    match = re.search(r"<([^>]+)>", email_address)
    addr = match.group(1) if match else email_address
    return addr.strip()


def extract_domain(email_address: Optional[str]) -> Optional[str]:
    """
    Return the lowercased domain of an email address, or None.

    The domain is the text between the first and second "@".

    Examples:
        "buyer@PharmaCo.ID"        -> "pharmaco.id"
        "Budi <budi@pharmaco.id>"  -> "pharmaco.id"
        "a@b.com@c.com"            -> "b.com"
        "no-at-sign"               -> None
        "trailing@"                -> None
    """
    parts = extract_address(email_address).split("@")
    if len(parts) < 2:
        return None

    domain = parts[1].strip().lower()
    return domain or None


def _fire_and_forget(description: str, operation: Callable[[], object]) -> None:
    """Run a side-effect write, logging and swallowing any failure."""
    try:
        operation()
    except Exception as e:
        logger.warning(f"{description} failed (ignored): {e}")


def lookup_domain_mapping(domain: str) -> Optional[DomainMapping]:
    """
    Point lookup of a mapping row by email domain.

    A failed query is logged and treated as "no mapping" so the request can
    still fall through to model extraction.
    """
    try:
        result = (
            supabase_admin.table(DOMAIN_MAPPING_TABLE)
            .select("email_domain, company_name, confidence_score, match_count")
            .eq("email_domain", domain)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.warning(f"Domain mapping lookup failed for '{domain}': {e}")
        return None

    if not result.data:
        return None

    return DomainMapping(**result.data[0])


def record_domain_match(mapping: DomainMapping) -> None:
    """
    Increment a mapping's match counter and stamp last_matched (fire-and-forget).

    The counter is read-then-written from the looked-up row, so concurrent
    requests for the same domain can under-count.
    """
    now = datetime.now(timezone.utc).isoformat()

    _fire_and_forget(
        f"Match counter update for '{mapping.email_domain}'",
        lambda: (
            supabase_admin.table(DOMAIN_MAPPING_TABLE)
            .update({
                "match_count": (mapping.match_count or 0) + 1,
                "last_matched": now,
            })
            .eq("email_domain", mapping.email_domain)
            .execute()
        ),
    )


def learn_domain_mapping(
    domain: str,
    company_name: str,
    confidence_score: Optional[float] = None,
) -> None:
    """Insert a new unverified mapping row for a domain (fire-and-forget)."""
    row = {
        "email_domain": domain,
        "company_name": company_name,
        "confidence_score": (
            confidence_score if confidence_score is not None else DEFAULT_MAPPING_CONFIDENCE
        ),
        "is_verified": False,
        "match_count": 1,
    }

    logger.info(f"Learning domain mapping: {domain} -> {company_name!r}")
    _fire_and_forget(
        f"Domain mapping insert for '{domain}'",
        lambda: supabase_admin.table(DOMAIN_MAPPING_TABLE).insert(row).execute(),
    )
