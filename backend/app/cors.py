"""
CORS configuration shared by the app middleware and the JSON envelopes.

With the default (any origin) every reply carries Access-Control-Allow-Origin: *.
When CORS_ORIGINS restricts the origins, the allow-origin header is left to
CORSMiddleware, which only echoes origins on the list.
"""

import os
from typing import Dict, List

CORS_ALLOW_METHODS = ["POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization", "X-Client-Info", "Apikey"]


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Defaults to ["*"] (any origin). Set CORS_ORIGINS to a comma-separated list
    to restrict it, e.g.:
        CORS_ORIGINS=https://crm.example.com,http://localhost:5173

    Duplicates are removed while preserving order.
    """
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if not cors_env:
        return ["*"]

    seen: set = set()
    origins: List[str] = []
    for origin in (o.strip() for o in cors_env.split(",")):
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins or ["*"]


def get_cors_headers() -> Dict[str, str]:
    """Headers attached to every parse-email reply and the bare OPTIONS answer."""
    headers = {
        "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
        "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
    }
    if "*" in get_cors_origins():
        headers["Access-Control-Allow-Origin"] = "*"
    return headers
