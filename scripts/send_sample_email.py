#!/usr/bin/env python3
"""
Dev helper: send a sample inquiry email to the local pharma CRM backend.

POST-s an email to /api/parse-pharma-email and pretty-prints the parsed
inquiry (or the failure envelope).

Usage
-----
# Built-in Indonesian quotation request, targeting localhost:8000
python scripts/send_sample_email.py

# A marketing email, to check the non-inquiry confidence floor
python scripts/send_sample_email.py --sample marketing

# Your own email body from a file
python scripts/send_sample_email.py --body-file inbox/email.html --subject "RFQ" --from buyer@acme.co.id

# Target a different backend URL
python scripts/send_sample_email.py --url http://staging.example.com

Requires httpx (installed with the "test" extra).
"""

import argparse
import json
import sys
import textwrap
from pathlib import Path

import httpx


ENDPOINT_PATH = "/api/parse-pharma-email"

_SAMPLES = {
    "inquiry": {
        "emailSubject": "Permintaan Penawaran Harga - Paracetamol",
        "emailBody": textwrap.dedent("""\
            Dengan hormat,

            Mohon penawaran harga untuk bahan baku berikut:
              Paracetamol USP, Powder - 500 KG
            Mohon dilampirkan COA dan MSDS.
            Pengiriman diharapkan 03.04.26.

            Terima kasih,
            Budi Santoso
            PT Pharmaco Indonesia
            WA: +62 812 3456 7890
        """),
        "fromEmail": "buyer@pharmaco.id",
        "fromName": "Budi Santoso",
    },
    "marketing": {
        "emailSubject": "Your weekly StackBlitz digest",
        "emailBody": "Check out the newest templates and features this week!",
        "fromEmail": "news@stackblitz.com",
        "fromName": "StackBlitz",
    },
}


def _print_response(response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        body = response.json()
        print(json.dumps(body, indent=2))
    except Exception:
        print(response.text)


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_sample_email.py",
        description="Send a sample email to the pharma email parsing endpoint.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_sample_email.py
              python scripts/send_sample_email.py --sample marketing
              python scripts/send_sample_email.py --body-file email.txt --from a@b.com
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--sample",
        default="inquiry",
        choices=list(_SAMPLES),
        help="Built-in sample email to send (default: inquiry)",
    )
    parser.add_argument("--body-file", default=None, metavar="PATH",
                        help="Read the email body from this file instead of the sample")
    parser.add_argument("--subject", default=None, help="Override the subject")
    parser.add_argument("--from", dest="from_email", default=None, help="Override the sender address")
    parser.add_argument("--from-name", default=None, help="Override the sender display name")

    args = parser.parse_args()

    payload = dict(_SAMPLES[args.sample])
    if args.body_file:
        body_path = Path(args.body_file)
        if not body_path.exists():
            print(f"ERROR: file not found: {body_path}", file=sys.stderr)
            return 1
        payload["emailBody"] = body_path.read_text(encoding="utf-8")
    if args.subject:
        payload["emailSubject"] = args.subject
    if args.from_email:
        payload["fromEmail"] = args.from_email
    if args.from_name:
        payload["fromName"] = args.from_name

    endpoint = args.url.rstrip("/") + ENDPOINT_PATH
    print(f"POST {endpoint}  (from={payload['fromEmail']}, subject={payload['emailSubject']!r})")

    try:
        response = httpx.post(endpoint, json=payload, timeout=60)
        _print_response(response)
        return 0 if response.status_code == 200 else 1
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1
    except Exception as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
