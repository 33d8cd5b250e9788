#!/usr/bin/env python3
"""
Dev helper: send a sample event to the local notification backend.

Builds a realistic payload for the chosen event kind, adds the API key, and
POST-s it to the matching /api endpoint. For ``pdf-request`` the returned
PDF is written to disk.

Usage
-----
# Page-view beacon to localhost:5000
python scripts/send_test_event.py form-viewed

# Consultation form with a file attached (sent as multipart)
python scripts/send_test_event.py form-submit --email me@example.com --file brief.pdf

# Render a report and save it
python scripts/send_test_event.py pdf-request --out report.pdf

# Show the payload without sending
python scripts/send_test_event.py login --dry-run

Environment / .env
------------------
API_KEY   Shared secret (required unless --api-key is given).
PORT      Backend port used for the default --url (default: 5000).
"""

import argparse
import json
import os
import sys
import textwrap
from datetime import datetime, timezone
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------

_USER_AGENT = "Mozilla/5.0 (send_test_event.py)"
_REFERRER = "https://www.google.com/"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _form_submit(args) -> dict:
    return {
        "name": "Test Submitter",
        "email": args.email,
        "phone": "+91 90000 00000",
        "businessName": "Sample Bakery",
        "message": "Please review my listing.",
    }


def _form_viewed(args) -> dict:
    return {"time": _now(), "page": "/gmb-risk-checker", "userAgent": _USER_AGENT, "referrer": _REFERRER}


def _button_click(args) -> dict:
    return {"timestamp": _now(), "action": "Get Free Risk Report", "userAgent": _USER_AGENT, "referrer": _REFERRER}


def _form_close(args) -> dict:
    return {"timestamp": _now(), "action": "Closed form via X", "userAgent": _USER_AGENT, "referrer": _REFERRER}


def _form_open(args) -> dict:
    return {"timestamp": _now(), "userAgent": _USER_AGENT, "referrer": _REFERRER}


def _pdf_request(args) -> dict:
    return {
        "reportData": {
            "riskScore": 78,
            "riskLevel": {"level": "High", "color": "#dc3545"},
            "businessType": "Locksmith",
            "riskFactors": ["Service-area business showing an address", "Recent name change"],
            "recommendations": ["Hide the address for service-area listings"],
        }
    }


def _login(args) -> dict:
    return {"userData": {"email": args.email, "displayName": "Test User", "uid": "test-uid-001"}}


# event kind -> (path, payload builder)
_EVENTS = {
    "form-submit": ("/api/form", _form_submit),
    "form-viewed": ("/api/form-viewed", _form_viewed),
    "button-click": ("/api/button-click", _button_click),
    "form-close": ("/api/form-close", _form_close),
    "form-open": ("/api/form-open", _form_open),
    "pdf-request": ("/api/generate-pdf", _pdf_request),
    "login": ("/api/user-login", _login),
}


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_event.py",
        description="Send a sample event to the notification backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_event.py form-open
              python scripts/send_test_event.py form-submit --file brief.pdf
              python scripts/send_test_event.py pdf-request --out report.pdf
        """),
    )
    parser.add_argument("event", choices=list(_EVENTS), help="Event kind to send")
    parser.add_argument(
        "--url",
        default=f"http://localhost:{os.getenv('PORT', '5000')}",
        help="Backend base URL (default: http://localhost:$PORT or 5000)",
    )
    parser.add_argument("--api-key", default=None, help="Override API_KEY from the environment")
    parser.add_argument(
        "--email",
        default="submitter@example.com",
        help="Email used for form-submit and login (default: submitter@example.com)",
    )
    parser.add_argument("--file", default=None, metavar="PATH", help="File to attach to form-submit")
    parser.add_argument(
        "--out",
        default="GMB-Risk-Report.pdf",
        metavar="PATH",
        help="Where to save the PDF from pdf-request (default: GMB-Risk-Report.pdf)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the payload without sending it.")

    args = parser.parse_args()

    api_key = args.api_key or os.getenv("API_KEY", "")
    if not api_key and not args.dry_run:
        print(
            "ERROR: No API key found.\n"
            "Set API_KEY in your environment or .env file, or pass --api-key.",
            file=sys.stderr,
        )
        return 1

    path, builder = _EVENTS[args.event]
    payload = {"apiKey": api_key, **builder(args)}
    endpoint = f"{args.url.rstrip('/')}{path}"

    file_path = Path(args.file) if args.file else None
    if file_path is not None:
        if args.event != "form-submit":
            print("ERROR: --file only applies to form-submit", file=sys.stderr)
            return 1
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1

    print(f"Event     : {args.event}")
    print(f"Endpoint  : {endpoint}")
    if file_path is not None:
        print(f"Attachment: {file_path}")

    if args.dry_run:
        display = {**payload, "apiKey": "<redacted>" if api_key else ""}
        print("\n[DRY RUN] Payload:")
        print(json.dumps(display, indent=2, ensure_ascii=False))
        return 0

    try:
        if file_path is not None:
            with file_path.open("rb") as fh:
                response = httpx.post(
                    endpoint,
                    data=payload,
                    files={"file": (file_path.name, fh)},
                    timeout=120,
                )
        else:
            response = httpx.post(endpoint, json=payload, timeout=120)
    except httpx.HTTPError as e:
        print(f"\n[FAIL] Request error: {e}", file=sys.stderr)
        return 1

    if args.event == "pdf-request" and response.status_code == 200:
        out_path = Path(args.out)
        out_path.write_bytes(response.content)
        print(f"\n[OK] HTTP 200, saved {len(response.content):,} bytes to {out_path}")
        return 0

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
