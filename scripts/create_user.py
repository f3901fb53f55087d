from __future__ import annotations

import argparse
import sys
from pathlib import Path

import httpx

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from directory.config import load_settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a user in a running user directory")
    parser.add_argument("first_name", help="Given name of the user")
    parser.add_argument("last_name", help="Family name of the user")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("--phone", default=None, help="Contact phone number")
    parser.add_argument(
        "--service-url",
        dest="service_url",
        default=None,
        help="Base URL of the directory service (defaults to DIRECTORY_SERVICE_URL or http://localhost:5000)",
    )
    return parser.parse_args(argv)


def build_payload(args: argparse.Namespace) -> dict:
    payload = {
        "firstName": args.first_name.strip(),
        "lastName": args.last_name.strip(),
        "email": args.email.strip(),
    }
    if args.phone:
        payload["phone"] = args.phone.strip()
    return payload


def main(argv=None, client: httpx.Client | None = None) -> int:
    args = parse_args(argv)
    service_url = (args.service_url or load_settings().service_url).rstrip("/")

    owns_client = client is None
    http = client or httpx.Client(base_url=service_url, timeout=10.0)
    try:
        response = http.post("/api/users", json=build_payload(args))
    except httpx.HTTPError as exc:
        print(f"Error: failed to contact {service_url}: {exc}", file=sys.stderr)
        return 1
    finally:
        if owns_client:
            http.close()

    if response.status_code != 201:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        message = payload.get("message") if isinstance(payload, dict) else None
        message = message or response.text or f"HTTP {response.status_code}"
        print(f"Error: {message}", file=sys.stderr)
        return 1

    user = response.json()
    print(f"Created user {user['id']}: {user['firstName']} {user['lastName']} <{user['email']}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
