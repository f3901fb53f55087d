"""Command-line interface for the user directory service."""

from __future__ import annotations
import argparse
import dataclasses
import logging
import sys
from typing import Iterable, List, Mapping, Sequence

try:
    import httpx
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'httpx' package is required. Run `pip install -e .` to install dependencies."
    ) from exc

from directory.config import Settings, load_settings, resolve_seed_path
from directory.models import parse_work_experience

logger = logging.getLogger("userdirectory.main")

_BASIC_FIELDS = (
    ("firstName", "First name"),
    ("lastName", "Last name"),
    ("email", "Email ID"),
    ("yearOfBirth", "Year of birth"),
    ("gender", "Gender"),
    ("phone", "Phone number"),
    ("alternatePhone", "Alternate phone no"),
    ("address", "Address"),
    ("pincode", "Pincode"),
    ("domicileState", "Domicile state"),
    ("domicileCountry", "Domicile country"),
)

_EDUCATION_FIELDS = (
    ("school", "School / College"),
    ("degree", "Highest degree"),
    ("course", "Course"),
    ("yearOfCompletion", "Year of completion"),
    ("grade", "Grade"),
    ("skills", "Skills"),
    ("projects", "Projects"),
)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User directory utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP user directory API")
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: 5000 or DIRECTORY_PORT)",
    )
    serve_parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Start with an empty directory instead of the sample users",
    )
    serve_parser.add_argument(
        "--seed-file",
        default=None,
        help="YAML file whose 'users' list replaces the built-in sample users",
    )

    admin_parser = subparsers.add_parser(
        "admin", help="Launch the interactive administration console"
    )
    admin_parser.add_argument(
        "--service-url",
        default=None,
        help="Base URL of a running directory service (default: http://localhost:5000)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "admin"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _apply_serve_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    changes = {}
    if args.host:
        changes["host"] = args.host
    if args.port is not None:
        changes["port"] = args.port
    if args.no_seed:
        changes["seed_sample_users"] = False
    if args.seed_file:
        changes["seed_file"] = resolve_seed_path(args.seed_file)
    return dataclasses.replace(settings, **changes)


def _serve(settings: Settings) -> None:
    from directory.service import build_store, create_app
    import uvicorn

    store = build_store(settings)
    logger.info(
        "Starting user directory API on http://%s:%s with %d user(s)",
        settings.host,
        settings.port,
        len(store),
    )

    app = create_app(store=store, settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def _full_name(user: Mapping[str, object]) -> str:
    return f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()


def _filter_users(users: Iterable[Mapping[str, object]], query: str) -> List[Mapping[str, object]]:
    """Return users whose name or email contains ``query`` (case-insensitive)."""

    needle = query.strip().lower()
    if not needle:
        return list(users)
    return [
        user
        for user in users
        if needle in _full_name(user).lower() or needle in str(user.get("email") or "").lower()
    ]


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {response.status_code}"


def _fetch_users(client: httpx.Client) -> List[Mapping[str, object]] | None:
    try:
        response = client.get("/api/users")
    except httpx.HTTPError as exc:
        print(f"Failed to contact directory service: {exc}")
        return None

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {_error_message(response)}")
        return None
    return response.json()


def _list_users(client: httpx.Client, query: str = "") -> List[Mapping[str, object]]:
    users = _fetch_users(client)
    if users is None:
        return []

    matches = _filter_users(users, query)
    if not matches:
        if query.strip():
            print(f"No users match '{query.strip()}'.")
        else:
            print("No users are currently registered.")
        return []

    print(f"{len(matches)} user(s) found:")
    print(f"{'Sr. No':>6}  {'User name':<28}  {'E-mail':<32}  ID")
    print("-" * 100)
    for index, user in enumerate(matches, start=1):
        print(f"{index:>6}  {_full_name(user):<28}  {str(user.get('email')):<32}  {user.get('id')}")
    return matches


def _print_section(title: str, user: Mapping[str, object], labels: Iterable[tuple[str, str]]) -> None:
    print(f"\n{title}")
    print("-" * len(title))
    for key, label in labels:
        value = user.get(key)
        print(f"  {label + ':':<22} {value if value else '-'}")


def _show_user(client: httpx.Client, user_id: str) -> bool:
    try:
        response = client.get(f"/api/users/{user_id}")
    except httpx.HTTPError as exc:
        print(f"Failed to contact directory service: {exc}")
        return False

    if response.status_code == 404:
        print("User not found.")
        return False
    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {_error_message(response)}")
        return False

    user = response.json()
    print(f"\n{_full_name(user)} <{user.get('email')}>")
    _print_section("Basic info", user, _BASIC_FIELDS)
    _print_section("Education & skills", user, _EDUCATION_FIELDS)

    print("\nWork experience")
    print("---------------")
    entries = parse_work_experience(user.get("workExperience"))
    if not entries:
        print("  No work experience recorded.")
    for number, entry in enumerate(entries, start=1):
        print(
            f"  {number}. {entry.domain or '-'} / {entry.subdomain or '-'}"
            f" ({entry.experience or '-'} years)"
        )
    print(f"  {'LinkedIn:':<22} {user.get('linkedIn') or '-'}")
    print(f"  {'Resume:':<22} {user.get('resume') or '-'}")
    return True


def _add_user(client: httpx.Client) -> None:
    print("\nCreate a new user (leave the first name blank to cancel).")
    first_name = input("First name: ").strip()
    if not first_name:
        print("User creation cancelled.")
        return

    payload = {
        "firstName": first_name,
        "lastName": input("Last name: ").strip(),
        "email": input("E-mail: ").strip(),
    }
    phone = input("Contact (optional): ").strip()
    if phone:
        payload["phone"] = phone

    try:
        response = client.post("/api/users", json=payload)
    except httpx.HTTPError as exc:
        print(f"Failed to contact directory service: {exc}")
        return

    if response.status_code != 201:
        print(f"Failed to create user: {_error_message(response)}")
        return

    user = response.json()
    print(f"Created user {user['id']}: {_full_name(user)} <{user['email']}>")


def _delete_user(client: httpx.Client, user_id: str, *, confirm: bool = True) -> bool:
    if confirm:
        answer = input(f"Delete user {user_id}? This cannot be undone. [y/N]: ").strip().lower()
        if answer not in {"y", "yes"}:
            print("Deletion cancelled.")
            return False

    try:
        response = client.delete(f"/api/users/{user_id}")
    except httpx.HTTPError as exc:
        print(f"Failed to contact directory service: {exc}")
        return False

    if response.status_code == 204:
        print("User deleted.")
        return True
    if response.status_code == 404:
        print("User not found.")
        return False
    print(f"Failed to delete user: {_error_message(response)}")
    return False


def _run_admin_cli(client: httpx.Client) -> None:
    """Provide an interactive directory console for administrators."""

    print("User Directory Administration Console")
    print(f"Connected to {client.base_url}")
    print("Press Ctrl+C at any time to exit.\n")

    try:
        while True:
            print("Select an option:")
            print("  1) List users")
            print("  2) Search users")
            print("  3) Show a user profile")
            print("  4) Add a new user")
            print("  5) Delete a user")
            print("  6) Exit")

            choice = input("Enter choice [1-6]: ").strip()

            if choice == "1":
                _list_users(client)
            elif choice == "2":
                _list_users(client, input("Search by name or e-mail: "))
            elif choice == "3":
                user_id = input("User ID: ").strip()
                if user_id:
                    _show_user(client, user_id)
            elif choice == "4":
                _add_user(client)
            elif choice == "5":
                user_id = input("User ID: ").strip()
                if user_id:
                    _delete_user(client, user_id)
            elif choice == "6":
                print("Goodbye!")
                return
            else:
                print("Invalid selection. Please choose a number from the menu.\n")

            print()
    except KeyboardInterrupt:
        print("\nExiting administration console.")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    args = _parse_args(argv)

    if args.command == "serve":
        _serve(_apply_serve_overrides(settings, args))
    elif args.command == "admin":
        service_url = (args.service_url or settings.service_url).rstrip("/")
        with httpx.Client(base_url=service_url, timeout=10.0) as client:
            _run_admin_cli(client)


if __name__ == "__main__":
    main()
