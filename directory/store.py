"""In-memory record store for user directory entries."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import EDITABLE_FIELDS, REQUIRED_FIELDS, User, coerce_work_experience

logger = logging.getLogger("userdirectory.store")


class DuplicateEmailError(ValueError):
    """Raised when an email address is already used by another record."""

    def __init__(self, email: str) -> None:
        super().__init__(f"A user with email {email} already exists")
        self.email = email


def _email_key(email: str) -> str:
    return email.strip().lower()


def _normalise_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    unknown = sorted(key for key in changes if key != "id" and key not in EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown user fields: {', '.join(unknown)}")

    for key, value in changes.items():
        if key == "id":
            continue
        if key in REQUIRED_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{key.replace('_', ' ').capitalize()} must not be empty")
        elif key == "work_experience":
            value = coerce_work_experience(value)
        elif value is not None and not isinstance(value, str):
            raise ValueError(f"{key.replace('_', ' ').capitalize()} must be a string")
        cleaned[key] = value
    return cleaned


class UserStore:
    """Holds user records in insertion order, keyed by their identifier."""

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def list_all(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def get(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def create(self, fields: Mapping[str, Any]) -> User:
        """Store a new record under a freshly generated identifier."""

        cleaned = _normalise_changes(fields)
        missing = [name for name in REQUIRED_FIELDS if name not in cleaned]
        if missing:
            raise ValueError(f"Missing required user fields: {', '.join(missing)}")

        with self._lock:
            self._ensure_email_available_locked(cleaned["email"])
            user_id = self._generate_id_locked()
            user = User(id=user_id, **cleaned)
            self._users[user_id] = user

        logger.info("Created user %s <%s>", user.id, user.email)
        return user

    def update(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
        """Merge ``changes`` onto an existing record.

        Returns ``None`` without touching the store when ``user_id`` is unknown.
        """

        with self._lock:
            existing = self._users.get(user_id)
            if existing is None:
                return None

            cleaned = _normalise_changes(changes)
            email = cleaned.get("email")
            if email is not None and _email_key(email) != _email_key(existing.email):
                self._ensure_email_available_locked(email)

            updated = replace(existing, **cleaned)
            self._users[user_id] = updated

        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(cleaned)) or "no changes")
        return updated

    def delete(self, user_id: str) -> bool:
        with self._lock:
            removed = self._users.pop(user_id, None)
        if removed is not None:
            logger.info("Deleted user %s", user_id)
        return removed is not None

    def seed(self, records: Iterable[Mapping[str, Any]]) -> List[User]:
        """Create each record in turn, returning the stored users."""

        return [self.create(record) for record in records]

    def _generate_id_locked(self) -> str:
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in self._users:
                return candidate

    def _ensure_email_available_locked(self, email: str) -> None:
        key = _email_key(email)
        for user in self._users.values():
            if _email_key(user.email) == key:
                raise DuplicateEmailError(email)


def default_seed_users() -> List[Dict[str, Any]]:
    """Return the sample records loaded when the service starts."""

    return [
        {
            "first_name": "Dave",
            "last_name": "Richards",
            "email": "dave@mail.com",
            "phone": "8332883854",
            "year_of_birth": "1990",
            "gender": "male",
            "alternate_phone": "9876543210",
            "address": "123 Main Street, Apartment 4B",
            "pincode": "400001",
            "domicile_state": "maharashtra",
            "domicile_country": "india",
            "school": "Lincoln College",
            "degree": "Bachelors in Technology",
            "course": "Computer Science Engineering",
            "year_of_completion": "2012",
            "grade": "A",
            "skills": "JavaScript, React, Node.js, TypeScript",
            "projects": "E-commerce platform, Social media dashboard",
            "work_experience": [
                {"domain": "Technology", "subdomain": "MERN Stack", "experience": "3-5"},
            ],
            "linked_in": "linkedin.com/in/daverichards",
            "resume": "myresume.pdf",
        },
        {
            "first_name": "Abhishek",
            "last_name": "Hari",
            "email": "hari@mail.com",
            "phone": "9876543210",
        },
        {
            "first_name": "Nishta",
            "last_name": "Gupta",
            "email": "nishta@mail.com",
            "phone": "8765432109",
        },
    ]


__all__ = ["DuplicateEmailError", "UserStore", "default_seed_users"]
