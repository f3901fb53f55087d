"""Domain models for the user directory."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import Any, Iterable, List, Optional, Tuple

MAX_WORK_EXPERIENCE_ENTRIES = 2


@dataclass(frozen=True)
class WorkExperience:
    """A single prior role listed on a user's profile."""

    domain: str = ""
    subdomain: str = ""
    experience: str = ""

    def as_dict(self) -> dict[str, str]:
        return {
            "domain": self.domain,
            "subdomain": self.subdomain,
            "experience": self.experience,
        }


@dataclass(frozen=True)
class User:
    """Represents a user record held by the directory store."""

    id: str
    first_name: str
    last_name: str
    email: str

    # Basic info
    year_of_birth: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    pincode: Optional[str] = None
    domicile_state: Optional[str] = None
    domicile_country: Optional[str] = None

    # Education & skills
    school: Optional[str] = None
    degree: Optional[str] = None
    course: Optional[str] = None
    year_of_completion: Optional[str] = None
    grade: Optional[str] = None
    skills: Optional[str] = None
    projects: Optional[str] = None

    # Experience
    work_experience: Optional[Tuple[WorkExperience, ...]] = None
    linked_in: Optional[str] = None
    resume: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


USER_FIELDS: Tuple[str, ...] = tuple(field.name for field in fields(User))
REQUIRED_FIELDS: Tuple[str, ...] = ("first_name", "last_name", "email")
EDITABLE_FIELDS: Tuple[str, ...] = tuple(name for name in USER_FIELDS if name != "id")


def _entry_from_mapping(entry: Any) -> WorkExperience:
    if isinstance(entry, WorkExperience):
        return entry
    if not isinstance(entry, dict):
        raise ValueError("Work experience entries must be objects")
    values = {}
    for key in ("domain", "subdomain", "experience"):
        value = entry.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError(f"Work experience '{key}' must be a string")
        values[key] = value
    return WorkExperience(**values)


def coerce_work_experience(value: Any) -> Optional[Tuple[WorkExperience, ...]]:
    """Strictly convert JSON text or a list of entries into structured entries.

    ``None`` passes through unchanged. Raises :class:`ValueError` for
    malformed text, non-object entries or more than two entries.
    """

    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return ()
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise ValueError("Work experience must be a JSON-encoded array") from exc
    if not isinstance(value, (list, tuple)):
        raise ValueError("Work experience must be an array of entries")
    if len(value) > MAX_WORK_EXPERIENCE_ENTRIES:
        raise ValueError(
            f"At most {MAX_WORK_EXPERIENCE_ENTRIES} work experience entries are allowed"
        )
    return tuple(_entry_from_mapping(entry) for entry in value)


def parse_work_experience(text: Optional[str]) -> List[WorkExperience]:
    """Read serialized work experience, treating bad content as no entries."""

    if not text:
        return []
    try:
        payload = json.loads(text)
    except (TypeError, ValueError):
        return []
    if not isinstance(payload, list):
        return []

    entries: List[WorkExperience] = []
    for item in payload[:MAX_WORK_EXPERIENCE_ENTRIES]:
        if not isinstance(item, dict):
            return []
        entries.append(
            WorkExperience(
                domain=str(item.get("domain") or ""),
                subdomain=str(item.get("subdomain") or ""),
                experience=str(item.get("experience") or ""),
            )
        )
    return entries


def dump_work_experience(entries: Optional[Iterable[WorkExperience]]) -> Optional[str]:
    """Serialize entries to the compact JSON text used on the wire."""

    if entries is None:
        return None
    return json.dumps([entry.as_dict() for entry in entries], separators=(",", ":"))


__all__ = [
    "EDITABLE_FIELDS",
    "MAX_WORK_EXPERIENCE_ENTRIES",
    "REQUIRED_FIELDS",
    "USER_FIELDS",
    "User",
    "WorkExperience",
    "coerce_work_experience",
    "dump_work_experience",
    "parse_work_experience",
]
