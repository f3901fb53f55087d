"""Request and response payloads for the user directory API."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from .models import User, coerce_work_experience, dump_work_experience

_FIELD_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "email": "Email",
}


def _check_required_text(value: Any, field_name: str) -> Any:
    label = _FIELD_LABELS[field_name]
    if value is None:
        raise ValueError(f"{label} must not be null")
    if isinstance(value, str) and not value.strip():
        raise ValueError(f"{label} is required")
    return value


def _check_plain_address(value: Any) -> Any:
    # EmailStr would otherwise accept "Name <addr>" and keep only the address.
    if isinstance(value, str) and ("<" in value or ">" in value):
        raise ValueError("Email must be a plain address without a display name")
    return value


class _UserFields(BaseModel):
    """Optional profile fields shared by the create and update payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    year_of_birth: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    pincode: Optional[str] = None
    domicile_state: Optional[str] = None
    domicile_country: Optional[str] = None
    school: Optional[str] = None
    degree: Optional[str] = None
    course: Optional[str] = None
    year_of_completion: Optional[str] = None
    grade: Optional[str] = None
    skills: Optional[str] = None
    projects: Optional[str] = None
    work_experience: Optional[str] = Field(
        default=None,
        description="JSON-encoded array (or a plain array) of up to two entries",
    )
    linked_in: Optional[str] = None
    resume: Optional[str] = None

    @field_validator("work_experience", mode="before")
    @classmethod
    def _normalise_work_experience(cls, value: Any) -> Any:
        # Accept either the encoded text or a JSON array; keep the canonical text.
        if value is None:
            return None
        return dump_work_experience(coerce_work_experience(value))

    def to_store_fields(self) -> Dict[str, Any]:
        """Return only the explicitly supplied fields, keyed by attribute name."""

        data: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if name == "work_experience":
                value = coerce_work_experience(value)
            data[name] = value
        return data


class UserCreate(_UserFields):
    first_name: str
    last_name: str
    email: EmailStr

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> Any:
        return _check_required_text(value, info.field_name)

    @field_validator("email", mode="before")
    @classmethod
    def _plain_email(cls, value: Any) -> Any:
        return _check_plain_address(value)


class UserUpdate(_UserFields):
    """Partial update; fields left out of the payload keep their value."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> Any:
        # Only runs for supplied keys, so omitted fields stay untouched.
        return _check_required_text(value, info.field_name)

    @field_validator("email", mode="before")
    @classmethod
    def _plain_email(cls, value: Any) -> Any:
        return _check_plain_address(value)


class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    first_name: str
    last_name: str
    email: str
    year_of_birth: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[str] = None
    pincode: Optional[str] = None
    domicile_state: Optional[str] = None
    domicile_country: Optional[str] = None
    school: Optional[str] = None
    degree: Optional[str] = None
    course: Optional[str] = None
    year_of_completion: Optional[str] = None
    grade: Optional[str] = None
    skills: Optional[str] = None
    projects: Optional[str] = None
    work_experience: Optional[str] = None
    linked_in: Optional[str] = None
    resume: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            year_of_birth=user.year_of_birth,
            gender=user.gender,
            phone=user.phone,
            alternate_phone=user.alternate_phone,
            address=user.address,
            pincode=user.pincode,
            domicile_state=user.domicile_state,
            domicile_country=user.domicile_country,
            school=user.school,
            degree=user.degree,
            course=user.course,
            year_of_completion=user.year_of_completion,
            grade=user.grade,
            skills=user.skills,
            projects=user.projects,
            work_experience=dump_work_experience(user.work_experience),
            linked_in=user.linked_in,
            resume=user.resume,
        )


class ErrorResponse(BaseModel):
    message: str


def _strip_error_prefix(message: str) -> str:
    for prefix in ("Value error, ", "Assertion failed, "):
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def _error_location(loc: Sequence[Any]) -> str:
    return ".".join(str(part) for part in loc if part != "body")


def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> str:
    """Collapse pydantic error details into a single readable sentence."""

    details: List[str] = []
    for error in errors:
        message = _strip_error_prefix(str(error.get("msg", "Invalid value")))
        location = _error_location(error.get("loc", ()))
        text = f'{message} at "{location}"' if location else message
        if text not in details:
            details.append(text)

    if not details:
        return "Validation error"
    return "Validation error: " + "; ".join(details)


__all__ = [
    "ErrorResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
    "format_validation_errors",
]
