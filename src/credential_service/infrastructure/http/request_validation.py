"""Request body validation adapter producing core-ready inputs and outcomes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from credential_service.application.dto.auth_models import LoginRequest, RegisterRequest
from credential_service.application.dto.validation_models import ValidationOutcome


@dataclass(frozen=True)
class RegistrationFields:
    """Registration values passed to the core."""

    name: str
    email: str
    password: str


@dataclass(frozen=True)
class LoginFields:
    """Login values passed to the core."""

    email: str
    password: str


def validate_registration_body(raw_body: bytes) -> tuple[RegistrationFields, ValidationOutcome]:
    """Validate a registration JSON body."""

    values, outcome = _validate(RegisterRequest, raw_body)
    fields = RegistrationFields(
        name=values.get("name", ""),
        email=values.get("email", ""),
        password=values.get("password", ""),
    )
    return fields, outcome


def validate_login_body(raw_body: bytes) -> tuple[LoginFields, ValidationOutcome]:
    """Validate a login JSON body."""

    values, outcome = _validate(LoginRequest, raw_body)
    fields = LoginFields(
        email=values.get("email", ""),
        password=values.get("password", ""),
    )
    return fields, outcome


def _validate(
    model: type[BaseModel],
    raw_body: bytes,
) -> tuple[dict[str, str], ValidationOutcome]:
    """Return string field values plus the validation outcome for one body.

    Invalid bodies still yield whatever string fields could be read, so the
    core always receives concrete values alongside the failed outcome.
    """

    try:
        parsed = model.model_validate_json(raw_body)
    except ValidationError as error:
        return _loose_string_fields(raw_body), ValidationOutcome.invalid(_field_errors(error))

    return {key: str(value) for key, value in parsed.model_dump().items()}, ValidationOutcome.valid()


def _field_errors(error: ValidationError) -> dict[str, str]:
    # Only locations and messages are kept; submitted values never leave here.
    field_errors: dict[str, str] = {}
    for item in error.errors(include_input=False, include_url=False):
        location = ".".join(str(part) for part in item["loc"]) or "body"
        field_errors.setdefault(location, item["msg"])
    return field_errors


def _loose_string_fields(raw_body: bytes) -> dict[str, str]:
    try:
        payload: Any = json.loads(raw_body)
    except ValueError:
        return {}
    if not isinstance(payload, dict):
        return {}
    return {key: value for key, value in payload.items() if isinstance(value, str)}
