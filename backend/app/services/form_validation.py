from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData, UploadFile

from app.core.config import settings
from app.core.errors import ValidationError
from app.schemas.surveyor_form import SurveyorFormIn

PHOTO_FILE_FIELD = "photoFile"
CV_FILE_FIELD = "cvFile"
FILE_FIELDS = (PHOTO_FILE_FIELD, CV_FILE_FIELD)

_VALUE_ERROR_PREFIX = "Value error, "


@dataclass(frozen=True)
class ParsedSubmission:
    form: SurveyorFormIn
    photo_file: Optional[UploadFile] = None
    cv_file: Optional[UploadFile] = None


def _message(raw: str) -> str:
    if raw.startswith(_VALUE_ERROR_PREFIX):
        return raw[len(_VALUE_ERROR_PREFIX) :]
    return raw


def _errors_by_field(exc: PydanticValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for item in exc.errors():
        loc = item.get("loc") or ()
        field = str(loc[0]) if loc else "form"
        errors.setdefault(field, []).append(_message(str(item.get("msg", "Invalid value"))))
    return errors


def parse_submission(raw: Mapping[str, Any], *, strict_phone: bool | None = None) -> SurveyorFormIn:
    """Validate an untyped submission mapping.

    Every failing field is reported at once under its wire name; nothing is
    returned unless the whole payload is valid.
    """
    strict = settings.strict_phone_validation if strict_phone is None else strict_phone
    try:
        return SurveyorFormIn.model_validate(dict(raw), context={"strict_phone": strict})
    except PydanticValidationError as exc:
        raise ValidationError(_errors_by_field(exc)) from None


def _upload_or_none(value: Any) -> Optional[UploadFile]:
    if isinstance(value, UploadFile) and (value.filename or "").strip():
        return value
    return None


def parse_multipart_submission(form: FormData, *, strict_phone: bool | None = None) -> ParsedSubmission:
    raw: dict[str, Any] = {}
    uploads: dict[str, Optional[UploadFile]] = {name: None for name in FILE_FIELDS}
    for key, value in form.multi_items():
        if key in uploads:
            if uploads[key] is None:
                uploads[key] = _upload_or_none(value)
            continue
        if isinstance(value, UploadFile) or key in raw:
            continue
        raw[key] = value

    parsed = parse_submission(raw, strict_phone=strict_phone)
    return ParsedSubmission(form=parsed, photo_file=uploads[PHOTO_FILE_FIELD], cv_file=uploads[CV_FILE_FIELD])


def parse_json_submission(body: Any, *, strict_phone: bool | None = None) -> ParsedSubmission:
    if not isinstance(body, dict):
        raise ValidationError({"body": ["Request body must be a JSON object"]})
    return ParsedSubmission(form=parse_submission(body, strict_phone=strict_phone))
