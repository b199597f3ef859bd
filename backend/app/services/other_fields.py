from __future__ import annotations

from typing import Optional

from app.schemas.surveyor_form import MULTI_SELECT_FIELDS, SCALAR_OTHER_FIELDS, SurveyorFormIn, other_field_name

# Trigger values are matched exactly. Scalar selects use the lowercase option
# value, multi-selects the capitalised label.
SCALAR_OTHER_VALUE = "other"
MULTI_OTHER_VALUE = "Other"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_other_fields(form: SurveyorFormIn) -> SurveyorFormIn:
    """Drop free-text "other" companions whose trigger option is not selected."""
    updates: dict[str, Optional[str]] = {}

    for field in SCALAR_OTHER_FIELDS:
        companion = other_field_name(field)
        value = _clean(getattr(form, companion))
        updates[companion] = value if getattr(form, field) == SCALAR_OTHER_VALUE else None

    for field in MULTI_SELECT_FIELDS:
        companion = other_field_name(field)
        value = _clean(getattr(form, companion))
        updates[companion] = value if MULTI_OTHER_VALUE in getattr(form, field) else None

    return form.model_copy(update=updates)
