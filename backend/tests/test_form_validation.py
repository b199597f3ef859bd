import io

import pytest
from starlette.datastructures import FormData, Headers, UploadFile

from app.core.errors import ValidationError
from app.schemas.surveyor_form import normalize_phone
from app.services.form_validation import parse_json_submission, parse_multipart_submission, parse_submission
from form_factories import multipart_fields, submission_payload


def _upload(filename: str, content_type: str, data: bytes = b"data") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))


def test_valid_payload_maps_wire_names():
    form = parse_submission(submission_payload())
    assert form.first_name == "Jane"
    assert form.dob_dd == "14"
    assert form.dob_yyyy == "1981"
    assert form.photo_s3_key.startswith("photos/")
    assert form.experience_by_qualification["Master Mariner"].years == "12"
    assert form.references[0].name == "Capt. R. Hale"
    assert form.street2 is None


def test_name_must_be_letters_only():
    with pytest.raises(ValidationError) as exc:
        parse_submission(submission_payload(firstName="J4ne"))
    assert exc.value.status_code == 400
    assert exc.value.errors["firstName"] == ["First name must contain letters only"]


def test_all_failing_fields_reported_together():
    payload = submission_payload(lastName="Smith-Jones", city="   ")
    del payload["email"]
    with pytest.raises(ValidationError) as exc:
        parse_submission(payload)
    assert {"lastName", "city", "email"} <= set(exc.value.errors)


def test_invalid_email_rejected():
    with pytest.raises(ValidationError) as exc:
        parse_submission(submission_payload(email="not-an-address"))
    assert "email" in exc.value.errors


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(True, True), (False, False), ("true", True), ("TRUE", True), ("false", False), ("yes", False), (None, False)],
)
def test_marketing_consent_coercion(raw, expected):
    form = parse_submission(submission_payload(marketingConsent=raw))
    assert form.marketing_consent is expected


def test_json_text_fields_are_lenient():
    form = parse_submission(
        submission_payload(
            qualifications="not json",
            vesselTypes='["Tanker", 3, null]',
            accreditations='{"a": 1}',
            experienceByQualification='{"Engineer": {"years": 5}, "Broken": "x"}',
            references="[1, 2]",
        )
    )
    assert form.qualifications == []
    assert form.vessel_types == ["Tanker"]
    assert form.accreditations == []
    assert form.experience_by_qualification["Engineer"].model_dump() == {"years": "5", "months": "", "days": ""}
    assert "Broken" not in form.experience_by_qualification
    assert form.references == []


def test_blank_optionals_become_none():
    form = parse_submission(submission_payload(companyName="  ", yearStarted="", mobileNumber=""))
    assert form.company_name is None
    assert form.year_started is None
    assert form.mobile_number is None


def test_missing_files_do_not_fail_schema():
    payload = submission_payload()
    del payload["photoS3Key"]
    del payload["cvS3Key"]
    form = parse_submission(payload)
    assert form.photo_s3_key is None
    assert form.cv_s3_key is None


def test_strict_phone_mode():
    payload = submission_payload(phoneNumber="12-ab")
    assert parse_submission(payload, strict_phone=False).phone_number == "12-ab"
    with pytest.raises(ValidationError) as exc:
        parse_submission(payload, strict_phone=True)
    assert "phoneNumber" in exc.value.errors
    assert parse_submission(submission_payload(), strict_phone=True).phone_number == "+44 20 7946 0958"


def test_normalize_phone():
    assert normalize_phone(" +44 (0)20 7946-0958 ") == "+4402079460958"
    assert normalize_phone("07700 900123") == "07700900123"
    assert normalize_phone("ext.") is None
    assert normalize_phone(None) is None


def test_json_body_must_be_an_object():
    with pytest.raises(ValidationError) as exc:
        parse_json_submission(["not", "an", "object"])
    assert "body" in exc.value.errors


def test_multipart_submission_separates_uploads():
    photo = _upload("me.jpg", "image/jpeg")
    cv = _upload("cv.pdf", "application/pdf")
    items = list(multipart_fields().items()) + [("photoFile", photo), ("cvFile", cv)]

    parsed = parse_multipart_submission(FormData(items))

    assert parsed.photo_file is photo
    assert parsed.cv_file is cv
    assert parsed.form.qualifications == ["Master Mariner", "Naval Architect"]
    assert parsed.form.marketing_consent is True
    assert parsed.form.photo_s3_key is None


def test_multipart_empty_file_part_is_ignored():
    items = list(multipart_fields().items()) + [("photoFile", _upload("", "application/octet-stream", b""))]
    parsed = parse_multipart_submission(FormData(items))
    assert parsed.photo_file is None
    assert parsed.cv_file is None


def test_phone_without_digits_is_rejected():
    with pytest.raises(ValidationError) as exc:
        parse_submission(submission_payload(phoneNumber="call me"))
    assert "phoneNumber" in exc.value.errors

    form = parse_submission(submission_payload(mobileNumber="n/a"))
    assert form.mobile_number == "n/a"
    assert normalize_phone(form.mobile_number) is None
