from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy import select, update

from app.core.config import settings
from app.core.datetime_utils import utc_now_naive
from app.models.surveyor_form import SurveyorForm
from app.services.file_refs import FileRefs
from app.services.form_deletion import delete_form
from app.services.form_repository import (
    approve_form,
    create_form,
    get_form_keys_by_id,
    get_stats,
    list_forms,
    mark_reviewed,
)
from app.services.form_validation import parse_submission
from app.services.other_fields import normalize_other_fields
from form_factories import submission_payload

S3_REFS = FileRefs(photo_s3_key="photos/a.jpg", cv_s3_key="cvs/b.pdf")


async def _create(session, refs: FileRefs = S3_REFS, **overrides) -> int:
    form = normalize_other_fields(parse_submission(submission_payload(**overrides)))
    return await create_form(session, form, refs)


@pytest.mark.asyncio
async def test_create_form_normalizes_and_stores(db_session):
    form_id = await _create(db_session)
    db_session.expunge_all()
    row = (await db_session.execute(select(SurveyorForm).where(SurveyorForm.id == form_id))).scalars().one()

    assert row.phone_number == "+442079460958"
    assert row.mobile_number == "07700900123"
    assert row.vessel_types == ["Bulk Carrier", "Tanker"]
    assert row.experience_by_qualification == {"Master Mariner": {"years": "12", "months": "4", "days": "0"}}
    assert row.references == [{"name": "Capt. R. Hale", "contact": "r.hale@northsea-shipping.com"}]
    assert row.photo_s3_key == "photos/a.jpg"
    assert row.photo_path is None
    assert row.reviewed is False
    assert row.approved is False
    assert row.reviewed_at is None
    assert row.status == "unreviewed"


@pytest.mark.asyncio
async def test_list_forms_newest_first_with_paging(db_session):
    first = await _create(db_session, firstName="Alice")
    second = await _create(db_session, firstName="Bob")
    third = await _create(db_session, firstName="Carol")

    rows = await list_forms(db_session, limit=25, offset=0)
    assert [row.id for row in rows] == [third, second, first]

    page = await list_forms(db_session, limit=1, offset=1)
    assert [row.id for row in page] == [second]


@pytest.mark.asyncio
async def test_mark_reviewed_is_repeatable(db_session):
    form_id = await _create(db_session)

    first = await mark_reviewed(db_session, form_id)
    assert first.reviewed is True
    assert first.reviewed_at is not None

    second = await mark_reviewed(db_session, form_id)
    assert second.reviewed is True
    assert second.reviewed_at >= first.reviewed_at

    assert await mark_reviewed(db_session, 999_999) is None


@pytest.mark.asyncio
async def test_approve_requires_prior_review(db_session):
    form_id = await _create(db_session)

    assert await approve_form(db_session, form_id) is None
    keys_row = (await db_session.execute(select(SurveyorForm.approved).where(SurveyorForm.id == form_id))).one()
    assert keys_row.approved is False

    await mark_reviewed(db_session, form_id)
    approved = await approve_form(db_session, form_id)
    assert approved.approved is True
    assert approved.approved_at is not None

    # Already approved forms are not approvable again.
    assert await approve_form(db_session, form_id) is None
    assert await approve_form(db_session, 999_999) is None


@pytest.mark.asyncio
async def test_stats(db_session):
    old_id = await _create(db_session)
    reviewed_id = await _create(db_session)
    approved_id = await _create(db_session)
    await mark_reviewed(db_session, reviewed_id)
    await mark_reviewed(db_session, approved_id)
    await approve_form(db_session, approved_id)
    await db_session.execute(
        update(SurveyorForm)
        .where(SurveyorForm.id == old_id)
        .values(created_at=utc_now_naive() - timedelta(days=2))
    )
    await db_session.commit()

    stats = await get_stats(db_session)
    assert stats == {"total": 3, "pending": 1, "approved": 1, "new_today": 2}


@pytest.mark.asyncio
async def test_stats_empty_table(db_session):
    assert await get_stats(db_session) == {"total": 0, "pending": 0, "approved": 0, "new_today": 0}


@pytest.mark.asyncio
async def test_delete_removes_objects_and_row(db_session, fake_storage):
    form_id = await _create(db_session)

    assert await delete_form(db_session, fake_storage, form_id) == form_id
    assert fake_storage.deleted == ["photos/a.jpg", "cvs/b.pdf"]
    assert await get_form_keys_by_id(db_session, form_id) is None


@pytest.mark.asyncio
async def test_delete_unknown_form_touches_nothing(db_session, fake_storage):
    assert await delete_form(db_session, fake_storage, 424242) is None
    assert fake_storage.deleted == []


@pytest.mark.asyncio
async def test_storage_failure_does_not_block_row_deletion(db_session, fake_storage):
    form_id = await _create(db_session)
    fake_storage.fail_deletes = True

    assert await delete_form(db_session, fake_storage, form_id) == form_id
    assert await get_form_keys_by_id(db_session, form_id) is None


@pytest.mark.asyncio
async def test_delete_removes_legacy_local_files(db_session):
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    photo = upload_dir / "photo-legacy0001.jpg"
    cv = upload_dir / "cv-legacy0001.pdf"
    photo.write_bytes(b"jpg")
    cv.write_bytes(b"pdf")

    form_id = await _create(
        db_session,
        refs=FileRefs(photo_path=f"uploads/{photo.name}", cv_path=f"uploads/{cv.name}"),
    )
    keys = await get_form_keys_by_id(db_session, form_id)
    assert keys.photo_path == "uploads/photo-legacy0001.jpg"

    assert await delete_form(db_session, None, form_id) == form_id
    assert not photo.exists()
    assert not cv.exists()
