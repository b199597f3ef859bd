from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ServerConfigError
from app.db.session import get_session
from app.services.object_storage import ObjectStorage, get_object_storage


async def get_db_session() -> AsyncSession:
    async for session in get_session():
        yield session


def get_storage() -> ObjectStorage:
    return get_object_storage()


def get_optional_storage() -> Optional[ObjectStorage]:
    # Deleting forms that only reference local files must work without a bucket.
    try:
        return get_object_storage()
    except ServerConfigError:
        return None
