from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.core.uploads import FileKind


class PresignIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: FileKind
    content_type: str = Field(alias="contentType", min_length=1)


class PresignOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    upload_url: str = Field(alias="uploadUrl")


class ViewOut(BaseModel):
    url: str
