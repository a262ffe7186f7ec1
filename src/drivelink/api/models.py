"""Drive API response models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

FILE_FIELDS = (
    "id,name,size,mimeType,createdTime,modifiedTime,webViewLink,"
    "webContentLink,parents,thumbnailLink,iconLink"
)
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class FileMetadata(BaseModel):
    """Metadata for a Drive file; Drive reports sizes as decimal strings."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    size: int = 0
    mime_type: str = Field(default="", alias="mimeType")
    created_time: str | None = Field(default=None, alias="createdTime")
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    web_view_link: str | None = Field(default=None, alias="webViewLink")
    web_content_link: str | None = Field(default=None, alias="webContentLink")
    parents: list[str] | None = None
    thumbnail_link: str | None = Field(default=None, alias="thumbnailLink")
    icon_link: str | None = Field(default=None, alias="iconLink")


class FileList(BaseModel):
    files: list[FileMetadata]
    next_page_token: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_page_token is not None


class UploadResult(BaseModel):
    file_id: str
    file_name: str
    file_url: str
    file_size: int
    mime_type: str
    web_view_link: str | None = None
    web_content_link: str | None = None


class StorageQuota(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    limit: int = 0
    usage: int = 0
    usage_in_drive: int = Field(default=0, alias="usageInDrive")
    usage_in_trash: int = Field(default=0, alias="usageInTrash")
