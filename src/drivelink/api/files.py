"""File and folder operations against the Drive v3 API."""

from __future__ import annotations

import json
import logging

from drivelink.api.client import AuthorizedHTTPClient
from drivelink.api.models import (
    FILE_FIELDS,
    FOLDER_MIME_TYPE,
    FileList,
    FileMetadata,
    StorageQuota,
    UploadResult,
)

logger = logging.getLogger(__name__)

MULTIPART_BOUNDARY = "-------314159265358979323846"


def quote_query_value(value: str) -> str:
    """Quote a string literal for a Drive search query."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class DriveFilesClient:
    """Thin wrapper over the Drive files, permissions and about endpoints.

    ``root_folder_id`` from the config scopes listing and folder creation
    when no explicit parent is given.
    """

    def __init__(self, http: AuthorizedHTTPClient, root_folder_id: str | None = None):
        self._http = http
        self.root_folder_id = root_folder_id

    async def list_files(
        self,
        folder_id: str | None = None,
        page_size: int = 100,
        order_by: str | None = None,
        query: str | None = None,
        page_token: str | None = None,
    ) -> FileList:
        query_parts = []
        parent = folder_id or self.root_folder_id
        if parent:
            query_parts.append(f"{quote_query_value(parent)} in parents")
        query_parts.append("trashed = false")
        if query:
            query_parts.append(query)

        params = {
            "q": " and ".join(query_parts),
            "pageSize": str(page_size),
            "fields": f"nextPageToken,files({FILE_FIELDS})",
        }
        if order_by:
            params["orderBy"] = order_by
        if page_token:
            params["pageToken"] = page_token

        data = await self._http.get_json("/files", params=params)
        return FileList(
            files=[FileMetadata(**item) for item in data.get("files", [])],
            next_page_token=data.get("nextPageToken"),
        )

    async def search_files(
        self,
        query: str,
        folder_id: str | None = None,
        max_results: int = 20,
        mime_type: str | None = None,
    ) -> list[FileMetadata]:
        query_parts = [f"name contains {quote_query_value(query)}", "trashed = false"]
        if folder_id:
            query_parts.append(f"{quote_query_value(folder_id)} in parents")
        if mime_type:
            query_parts.append(f"mimeType = {quote_query_value(mime_type)}")

        data = await self._http.get_json(
            "/files",
            params={
                "q": " and ".join(query_parts),
                "pageSize": str(max_results),
                "fields": f"files({FILE_FIELDS})",
            },
        )
        return [FileMetadata(**item) for item in data.get("files", [])]

    async def get_file_metadata(self, file_id: str) -> FileMetadata:
        data = await self._http.get_json(
            f"/files/{file_id}", params={"fields": FILE_FIELDS}
        )
        return FileMetadata(**data)

    async def create_folder(
        self,
        name: str,
        parent_id: str | None = None,
        description: str | None = None,
        folder_color_rgb: str | None = None,
    ) -> str:
        """Create a folder and return its id."""
        metadata: dict[str, object] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        parent = parent_id or self.root_folder_id
        if parent:
            metadata["parents"] = [parent]
        if description:
            metadata["description"] = description
        if folder_color_rgb:
            metadata["folderColorRgb"] = folder_color_rgb

        data = await self._http.post_json("/files", metadata)
        logger.info(f"Created folder {name!r} ({data['id']})")
        return data["id"]

    async def get_or_create_folder(self, name: str, parent_id: str | None = None) -> str:
        query_parts = [
            f"name = {quote_query_value(name)}",
            f"mimeType = '{FOLDER_MIME_TYPE}'",
            "trashed = false",
        ]
        parent = parent_id or self.root_folder_id
        if parent:
            query_parts.append(f"{quote_query_value(parent)} in parents")

        data = await self._http.get_json(
            "/files",
            params={"q": " and ".join(query_parts), "fields": "files(id)", "pageSize": "1"},
        )
        if files := data.get("files"):
            return files[0]["id"]

        return await self.create_folder(name, parent_id=parent_id)

    async def delete_file(self, file_id: str) -> None:
        await self._http.request("DELETE", f"/files/{file_id}")

    async def download_file(self, file_id: str) -> bytes:
        response = await self._http.request(
            "GET", f"/files/{file_id}", params={"alt": "media"}
        )
        return response.content

    async def upload_file(
        self,
        content: bytes,
        file_name: str,
        mime_type: str = "application/octet-stream",
        folder: str | None = None,
        parents: list[str] | None = None,
        description: str | None = None,
        make_public: bool = False,
    ) -> UploadResult:
        """Upload ``content`` with a multipart/related request.

        ``parents`` wins over ``folder``; ``folder`` is a folder name that is
        looked up or created under the root folder.
        """
        parent_id = self.root_folder_id
        if parents:
            parent_id = parents[0]
        elif folder:
            parent_id = await self.get_or_create_folder(folder)

        metadata: dict[str, object] = {"name": file_name, "mimeType": mime_type}
        if description:
            metadata["description"] = description
        if parent_id:
            metadata["parents"] = [parent_id]

        delimiter = f"\r\n--{MULTIPART_BOUNDARY}\r\n".encode()
        body = b"".join(
            [
                delimiter,
                b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
                json.dumps(metadata).encode("utf-8"),
                delimiter,
                f"Content-Type: {mime_type}\r\n\r\n".encode(),
                content,
                f"\r\n--{MULTIPART_BOUNDARY}--".encode(),
            ]
        )

        response = await self._http.request(
            "POST",
            f"{self._http.upload_base}/files",
            params={"uploadType": "multipart", "fields": FILE_FIELDS},
            headers={"Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}"},
            content=body,
        )
        data = response.json()

        if make_public:
            await self.make_file_public(data["id"])

        return UploadResult(
            file_id=data["id"],
            file_name=data.get("name", file_name),
            file_url=data.get("webViewLink")
            or f"https://drive.google.com/file/d/{data['id']}/view",
            file_size=len(content),
            mime_type=mime_type,
            web_view_link=data.get("webViewLink"),
            web_content_link=data.get("webContentLink"),
        )

    async def make_file_public(self, file_id: str) -> None:
        await self._http.post_json(
            f"/files/{file_id}/permissions", {"type": "anyone", "role": "reader"}
        )

    async def get_storage_quota(self) -> StorageQuota:
        data = await self._http.get_json("/about", params={"fields": "storageQuota"})
        return StorageQuota(**data.get("storageQuota", {}))
