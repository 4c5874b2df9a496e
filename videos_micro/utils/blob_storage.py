"""
Blob Storage Utilities

Stores raw video and thumbnail bytes in Google Drive and hands back public
URLs. A Drive folder acts as the container; objects inside it are named
`<folder>/<uuid4>-<original filename>`.

Setup:
1. Create a Google Cloud Project and enable the Drive API
2. Create a service account and download its JSON key
3. Share the target folder with the service account email
4. STORAGE_CREDENTIALS=<path to key>, STORAGE_CONTAINER=<folder id>

One client is built at startup and injected into handlers via get_storage().
"""

import io
import logging
import re
import uuid
from typing import Optional

import google_auth_httplib2
import httplib2
from fastapi import Request
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from utils.errors import StorageError
from utils.settings import Settings

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ['https://www.googleapis.com/auth/drive']
PUBLIC_URL_TEMPLATE = "https://drive.google.com/uc?id={file_id}&export=download"
FILE_ID_PATTERN = re.compile(r"(?:[?&]id=|/file/d/)([A-Za-z0-9_-]+)")

# Uploads at or under this size go in a single request
SINGLE_SHOT_SIZE = 4 * 1024 * 1024


class BlobStorage:
    """Upload/delete binary objects in a Drive folder"""

    def __init__(self, service, container: str):
        self.service = service
        self.container = container

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlobStorage":
        """
        Build the Drive client. The HTTP transport carries the upload timeout
        so long uploads are not cut short by the library default.
        """
        if not settings.storage_credentials or not settings.storage_container:
            raise StorageError("STORAGE_CREDENTIALS and STORAGE_CONTAINER must be set")

        try:
            credentials = Credentials.from_service_account_file(
                settings.storage_credentials, scopes=DRIVE_SCOPES
            )
            http = google_auth_httplib2.AuthorizedHttp(
                credentials, http=httplib2.Http(timeout=settings.upload_timeout_seconds)
            )
            service = build('drive', 'v3', http=http, cache_discovery=False)
        except Exception as e:
            raise StorageError(f"Failed to initialize blob storage: {e}") from e

        logger.info(f"✅ Blob storage ready (container={settings.storage_container})")
        return cls(service, settings.storage_container)

    @staticmethod
    def object_name(folder: str, original_name: Optional[str]) -> str:
        original_name = (original_name or "file").replace("/", "_")
        return f"{folder}/{uuid.uuid4()}-{original_name}"

    @staticmethod
    def file_id_from_url(url: str) -> Optional[str]:
        match = FILE_ID_PATTERN.search(url or "")
        return match.group(1) if match else None

    def upload_bytes(self, data: bytes, folder: str, original_name: Optional[str], mime_type: str) -> str:
        """
        Upload `data` and make it publicly readable.

        Returns:
            Public URL of the stored object
        """
        name = self.object_name(folder, original_name)
        logger.info(f"⬆️ Starting blob upload name={name} mime={mime_type} size={len(data)}")

        try:
            media = MediaIoBaseUpload(
                io.BytesIO(data),
                mimetype=mime_type,
                resumable=len(data) > SINGLE_SHOT_SIZE,
            )
            file = self.service.files().create(
                body={'name': name, 'parents': [self.container]},
                media_body=media,
                fields='id'
            ).execute()

            file_id = file.get('id')

            # Make file publicly accessible
            self.service.permissions().create(
                fileId=file_id,
                body={'role': 'reader', 'type': 'anyone'}
            ).execute()
        except Exception as e:
            logger.error(f"❌ Blob upload failed name={name}: {e}")
            raise StorageError(f"Failed to upload {name}: {e}") from e

        url = PUBLIC_URL_TEMPLATE.format(file_id=file_id)
        logger.info(f"✅ Blob upload completed url={url}")
        return url

    def delete_by_url(self, url: str) -> None:
        file_id = self.file_id_from_url(url)
        if not file_id:
            raise StorageError(f"Not a blob store URL: {url}")

        try:
            self.service.files().delete(fileId=file_id).execute()
        except Exception as e:
            raise StorageError(f"Failed to delete {file_id}: {e}") from e


def get_storage(request: Request) -> Optional[BlobStorage]:
    """The startup-built client, or None when the blob store is not configured"""
    return getattr(request.app.state, "storage", None)
