"""Durable object storage with public URLs for provider-side image access."""

from __future__ import annotations

from typing import Dict, Optional, Tuple
from urllib.parse import quote

from tools.observability import instrument_provider

PUBLIC_CACHE_CONTROL = "public, max-age=3600"


class ObjectStorage:
    """Persistence interface for uploaded images."""

    def upload(self, key: str, data: bytes, content_type: str, public: bool = True) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        raise NotImplementedError


class GCSObjectStorage(ObjectStorage):
    """Google Cloud Storage bucket; the client is created on first upload."""

    def __init__(self, bucket_name: str, credentials_path: Optional[str] = None) -> None:
        if not bucket_name:
            raise ValueError("bucket_name is required for object storage")
        self.bucket_name = bucket_name
        self.credentials_path = credentials_path
        self._bucket = None

    def _get_bucket(self):
        if self._bucket is None:
            from google.cloud import storage

            if self.credentials_path:
                client = storage.Client.from_service_account_json(self.credentials_path)
            else:
                client = storage.Client()
            self._bucket = client.bucket(self.bucket_name)
        return self._bucket

    @instrument_provider("gcs", "upload")
    def upload(self, key: str, data: bytes, content_type: str, public: bool = True) -> str:
        blob = self._get_bucket().blob(key)
        blob.cache_control = PUBLIC_CACHE_CONTROL
        blob.upload_from_string(data, content_type=content_type)
        if public:
            blob.make_public()
        return f"https://storage.googleapis.com/{self.bucket_name}/{quote(key)}"


class InMemoryObjectStorage(ObjectStorage):
    """Dictionary-backed storage for local runs and tests."""

    def __init__(self, base_url: str = "https://storage.local/ootd") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[str, Tuple[bytes, str, bool]] = {}

    def upload(self, key: str, data: bytes, content_type: str, public: bool = True) -> str:
        self.objects[key] = (data, content_type, public)
        return f"{self.base_url}/{quote(key)}"


__all__ = ["GCSObjectStorage", "InMemoryObjectStorage", "ObjectStorage", "PUBLIC_CACHE_CONTROL"]
