"""
Object storage for user selfies: an S3-compatible client and an in-memory
double for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import boto3
from botocore.config import Config

SELFIE_CONTENT_TYPE = "image/jpeg"


class StorageClient(Protocol):
    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        ...

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str = SELFIE_CONTENT_TYPE
    ) -> str:
        ...

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        ...


@dataclass
class StoredObject:
    data: bytes
    content_type: str


@dataclass
class InMemoryStorageClient:
    """Keeps uploads in a dict keyed by object path."""

    base_url: str = "https://example.test/storage"
    objects: dict[str, StoredObject] = field(default_factory=dict)

    @property
    def stored_objects(self) -> dict[str, bytes]:
        return {path: obj.data for path, obj in self.objects.items()}

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return f"{self.base_url}/{path}?op=get&expires={expires_in}"

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str = SELFIE_CONTENT_TYPE
    ) -> str:
        return (
            f"{self.base_url}/{path}?op=put&expires={expires_in}"
            f"&contentType={content_type}"
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self.objects[path] = StoredObject(data=data, content_type=content_type)


@dataclass
class S3StorageClient:
    """Any S3-compatible bucket: AWS S3, Tencent COS, MinIO."""

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=Config(
                s3={"addressing_style": "virtual"}, signature_version="s3v4"
            ),
        )

    def _presign(self, client_method: str, params: dict, expires_in: int) -> str:
        return self._client.generate_presigned_url(
            ClientMethod=client_method,
            Params={"Bucket": self.bucket, **params},
            ExpiresIn=expires_in,
        )

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return self._presign("get_object", {"Key": path}, expires_in)

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str = SELFIE_CONTENT_TYPE
    ) -> str:
        # The uploader must send the same Content-Type header or the signature fails.
        return self._presign(
            "put_object", {"Key": path, "ContentType": content_type}, expires_in
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self._client.put_object(
            Bucket=self.bucket, Key=path, Body=data, ContentType=content_type
        )
