from __future__ import annotations

import io
from typing import IO, Any

from ..errors import InvalidInput, UploadFailed
from ..observability.logging import get_logger

log = get_logger("storage_gateway")


def make_key(*, prefix: str, owner_id: str, file_name: str) -> str:
    return f"{prefix}/{owner_id}-{file_name}"


def public_url(*, bucket: str, region: str, key: str) -> str:
    """Virtual-hosted-style address. Pure: nothing is looked up or stored."""
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


def _body_and_length(content: bytes | IO[bytes]) -> tuple[bytes | IO[bytes], int]:
    """
    Seekable streams are handed to S3 as-is, sized from their remaining
    bytes; anything else is read into memory first.
    """
    if isinstance(content, (bytes, bytearray, memoryview)):
        data = bytes(content)
        return data, len(data)
    try:
        if getattr(content, "seekable", lambda: False)():
            start = content.tell()
            end = content.seek(0, io.SEEK_END)
            content.seek(start)
            return content, max(0, end - start)
        data = content.read() or b""
    except (OSError, ValueError) as e:
        # ValueError: the stream was already closed.
        raise UploadFailed(message=f"Could not read upload stream: {e}", operation="upload", cause=e) from e
    return data, len(data)


class StorageGateway:
    """Uploads user content to the assets bucket."""

    def __init__(self, *, s3: Any, bucket: str | None, region: str, key_prefix: str = "images"):
        self._s3 = s3
        self._bucket = (bucket or "").strip()
        self._region = region
        self._prefix = (key_prefix or "images").strip("/") or "images"

    @property
    def bucket(self) -> str:
        if not self._bucket:
            raise RuntimeError("ASSETS_BUCKET_NAME is not set")
        return self._bucket

    def key_for(self, owner_id: str, file_name: str) -> str:
        return make_key(prefix=self._prefix, owner_id=str(owner_id), file_name=file_name)

    def public_url(self, key: str) -> str:
        return public_url(bucket=self.bucket, region=self._region, key=key)

    def upload(
        self,
        owner_id: str,
        file_name: str | None,
        content: bytes | IO[bytes],
        *,
        content_type: str | None = None,
    ) -> str:
        """
        Store ``content`` under ``<prefix>/<owner_id>-<file_name>`` and return
        its public address.

        S3 errors propagate as raised by botocore. Nothing is verified after
        the put.
        """
        if not (file_name or "").strip():
            raise InvalidInput(
                message="Cannot upload file because provided file name is empty", operation="upload"
            )

        body, size = _body_and_length(content)
        if not size:
            raise InvalidInput(message="Cannot upload file because provided file is empty", operation="upload")

        key = self.key_for(owner_id, str(file_name))
        kwargs: dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": body, "ContentLength": size}
        if content_type:
            kwargs["ContentType"] = str(content_type)
        self._s3.put_object(**kwargs)

        log.info("object_uploaded", key=key, size=size)
        return self.public_url(key)
