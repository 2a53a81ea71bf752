from __future__ import annotations

import io

import pytest
from botocore.exceptions import ClientError
from fakes import FakeS3, client_error

from servicehub.errors import InvalidInput, UploadFailed
from servicehub.services.file_upload_service import FileUploadService
from servicehub.services.storage_gateway import StorageGateway, public_url


def _gateway(s3: FakeS3) -> StorageGateway:
    return StorageGateway(s3=s3, bucket="servicehub-assets", region="us-east-1")


class _BrokenStream(io.RawIOBase):
    def read(self, *_args):
        raise OSError("connection reset")


def test_upload_returns_derived_public_url():
    s3 = FakeS3()
    url = _gateway(s3).upload("7", "avatar.png", b"\x89PNG", content_type="image/png")

    assert url == "https://servicehub-assets.s3.us-east-1.amazonaws.com/images/7-avatar.png"
    (put,) = s3.puts
    assert put["Bucket"] == "servicehub-assets"
    assert put["Key"] == "images/7-avatar.png"
    assert put["Body"] == b"\x89PNG"
    assert put["ContentType"] == "image/png"


def test_public_url_is_pure():
    key = "images/7-avatar.png"
    assert public_url(bucket="b", region="eu-west-1", key=key) == public_url(bucket="b", region="eu-west-1", key=key)
    assert public_url(bucket="b", region="eu-west-1", key=key) == "https://b.s3.eu-west-1.amazonaws.com/images/7-avatar.png"


def test_upload_accepts_a_stream():
    s3 = FakeS3()
    stream = io.BytesIO(b"hello")
    _gateway(s3).upload("7", "notes.txt", stream)

    (put,) = s3.puts
    assert put["Body"] is stream
    assert put["ContentLength"] == 5
    assert put["Body"].read() == b"hello"


def test_stream_is_sized_from_its_current_position():
    s3 = FakeS3()
    stream = io.BytesIO(b"skip:payload")
    stream.seek(5)
    _gateway(s3).upload("7", "notes.txt", stream)

    assert s3.puts[0]["ContentLength"] == 7
    assert s3.puts[0]["Body"].read() == b"payload"


@pytest.mark.parametrize("file_name", ["", "   ", None])
def test_blank_file_name_is_invalid_before_any_store_call(file_name):
    s3 = FakeS3()
    with pytest.raises(InvalidInput):
        _gateway(s3).upload("7", file_name, b"data")
    assert s3.puts == []


@pytest.mark.parametrize("content", [b"", io.BytesIO(b"")])
def test_empty_content_is_invalid_before_any_store_call(content):
    s3 = FakeS3()
    with pytest.raises(InvalidInput):
        _gateway(s3).upload("7", "f", content)
    assert s3.puts == []


def test_stream_read_error_is_upload_failed():
    s3 = FakeS3()
    with pytest.raises(UploadFailed) as ei:
        _gateway(s3).upload("7", "f.bin", _BrokenStream())
    assert isinstance(ei.value.cause, OSError)
    assert s3.puts == []


def test_closed_stream_is_upload_failed():
    s3 = FakeS3()
    stream = io.BytesIO(b"data")
    stream.close()

    with pytest.raises(UploadFailed) as ei:
        _gateway(s3).upload("7", "f.bin", stream)
    assert isinstance(ei.value.cause, ValueError)
    assert s3.puts == []


def test_store_errors_propagate_untranslated():
    s3 = FakeS3(fail_with=client_error("AccessDenied", "PutObject"))
    with pytest.raises(ClientError):
        _gateway(s3).upload("7", "f.bin", b"data")


def test_file_upload_service_wraps_url_in_response_body():
    svc = FileUploadService(storage=_gateway(FakeS3()))
    body = svc.save_file(7, "cv.pdf", b"%PDF")

    assert body.ok
    assert body.data.url.endswith("/images/7-cv.pdf")
    assert body.to_dict()["data"] == {"url": body.data.url}
