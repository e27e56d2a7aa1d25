"""Adapter test fixtures -- parameterized for conformance testing."""

from __future__ import annotations

import socket
import uuid
from typing import TYPE_CHECKING

import pytest

from bucket_index.adapters._local import LocalAdapter

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from bucket_index._adapter import ObjectStoreAdapter

REGION = "us-east-1"


def _s3_available() -> bool:
    try:
        import boto3  # noqa: F401
        import moto  # noqa: F401
        import s3fs  # noqa: F401

        return True
    except ImportError:
        return False


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def moto_server() -> Iterator[str | None]:
    """Start a moto HTTP server for the test session.

    Uses server mode instead of mock_aws() to avoid Python 3.13
    PEP 667 f_locals incompatibility with s3fs/aiobotocore.
    """
    if not _s3_available():
        yield None
        return
    from moto.moto_server.threaded_moto_server import ThreadedMotoServer

    port = _free_port()
    server = ThreadedMotoServer(port=port, verbose=False)
    server.start()
    yield f"http://127.0.0.1:{port}"
    server.stop()


def make_bucket(endpoint_url: str, prefix: str = "test") -> str:
    """Create a uniquely named bucket on the moto server."""
    import boto3

    bucket = f"{prefix}-{uuid.uuid4().hex[:8]}"
    client = boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name=REGION,
    )
    client.create_bucket(Bucket=bucket)
    return bucket


_s3_param = pytest.param(
    "s3",
    marks=[
        pytest.mark.integration,
        pytest.mark.skipif(not _s3_available(), reason="moto/s3fs/boto3 not installed"),
    ],
)


@pytest.fixture(params=["local", _s3_param])
def adapter(request: pytest.FixtureRequest, moto_server: str | None, bucket_dir: Path) -> Iterator[ObjectStoreAdapter]:
    """Parameterized adapter fixture. Add new adapters here."""
    if request.param == "local":
        local = LocalAdapter(root=str(bucket_dir))
        yield local
        local.close()
    elif request.param == "s3":
        from bucket_index.adapters._s3 import S3Adapter

        assert moto_server is not None
        s3 = S3Adapter(
            bucket=make_bucket(moto_server, "conformance"),
            key="testing",
            secret="testing",
            region_name=REGION,
            endpoint_url=moto_server,
        )
        yield s3
        s3.close()
    else:
        pytest.skip(f"Unknown adapter: {request.param}")
