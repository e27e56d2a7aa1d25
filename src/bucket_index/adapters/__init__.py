"""Adapter implementations."""

from bucket_index.adapters._local import LocalAdapter
from bucket_index.adapters._s3 import S3Adapter

__all__ = ["LocalAdapter", "S3Adapter"]
