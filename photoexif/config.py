from __future__ import annotations

import multiprocessing
import os
from dataclasses import dataclass

MIN_HEAD_BYTES = 4 * 1024
MAX_HEAD_BYTES = 16 * 1024 * 1024


def _cpu_count() -> int:
    try:
        return multiprocessing.cpu_count()
    except NotImplementedError:
        return 4


def _clamp(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


@dataclass(frozen=True)
class Config:
    s3_bucket: str
    s3_prefix_root: str

    # Only this many leading bytes of each image are fetched; the Exif APP1
    # segment sits near the start and is at most 64 KiB.
    head_bytes: int

    fetch_timeout_seconds: float
    fetch_retries: int
    fetch_workers: int

    def s3_key(self, key: str) -> str:
        key = key.lstrip("/")
        if key.startswith(self.s3_prefix_root):
            return key
        return self.s3_prefix_root + key


def load_config(
    *,
    s3_bucket: str | None = None,
    s3_prefix_root: str | None = None,
    head_bytes: int | None = None,
    fetch_timeout_seconds: float | None = None,
    fetch_retries: int | None = None,
    fetch_workers: int | None = None,
) -> Config:
    env = os.environ

    s3_bucket = s3_bucket or env.get("PHOTOEXIF_S3_BUCKET", "photo-gallery")
    s3_prefix_root = s3_prefix_root if s3_prefix_root is not None else env.get("PHOTOEXIF_S3_PREFIX_ROOT", "photo/")
    s3_prefix_root = s3_prefix_root.lstrip("/")
    if s3_prefix_root and not s3_prefix_root.endswith("/"):
        s3_prefix_root += "/"

    head_bytes = int(head_bytes if head_bytes is not None else env.get("PHOTOEXIF_HEAD_BYTES", "131072"))
    fetch_timeout_seconds = float(
        fetch_timeout_seconds
        if fetch_timeout_seconds is not None
        else env.get("PHOTOEXIF_FETCH_TIMEOUT_SECONDS", "10")
    )
    fetch_retries = int(fetch_retries if fetch_retries is not None else env.get("PHOTOEXIF_FETCH_RETRIES", "3"))

    cpu = _cpu_count()
    fetch_workers = int(
        fetch_workers if fetch_workers is not None else env.get("PHOTOEXIF_FETCH_WORKERS", str(_clamp(cpu, 1, 8)))
    )

    if fetch_timeout_seconds <= 0:
        raise ValueError(f"Invalid fetch timeout {fetch_timeout_seconds} (must be > 0)")

    return Config(
        s3_bucket=s3_bucket,
        s3_prefix_root=s3_prefix_root,
        head_bytes=_clamp(head_bytes, MIN_HEAD_BYTES, MAX_HEAD_BYTES),
        fetch_timeout_seconds=fetch_timeout_seconds,
        fetch_retries=max(1, fetch_retries),
        fetch_workers=max(1, fetch_workers),
    )
