from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from . import media
from .aws_boto3 import AwsBoto3Error, s3_read_head
from .config import Config
from .errors import ExifError
from .exif import ShotExif, decode_exif


class SourceError(RuntimeError):
    pass


@dataclass(frozen=True)
class Source:
    """Where an image's bytes come from: a local file or an S3 object."""

    label: str
    path: Path | None = None
    bucket: str | None = None
    key: str | None = None

    @property
    def is_s3(self) -> bool:
        return self.bucket is not None


@dataclass(frozen=True)
class DecodeOutcome:
    source: Source
    exif: ShotExif | None = None
    # set when the bytes were read but did not decode
    decode_error: ExifError | None = None
    # set when the bytes could not be read at all
    fetch_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.exif is not None


def parse_source(s: str) -> Source:
    """
    "s3://bucket/key" names an S3 object; anything else is a local path.
    """
    if s.startswith("s3://"):
        bucket, _, key = s[len("s3://") :].partition("/")
        if not bucket or not key:
            raise SourceError(f"Invalid S3 URL '{s}' (expected s3://bucket/key)")
        return Source(label=s, bucket=bucket, key=key)
    return Source(label=s, path=Path(s).expanduser())


def s3_source(key: str, *, cfg: Config) -> Source:
    """A key in the configured bucket, placed under the configured prefix root."""
    full_key = cfg.s3_key(key)
    return Source(label=f"s3://{cfg.s3_bucket}/{full_key}", bucket=cfg.s3_bucket, key=full_key)


def expand_sources(args: list[str]) -> list[Source]:
    """Parse CLI source arguments; local directories expand to the JPEGs inside them."""
    out: list[Source] = []
    for arg in args:
        src = parse_source(arg)
        if src.path is not None and src.path.is_dir():
            out.extend(Source(label=str(p), path=p) for p in media.find_jpegs(src.path))
        else:
            out.append(src)
    return out


def read_head(source: Source, *, cfg: Config) -> bytes:
    """
    Read at most cfg.head_bytes leading bytes of the image.

    Raises:
        SourceError: local file cannot be read
        AwsBoto3Error: S3 object cannot be read
    """
    if source.is_s3:
        return s3_read_head(
            bucket=source.bucket,
            key=source.key,
            max_bytes=cfg.head_bytes,
            timeout_seconds=cfg.fetch_timeout_seconds,
            retries=cfg.fetch_retries,
        )
    try:
        with source.path.open("rb") as f:
            return f.read(cfg.head_bytes)
    except OSError as e:
        raise SourceError(f"Cannot read {source.path}: {e}") from e


def decode_source(source: Source, *, cfg: Config, logger: logging.Logger) -> DecodeOutcome:
    try:
        data = read_head(source, cfg=cfg)
    except (SourceError, AwsBoto3Error) as e:
        logger.error(f"Fetch failed: {source.label}: {e}")
        return DecodeOutcome(source=source, fetch_error=str(e))

    logger.debug(f"Read {len(data):,} bytes from {source.label}")
    try:
        exif = decode_exif(data)
    except ExifError as e:
        if e.code == "NoMetadataFound":
            logger.info(f"No EXIF: {source.label}")
        else:
            logger.warning(f"EXIF decode failed: {source.label}: {e.code}: {e}")
        return DecodeOutcome(source=source, decode_error=e)
    return DecodeOutcome(source=source, exif=exif)


def decode_sources(sources: list[Source], *, cfg: Config, logger: logging.Logger) -> list[DecodeOutcome]:
    """
    Fetch and decode every source on a thread pool. Results keep input order.
    """
    if not sources:
        return []

    results: list[DecodeOutcome | None] = [None] * len(sources)
    with ThreadPoolExecutor(max_workers=min(cfg.fetch_workers, len(sources))) as ex:
        futures = {ex.submit(decode_source, src, cfg=cfg, logger=logger): i for i, src in enumerate(sources)}
        for done, fut in enumerate(as_completed(futures), 1):
            i = futures[fut]
            results[i] = fut.result()
            logger.debug(f"Decoded [{done}/{len(sources)}]: {sources[i].label}")
    return [r for r in results if r is not None]
