from __future__ import annotations

import argparse
import json
import sys

from .config import Config, load_config
from .logging_utils import setup_logging
from .render import exif_details_html, exif_summary_lines
from .sources import DecodeOutcome, SourceError, decode_sources, expand_sources, s3_source


def _jsonable(value):
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, tuple):
        # Rational is a NamedTuple
        if hasattr(value, "_asdict"):
            return value._asdict()
        return [_jsonable(v) for v in value]
    return value


def _outcome_json(outcome: DecodeOutcome, *, raw: bool) -> dict:
    d: dict = {"source": outcome.source.label}
    if outcome.fetch_error is not None:
        d["error"] = "FetchError"
        d["message"] = outcome.fetch_error
    elif outcome.decode_error is not None:
        d["error"] = outcome.decode_error.code
        d["message"] = str(outcome.decode_error)
    else:
        d["exif"] = outcome.exif.as_dict()
        if raw:
            d["raw"] = {k: _jsonable(v) for k, v in outcome.exif.raw.items()}
    return d


def _print_text(outcome: DecodeOutcome, *, raw: bool) -> None:
    print(outcome.source.label)
    if outcome.fetch_error is not None:
        print(f"  ! could not read: {outcome.fetch_error.splitlines()[0]}")
    elif outcome.decode_error is not None:
        print(f"  ! {outcome.decode_error.code}: {outcome.decode_error}")
    else:
        lines = exif_summary_lines(outcome.exif)
        for line in lines or ["(no EXIF fields)"]:
            print(f"  {line}")
        if raw:
            for k, v in outcome.exif.raw.items():
                print(f"  [{k}] {_jsonable(v)!r}")
    print()


def _emit(outcomes: list[DecodeOutcome], args: argparse.Namespace) -> int:
    if args.json:
        print(json.dumps([_outcome_json(o, raw=args.raw) for o in outcomes], indent=2, ensure_ascii=False))
    elif args.html:
        for o in outcomes:
            print(f"<!-- {o.source.label} -->")
            print(exif_details_html(o.exif))
    else:
        for o in outcomes:
            _print_text(o, raw=args.raw)

    if any(o.fetch_error is not None for o in outcomes):
        return 2
    if any(o.decode_error is not None for o in outcomes):
        return 1
    return 0


def _config_from_args(args: argparse.Namespace) -> Config:
    return load_config(
        s3_bucket=args.s3_bucket,
        s3_prefix_root=args.s3_prefix_root,
        head_bytes=args.head_bytes,
        fetch_timeout_seconds=args.fetch_timeout_seconds,
        fetch_retries=args.fetch_retries,
        fetch_workers=args.workers,
    )


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--s3-bucket", default=None, help="S3 bucket for bare keys (default: photo-gallery)")
    p.add_argument("--s3-prefix-root", default=None, help="S3 prefix root for bare keys (default: photo/)")
    p.add_argument("--head-bytes", type=int, default=None, help="Leading bytes to read per image (default: 131072)")
    p.add_argument(
        "--fetch-timeout-seconds", type=float, default=None, help="Connect/read timeout for S3 reads (default: 10)"
    )
    p.add_argument("--fetch-retries", type=int, default=None, help="Attempts per S3 read (default: 3)")
    p.add_argument("--workers", type=int, default=None, help="Parallel fetches (default: CPU count, max 8)")
    out = p.add_mutually_exclusive_group()
    out.add_argument("--json", action="store_true", help="Print results as JSON")
    out.add_argument("--html", action="store_true", help="Print the gallery caption HTML fragment per image")
    p.add_argument("--raw", action="store_true", help="Also print the raw decoded tag fields")
    p.add_argument("--quiet", action="store_true", help="Reduce log verbosity (INFO level only, no DEBUG)")


def cmd_show(args: argparse.Namespace) -> int:
    logger = setup_logging(verbose=not args.quiet)
    try:
        cfg = _config_from_args(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    try:
        sources = expand_sources(args.sources)
    except SourceError as e:
        logger.error(str(e))
        return 2
    if not sources:
        logger.warning("No JPEG files found")
        return 0
    return _emit(decode_sources(sources, cfg=cfg, logger=logger), args)


def cmd_s3(args: argparse.Namespace) -> int:
    logger = setup_logging(verbose=not args.quiet)
    try:
        cfg = _config_from_args(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    sources = [s3_source(k, cfg=cfg) for k in args.keys]
    logger.info(f"Reading {len(sources)} object(s) from s3://{cfg.s3_bucket}/{cfg.s3_prefix_root}")
    return _emit(decode_sources(sources, cfg=cfg, logger=logger), args)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="photoexif", description="Read camera and exposure EXIF from JPEG files")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_show = sub.add_parser("show", help="Decode local JPEGs, directories of JPEGs, or s3://bucket/key URLs")
    _add_common_args(p_show)
    p_show.add_argument("sources", nargs="+", help="JPEG file, directory, or s3://bucket/key")
    p_show.set_defaults(func=cmd_show)

    p_s3 = sub.add_parser("s3", help="Decode objects in the configured bucket by key")
    _add_common_args(p_s3)
    p_s3.add_argument("keys", nargs="+", help="Object keys (the prefix root is added when missing)")
    p_s3.set_defaults(func=cmd_s3)

    return p


def main(argv: list[str] | None = None) -> None:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    rc = args.func(args)
    raise SystemExit(rc)
