"""Command-line interface for encwatch."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import threading

import encwatch
from encwatch._utils import DEFAULT_SAFE_ENCODINGS, EXIT_UNREADABLE, UNKNOWN_TOKEN
from encwatch.classify import classify
from encwatch.config import DetectionConfig, normalize_safe_encodings
from encwatch.enums import EncodingEra
from encwatch.exceptions import EncwatchError, SampleUnavailable
from encwatch.executor import BoundedExecutor
from encwatch.pipeline import DetectionResult
from encwatch.reader import read_sample, resource_id

_ERA_NAMES = [e.name.lower() for e in EncodingEra if e.bit_count() == 1] + ["all"]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="encwatch",
        description="Detect the character encoding of files and flag unsafe ones.",
    )
    parser.add_argument("files", nargs="*", help="Files to detect encoding of")
    parser.add_argument(
        "--minimal",
        action="store_true",
        help="Output only the encoding name, or 'unknown'",
    )
    parser.add_argument(
        "--all", action="store_true", help="List every candidate encoding"
    )
    parser.add_argument(
        "--safe-encodings",
        default=None,
        help="Comma-separated encodings considered safe (default: ascii,utf-8)",
    )
    parser.add_argument(
        "-e",
        "--encoding-era",
        action="append",
        default=None,
        choices=_ERA_NAMES,
        help="Encoding era filter; repeat to combine eras",
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Report statistical guesses below this confidence as unknown",
    )
    parser.add_argument(
        "--keep-ascii",
        action="store_true",
        help="Report pure ASCII as ascii rather than utf-8",
    )
    parser.add_argument(
        "--sample-bytes", type=int, default=None, help="Leading bytes to examine"
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Per-file deadline in seconds"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log detection details"
    )
    parser.add_argument(
        "--version", action="version", version=f"encwatch {encwatch.__version__}"
    )
    return parser


def _config_from_args(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> DetectionConfig:
    overrides: dict[str, object] = {}
    if args.sample_bytes is not None:
        overrides["sample_bytes"] = args.sample_bytes
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.min_confidence is not None:
        overrides["minimum_confidence"] = args.min_confidence
    if args.keep_ascii:
        overrides["rename_ascii"] = False
    if args.encoding_era:
        era = EncodingEra(0)
        for name in args.encoding_era:
            era |= EncodingEra[name.upper()]
        overrides["encoding_era"] = era
    try:
        return dataclasses.replace(DetectionConfig.from_env(), **overrides)
    except ValueError as e:
        parser.error(str(e))


def _detect(
    data: bytes, config: DetectionConfig, show_all: bool
) -> list[DetectionResult]:
    if show_all:
        return encwatch.infer_all(
            data, encoding_era=config.encoding_era, max_bytes=config.sample_bytes
        )
    return [
        encwatch.infer(
            data,
            minimum_confidence=config.minimum_confidence,
            rename_ascii=config.rename_ascii,
            encoding_era=config.encoding_era,
            max_bytes=config.sample_bytes,
        )
    ]


def _format(
    name: str,
    result: DetectionResult,
    safe: tuple[str, ...],
    minimal: bool,
) -> str:
    if result.label is None:
        return UNKNOWN_TOKEN if minimal else f"{name}: {UNKNOWN_TOKEN}"
    if minimal:
        return result.label
    verdict = classify(result.label, safe).value
    return f"{name}: {result.label} with confidence {result.confidence:.2f} ({verdict})"


def main(argv: list[str] | None = None) -> None:
    """Run the ``encwatch`` command-line tool.

    Exits with status 1 if any file could not be checked, or with
    :data:`~encwatch._utils.EXIT_UNREADABLE` if the only failures were files
    that could not be read.

    :param argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(name)s: %(levelname)s: %(message)s"
        )

    config = _config_from_args(parser, args)
    if args.safe_encodings is None:
        safe = DEFAULT_SAFE_ENCODINGS
    else:
        safe = normalize_safe_encodings(args.safe_encodings.split(","))

    if not args.files:
        data = sys.stdin.buffer.read(config.sample_bytes)
        for result in _detect(data, config, args.all):
            print(_format("stdin", result, safe, args.minimal))
        return

    def work(path: str, cancel: threading.Event | None = None) -> list[DetectionResult]:
        return _detect(read_sample(path, config.sample_bytes), config, args.all)

    failed = False
    unreadable = False
    with BoundedExecutor(config.max_workers, config.timeout) as executor:
        tasks = [
            (filepath, executor.submit(work, resource_id(filepath)))
            for filepath in args.files
        ]
        for filepath, task in tasks:
            task.wait()
            error = task.error
            if isinstance(error, SampleUnavailable):
                print(f"encwatch: {filepath}: {error.reason}", file=sys.stderr)
                unreadable = True
            elif isinstance(error, EncwatchError):
                print(f"encwatch: {filepath}: {error}", file=sys.stderr)
                failed = True
            elif error is not None:
                raise error
            else:
                for result in task.value:
                    print(_format(filepath, result, safe, args.minimal))

    if failed:
        sys.exit(1)
    if unreadable:
        sys.exit(EXIT_UNREADABLE)


if __name__ == "__main__":
    main()
