"""Command-line interface for html2quiz."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .version import __version__


def _get_usage() -> str:
    return (
        f"html2quiz {__version__}\n"
        "Usage:\n"
        "  html2quiz [--help] [--version|--ver]\n"
        "  html2quiz --write-markers PATH\n"
        "  html2quiz --from-dir FROM_DIR --to-dir TO_DIR [options]\n\n"
        "Options:\n"
        "  --format {html,markdown}     Output page format (default: html)\n"
        "  --markers PATH               Use markers JSON (class and tag names)\n"
        "  --write-markers PATH         Write default markers JSON and exit\n"
        "  --question-class CLASS       Class of question title paragraphs\n"
        "  --image-class CLASS          Class of image containers\n"
        "  --bold-tag TAG               Tag marking the correct answer\n"
        "  --no-download                Do not fetch referenced images\n"
        "  --image-timeout SECONDS      Image download timeout (default: 30)\n"
        "  --continue-on-error          Skip documents that fail extraction\n"
        "  --verbose                    Verbose progress logs\n"
        "  --debug                      Debug logs"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--help", action="store_true")
    parser.add_argument("--version", action="store_true")
    parser.add_argument("--ver", action="store_true")
    parser.add_argument("--from-dir", help="Directory containing the source .html documents")
    parser.add_argument("--to-dir", help="Output directory")
    parser.add_argument("--format", dest="output_format", default="html", help="Output page format: html or markdown")
    parser.add_argument("--markers", help="Path to a JSON file overriding marker class and tag names")
    parser.add_argument("--write-markers", help="Write the default markers JSON to the given path and exit")
    parser.add_argument("--question-class", help="Class attribute identifying question title paragraphs")
    parser.add_argument("--image-class", help="Class attribute identifying image containers")
    parser.add_argument("--bold-tag", help="Tag name marking the correct answer choice")
    parser.add_argument("--no-download", action="store_true", help="Map image references to paths without fetching")
    parser.add_argument(
        "--image-timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for each image download (default: 30)",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Log and skip documents that fail instead of stopping at the first one",
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose progress logs")
    parser.add_argument("--debug", action="store_true", help="Debug logs")
    return parser


def _validate_args(args: argparse.Namespace, formats) -> str | None:
    if args.output_format not in formats:
        return f"Invalid value for --format: must be one of {', '.join(formats)}"
    if args.image_timeout is None or args.image_timeout <= 0:
        return "Invalid value for --image-timeout: must be > 0"
    for flag, value in (
        ("--question-class", args.question_class),
        ("--image-class", args.image_class),
        ("--bold-tag", args.bold_tag),
    ):
        if value is not None and not value.strip():
            return f"Invalid value for {flag}: must not be empty"
    return None


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = _build_parser()
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        print(_get_usage())
        return 2

    if not argv or args.help:
        print(_get_usage())
        return 0

    if args.version or args.ver:
        print(__version__)
        return 0

    try:
        from html2quiz import core
    except Exception as exc:
        print(f"Unable to import html2quiz core: {exc}", file=sys.stderr)
        return 6

    validation_error = _validate_args(args, core.OUTPUT_FORMATS)
    if validation_error:
        print(validation_error, file=sys.stderr)
        return core.EXIT_INVALID_ARGS

    core.setup_logging(args.verbose, args.debug)

    if args.write_markers:
        target = Path(args.write_markers).expanduser().resolve()
        try:
            core.write_markers_file(target)
        except Exception as exc:
            print(f"Unable to write markers file {target}: {exc}", file=sys.stderr)
            return core.EXIT_INVALID_ARGS
        if args.verbose:
            print(f"Default markers written to {target}")
        return 0

    if not args.from_dir or not args.to_dir:
        print(_get_usage())
        print("Options --from-dir and --to-dir are required unless --write-markers or --version/--ver is used", file=sys.stderr)
        return core.EXIT_INVALID_ARGS

    from_dir = Path(args.from_dir).expanduser().resolve()
    to_dir = Path(args.to_dir).expanduser().resolve()

    if not from_dir.exists() or not from_dir.is_dir():
        print(f"Source directory not found: {from_dir}", file=sys.stderr)
        return core.EXIT_INVALID_ARGS

    if to_dir.exists():
        if not to_dir.is_dir():
            print(f"Output path is not a directory: {to_dir}", file=sys.stderr)
            return core.EXIT_OUTPUT_DIR
        if any(to_dir.iterdir()):
            print(f"Output directory must be empty: {to_dir}", file=sys.stderr)
            return core.EXIT_OUTPUT_DIR

    extractor_cfg = core.ExtractorConfig()
    if args.markers:
        markers_path = Path(args.markers).expanduser().resolve()
        if not markers_path.exists() or not markers_path.is_file():
            print(f"Markers file not found: {markers_path}", file=sys.stderr)
            return core.EXIT_INVALID_ARGS
        try:
            extractor_cfg = core.load_markers_file(markers_path)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return core.EXIT_INVALID_ARGS

    overrides = {
        key: value.strip()
        for key, value in (
            ("question_class", args.question_class),
            ("image_class", args.image_class),
            ("bold_tag", args.bold_tag),
        )
        if value is not None
    }
    if overrides:
        extractor_cfg = replace(extractor_cfg, **overrides)

    pipeline_cfg = core.PipelineConfig(
        extractor=extractor_cfg,
        output_format=str(args.output_format),
        download_images=not args.no_download,
        continue_on_error=bool(args.continue_on_error),
        verbose=bool(args.verbose),
        debug=bool(args.debug),
        image_timeout=float(args.image_timeout),
    )

    try:
        result = core.run_processing_pipeline(from_dir=from_dir, out_dir=to_dir, config=pipeline_cfg)
    except (core.DocumentParseError, core.ExtractionError) as exc:
        print(f"Extraction failed: {exc}", file=sys.stderr)
        return core.EXIT_EXTRACTION
    except core.ImageFetchError as exc:
        print(f"Image retrieval failed: {exc}", file=sys.stderr)
        return core.EXIT_IMAGE_FETCH
    except OSError as exc:
        print(f"Unable to write output to {to_dir}: {exc}", file=sys.stderr)
        return core.EXIT_OUTPUT_DIR

    if result.failures:
        print(f"{len(result.failures)} document(s) failed extraction", file=sys.stderr)
        return core.EXIT_EXTRACTION
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
