import argparse
import json
import logging
import sys
from typing import Any, TextIO

import yaml

from .model import FileType
from .options import ProcessingOptions
from .processor import TheProcessor


def _option(pair: str) -> tuple[str, Any]:
    # key=value; the value is read as JSON so lists and booleans survive, plain strings otherwise
    key, sep, raw = pair.partition('=')
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected key=value, got {pair!r}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip(), value


def load_options(config: str | None, pairs: list[tuple[str, Any]], order: str | None) -> ProcessingOptions:
    options = ProcessingOptions()
    if config:
        # YAML is a superset of JSON, so one loader reads both
        with open(config, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Options file {config} must hold a mapping")
        options = options.merge(data)
    options = options.merge(dict(pairs))
    if order:
        options = options.merge({'sort_order': order})
    return options


def main(argv: list[str]) -> int:
    # Parse CLI arguments.
    parser = argparse.ArgumentParser(prog='propsort', description="Sort properties of declarations, rules, structs, JSON and YAML.")
    parser.add_argument("paths", nargs='*', help="Files to sort; reads stdin and writes stdout when omitted.")
    parser.add_argument("--file-type", "-t", type=str, help="File type; inferred from the extension by default, typescript for stdin.")
    parser.add_argument("--order", "-o", choices=["asc", "desc"], help="Sort order.")
    parser.add_argument("--in-place", "-i", action="store_true", help="Rewrite files instead of printing them.")
    parser.add_argument("--check", "-c", action="store_true", help="Only report files that would change.")
    parser.add_argument("--config", type=str, help="JSON or YAML file with processing options.")
    parser.add_argument("--option", "-O", type=_option, action="append", default=[], metavar="KEY=VALUE", help="Processing option, repeatable.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug details to stderr.")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        options = load_options(args.config, args.option, args.order)
        file_type = FileType.parse(args.file_type) if args.file_type else None
    except (OSError, ValueError, yaml.YAMLError) as e:
        parser.error(str(e))  # exits with status 2

    processor = TheProcessor()
    if not args.paths:
        source = sys.stdin.read()
        result = processor.process_text(source, file_type, options)
        _report("<stdin>", result.warnings, result.errors, sys.stderr)
        if not result.success:
            return 1
        if args.check:
            return 1 if result.processed_text != source else 0
        sys.stdout.write(result.processed_text or '')
        return 0

    # Sorted text goes to stdout unless files are rewritten or checked, so diagnostics move to stderr
    stream = None if args.in_place or args.check else sys.stderr
    failed = 0
    changed = 0
    for path in args.paths:
        try:
            ft = file_type or FileType.from_filename(path)
            source = _read(path)
        except (OSError, ValueError) as e:
            print(f"[ERROR] {path}: {e}", file=stream)
            failed += 1
            continue
        result = processor.process_text(source, ft, options)
        _report(path, result.warnings, result.errors, stream)
        if not result.success:
            failed += 1
            continue
        output = result.processed_text if result.processed_text is not None else source
        if not (args.check or args.in_place):
            sys.stdout.write(output)
        elif output != source:
            changed += 1
            if args.check:
                print(f"{path} would be sorted")
            else:
                _write(path, output)
                print(f"{path} sorted")

    if failed:
        return 1
    return 1 if args.check and changed else 0


def _read(path: str) -> str:
    # newline='' keeps CRLF so the processor can restore it
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return f.read()


def _write(path: str, text: str) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(text)


def _report(path: str, warnings: list[str], errors: list[str], stream: TextIO | None = None) -> None:
    for warning in warnings:
        print(f"[WARNING] {path}: {warning}", file=stream)
    for error in errors:
        print(f"[ERROR] {path}: {error}", file=stream)


def cli() -> None:
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    cli()
