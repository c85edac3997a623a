"""CLI entrypoint for the ESP analyzer."""

import argparse
import fnmatch
import json
import os
import sys
from dataclasses import replace

from .analyzer import EspAnalyzer
from .config import AnalyzerConfig
from .log_utils import log_warning, set_log_file
from .providers import ProviderTableError


DEFAULT_INCLUDES = ["*.eml", "*.txt"]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect the email service provider that relayed a message."
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="message",
        help="Path to a raw message or header file ('-' reads stdin).",
    )
    parser.add_argument(
        "-d",
        "--dir",
        help="Analyze all matching files in a directory.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Recursively scan directories when using -d.",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=[],
        help="Include glob pattern(s) for directory scans (default: *.eml, *.txt).",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Exclude glob pattern(s) for directory scans.",
    )
    parser.add_argument(
        "--json",
        nargs="?",
        const=True,
        help="Write JSON output (optional path). Defaults to <file>-esp.json.",
    )
    parser.add_argument(
        "--providers",
        help="YAML or JSON provider table replacing the built-in one.",
    )
    parser.add_argument(
        "--mailbox",
        help="Mailbox the message was fetched from (added to the reasons).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log extracted signals and provider scores.",
    )
    parser.add_argument(
        "--log-file",
        help="Append log lines to this file instead of stderr.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not args.message and not args.dir:
        parser.error("Either -f/--file or -d/--dir is required.")

    config = AnalyzerConfig.from_env()
    config = replace(
        config,
        provider_table_path=args.providers or config.provider_table_path,
        log_file=args.log_file or config.log_file,
        debug=args.debug or config.debug,
    )
    if config.log_file:
        set_log_file(config.log_file)

    try:
        analyzer = EspAnalyzer(config, verbose=args.verbose)
    except (OSError, ProviderTableError) as exc:
        log_warning(f"Cannot load provider table: {exc}")
        return 1

    if args.message == "-":
        report = analyzer.analyze_text(sys.stdin.read(), mailbox=args.mailbox)
        _write_output(analyzer.report_as_dict(report), args.json, None)
        return 0

    paths = _collect_paths(
        args.message,
        args.dir,
        recursive=args.recursive,
        includes=args.include,
        excludes=args.exclude,
    )
    if not paths:
        return 0

    status = 0
    total = len(paths)
    for index, path in enumerate(paths, start=1):
        if total > 1:
            sys.stderr.write(f"[{index}/{total}] Analyzing {path}\n")
        try:
            report = analyzer.analyze_path(path, mailbox=args.mailbox)
        except OSError as exc:
            log_warning(f"Cannot read {path}: {exc}")
            status = 1
            continue
        output = analyzer.report_as_dict(report)
        if args.json:
            _write_output(output, args.json, path, many=total > 1)
        elif total == 1:
            _write_output(output, None, path)
        else:
            esp = output["root"]["esp"]
            sys.stdout.write(f"{path}\t{esp['provider']}\t{esp['confidence']:.2f}\n")
    return status


def _write_output(
    output: dict, json_arg: object, source_path: str | None, many: bool = False
) -> None:
    serialized = json.dumps(output, indent=2)
    if not json_arg:
        sys.stdout.write(serialized + "\n")
        return
    if isinstance(json_arg, str) and not many:
        json_path = json_arg
    elif isinstance(json_arg, str):
        os.makedirs(json_arg, exist_ok=True)
        json_path = os.path.join(json_arg, os.path.basename(_default_json_path(source_path)))
    else:
        json_path = _default_json_path(source_path)
    with open(json_path, "w", encoding="utf-8") as handle:
        handle.write(serialized)


def _default_json_path(source_path: str | None) -> str:
    if not source_path:
        return "stdin-esp.json"
    stem, _ = os.path.splitext(source_path)
    return f"{stem}-esp.json"


def _collect_paths(
    message_path: str | None,
    directory: str | None,
    recursive: bool = False,
    includes: list[str] | None = None,
    excludes: list[str] | None = None,
) -> list[str]:
    if message_path:
        return [message_path]
    if not directory or not os.path.isdir(directory):
        return []
    include_patterns = includes or DEFAULT_INCLUDES
    exclude_patterns = excludes or []

    entries: list[str] = []
    if recursive:
        for root, _, files in os.walk(directory):
            for name in files:
                if _match_patterns(name, include_patterns, exclude_patterns):
                    entries.append(os.path.join(root, name))
    else:
        for name in os.listdir(directory):
            path = os.path.join(directory, name)
            if os.path.isfile(path) and _match_patterns(name, include_patterns, exclude_patterns):
                entries.append(path)
    return sorted(entries)


def _match_patterns(name: str, includes: list[str], excludes: list[str]) -> bool:
    if not any(fnmatch.fnmatch(name, pattern) for pattern in includes):
        return False
    if any(fnmatch.fnmatch(name, pattern) for pattern in excludes):
        return False
    return True


if __name__ == "__main__":
    raise SystemExit(main())
