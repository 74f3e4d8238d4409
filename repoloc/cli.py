"""CLI entrypoints for repoloc commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from .config import ConfigStore, load_config
from .errors import ConfigError, RepolocError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .render import format_number, render_languages, render_tree


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repoloc",
        description="Count lines of code in remote repositories and show them as a tree.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .repoloc.yml file or the directory containing it.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP analysis service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to listen on.")

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a single repository and print the result.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("repo_url", help="Repository URL, e.g. https://github.com/owner/repo.")
    analyze_parser.add_argument(
        "--branch",
        default="",
        help="Branch to analyze (defaults to the repository's default branch).",
    )
    analyze_parser.add_argument(
        "--depth",
        type=int,
        default=0,
        help="Tree depth to display (defaults to the configured depth).",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw analysis payload as JSON.",
    )
    analyze_parser.add_argument(
        "--include-data",
        action="store_true",
        help="Count data files such as JSON, YAML and XML.",
    )
    analyze_parser.add_argument(
        "--include-docs",
        action="store_true",
        help="Count documentation files such as Markdown and plain text.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repoloc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config_path=args.config)
    elif args.command == "analyze":
        config = replace(
            config,
            include_data_files=config.include_data_files or bool(args.include_data),
            include_documentation=config.include_documentation or bool(args.include_docs),
        )
        orchestrator = Orchestrator(config_store=ConfigStore(config))
        try:
            result = orchestrator.analyze(args.repo_url, args.branch, args.depth)
        except RepolocError as exc:
            parser.exit(1, f"repoloc analyze failed: {exc}\n")
        except Exception as exc:  # pragma: no cover - defensive guard
            parser.exit(1, f"repoloc analyze failed: {exc}\nRun with --verbose for more details.\n")

        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print(render_tree(result.data))
            print()
            print(render_languages(result.languages))
            print()
            print(f"Total lines: {format_number(result.data.stats.lines)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
