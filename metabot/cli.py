"""CLI entrypoints for metabot commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, List

from dotenv import load_dotenv

from .config import ConfigError, load_config
from .discovery import read_document
from .logging import configure_logging
from .models import FieldName, FieldValues
from .orchestrator import MODES, Orchestrator, RunCancelled, accept_all, describe_reports
from .patching.classifier import UnclassifiedDocumentError
from .patching.orchestrator import InvalidFieldValueError, PatchOrchestrator
from .patching.patcher import FieldPatcher

_CHOICES = {"a": "accept", "r": "regenerate", "s": "skip", "q": "quit"}


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


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log records to this file.",
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .metabot.yml or the directory holding it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metabot",
        description="Generate and patch keywords, summaries and descriptions for Flathub apps.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Generate metadata for an app and open a pull request.",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_log_file_option(run_parser, suppress_default=True)
    _add_config_option(run_parser)
    run_parser.add_argument("app_id", help="Flathub application id, e.g. org.gnome.Calculator.")
    run_parser.add_argument(
        "--mode",
        choices=list(MODES),
        default="all",
        help="Which fields to generate (defaults to all).",
    )
    run_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Accept every generated value without prompting.",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Patch in memory only; do not write, commit or publish.",
    )

    patch_parser = subparsers.add_parser(
        "patch",
        help="Patch local metadata files with the given values.",
    )
    _add_verbose_option(patch_parser, suppress_default=True)
    _add_log_file_option(patch_parser, suppress_default=True)
    _add_config_option(patch_parser)
    patch_parser.add_argument("files", nargs="+", help="Desktop entries or component descriptors.")
    patch_parser.add_argument(
        "--keywords",
        help="Comma or semicolon separated keywords.",
    )
    patch_parser.add_argument("--summary", help="One-line summary.")
    patch_parser.add_argument(
        "--description-file",
        help="File holding the description markup (paragraphs and lists).",
    )
    patch_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def prompt_approval(field: FieldName, value: object) -> str:
    """Show a generated value and ask what to do with it."""
    print(f"\nGenerated {field.value}:")
    if isinstance(value, (list, tuple)):
        for item in value:
            print(f"  - {item}")
    else:
        print(f"  {value}")
    while True:
        answer = input("[a]ccept, [r]egenerate, [s]kip, [q]uit? ").strip().lower()
        if answer[:1] in _CHOICES:
            return _CHOICES[answer[:1]]
        print("Please answer a, r, s or q.")


def split_keywords(raw: str) -> List[str]:
    return [token for token in raw.replace(";", ",").split(",") if token.strip()]


def main(
    argv: list[str] | None = None,
    *,
    orchestrator_factory: Callable[..., Orchestrator] = Orchestrator,
) -> None:
    """CLI entrypoint for metabot commands."""
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "run":
        _run(parser, args, orchestrator_factory)
    elif args.command == "patch":
        _patch(parser, args)
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    orchestrator_factory: Callable[..., Orchestrator],
) -> None:
    try:
        config = load_config(Path(args.config))
        orchestrator = orchestrator_factory(
            config, approve=accept_all if args.yes else prompt_approval
        )
        outcome = orchestrator.run(args.app_id, args.mode, dry_run=bool(args.dry_run))
    except RunCancelled:
        parser.exit(1, "Cancelled.\n")
    except (FileNotFoundError, ConfigError, InvalidFieldValueError) as exc:
        parser.exit(1, f"{exc}\n")
    except (RuntimeError, ValueError) as exc:
        parser.exit(1, f"metabot run failed: {exc}\nRun with --verbose for more details.\n")

    if outcome is None:
        print("No changes accepted")
        return
    for line in describe_reports(outcome.reports, outcome.repo_path):
        print(line)
    if outcome.dry_run:
        print("Dry run: no files written")
    elif outcome.publish and outcome.publish.pr_url:
        print(f"Pull request: {outcome.publish.pr_url}")
    elif outcome.branch_name:
        print(f"Changes committed to branch '{outcome.branch_name}' in {outcome.repo_path}")


def _patch(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    description = None
    if args.description_file:
        try:
            description = Path(args.description_file).read_text(encoding="utf-8")
        except OSError as exc:
            parser.exit(1, f"Cannot read description file: {exc}\n")
    values = FieldValues(
        keywords=split_keywords(args.keywords) if args.keywords is not None else None,
        summary=args.summary,
        description=description,
    )
    if not values.requested():
        parser.exit(2, "Nothing to patch: pass --keywords, --summary or --description-file\n")

    try:
        config = load_config(Path(args.config))
        documents = [read_document(path) for path in args.files]
        orchestrator = PatchOrchestrator(FieldPatcher(config.patch), config.patch)
        reports = orchestrator.run(documents, values, dry_run=bool(args.dry_run))
    except (UnclassifiedDocumentError, InvalidFieldValueError, ConfigError, OSError) as exc:
        parser.exit(1, f"{exc}\n")

    for line in describe_reports(reports):
        print(line)
    if any(report.changed and not report.written for report in reports) and not args.dry_run:
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
