"""prflow entry point.

Three flows: feature (feature branch PR), release (release PR and version
bump) and milestones (milestone creation and health).
Usage: prflow feature | prflow release | prflow milestones -m FILE.
"""

import argparse
import logging
import sys
from datetime import date, time
from pathlib import Path

from prflow.adapters import GitHubAdapter
from prflow.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from prflow.logging import PrflowLogging


def _time_arg(value: str) -> time:
    try:
        return time.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected HH:MM:SS, got {value!r}") from e


def _date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prflow",
        description="prflow - pull request and milestone lifecycle automation",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    sub = parser.add_subparsers(dest="subcommand")

    sub.add_parser("feature", help="Create or update the PR of the current feature branch")

    release = sub.add_parser("release", help="Create or update the release PR")
    bump = release.add_mutually_exclusive_group()
    bump.add_argument(
        "--auto-version-bump",
        dest="auto_version_bump",
        action="store_true",
        default=None,
        help="Open and auto-merge a version bump PR after the release PR",
    )
    bump.add_argument(
        "--no-auto-bump",
        dest="auto_version_bump",
        action="store_false",
        help="Do not bump the version (overrides config)",
    )
    release.add_argument("--dry-run", action="store_true", help="Print the PR title and body, change nothing")

    milestones = sub.add_parser("milestones", help="Create milestones and sync their health")
    milestones.add_argument("-m", "--milestones-file", type=Path, help="JSON or YAML milestone definitions")
    milestones.add_argument("-o", "--owner", help="Repository owner (with --repo)")
    milestones.add_argument("-r", "--repo", help="Repository name (with --owner)")
    milestones.add_argument("-s", "--spacing-days", type=int, help="Days between auto-scheduled milestones")
    milestones.add_argument("-t", "--default-due-time", type=_time_arg, help="Due time for date-only due_on")
    milestones.add_argument("--start-date", type=_date_arg, help="First auto-scheduled due date (YYYY-MM-DD)")
    milestones.add_argument(
        "--auto-schedule",
        action="store_true",
        default=None,
        help="Schedule milestones that have no due_on",
    )
    milestones.add_argument("--dry-run", action="store_true", help="Log planned changes, change nothing")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI; a subcommand is required unless --check is given."""
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])
    if not args.check and not args.subcommand:
        parser.error("a subcommand is required (feature, release or milestones)")
    if args.subcommand == "milestones" and bool(args.owner) != bool(args.repo):
        parser.error("--owner and --repo must be given together")
    return args


def apply_milestone_args(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Overlay milestone CLI options on the loaded config."""
    overrides = {
        "file": str(args.milestones_file) if args.milestones_file else None,
        "spacing_days": args.spacing_days,
        "default_due_time": args.default_due_time,
        "start_date": args.start_date,
        "auto_schedule": args.auto_schedule,
    }
    milestones = config.milestones.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    update = {"milestones": milestones}
    if args.owner and args.repo:
        update["repo"] = config.repo.model_copy(update={"repository": f"{args.owner}/{args.repo}"})
    return config.model_copy(update=update)


def main(argv: list[str] | None = None) -> int:
    """Entry point: dispatch to the selected flow."""
    args = parse_args(argv)
    config = load_config(args.config)
    PrflowLogging(config.logging).setup()
    log = logging.getLogger("prflow")

    if args.check:
        print("Config OK:", config.repo.repository or "(repository from origin remote)", config.github.api_url)
        return 0

    token = config.github_token_resolved
    if not token:
        log.error("GitHub token not found: set GH_PAT, github.token, GITHUB_TOKEN, GH_TOKEN or GITHUB_TOKEN_FILE")
        return 1
    adapter = GitHubAdapter(token, api_url=config.github.api_url, log=logging.getLogger("prflow.adapters.github"))

    try:
        if args.subcommand == "feature":
            from prflow.flows import run_feature

            return run_feature(config, adapter)
        if args.subcommand == "release":
            from prflow.flows import run_release

            return run_release(config, adapter, auto_version_bump=args.auto_version_bump, dry_run=args.dry_run)

        from prflow.flows import run_milestones

        return run_milestones(apply_milestone_args(config, args), adapter, dry_run=args.dry_run)
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        log.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
