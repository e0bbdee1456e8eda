"""Gamebook command line: validate a story, dump its playable form, serve the API."""

import argparse
import json
import sys
from pathlib import Path

import httpx

from gamebook.config import configure_logging, get_config
from gamebook.parser import parse
from gamebook.playable import to_serializable_playable_game
from gamebook.validator import ValidationIssue, game_stats, has_errors, validate_game, validate_script


def read_source(location: str) -> str:
    """Read a story from a file path or an http(s) URL."""
    if location.startswith(("http://", "https://")):
        resp = httpx.get(location, timeout=10, follow_redirects=True)
        resp.raise_for_status()
        return resp.text
    return Path(location).read_text(encoding="utf-8")


def _print_issue(issue: ValidationIssue) -> None:
    where = []
    if issue.line is not None:
        where.append(f"line {issue.line}")
    if issue.block_type:
        where.append(f"[{issue.block_type}]")
    if issue.scene_id:
        where.append(f"scene '{issue.scene_id}'")
    prefix = f"{' '.join(where)}: " if where else ""
    print(f"  {issue.severity.upper():7} {prefix}{issue.message}")


def cmd_validate(args: argparse.Namespace) -> int:
    source = read_source(args.file)
    print(f"Validating: {args.file}\n")

    issues = validate_script(source)
    result = parse(source)
    if result.success:
        issues.extend(validate_game(result.data))
    else:
        issues.append(ValidationIssue(severity="error", message=result.error))

    if issues:
        print(f"Found {len(issues)} issue(s):")
        for issue in issues:
            _print_issue(issue)
    else:
        print("No issues found.")

    if result.success:
        stats = game_stats(result.data)
        print("\nStatistics:")
        print(f"  Total scenes: {stats['scenes']}")
        print(f"  Choices: {stats['choices']}")
        print(f"  Endings: {stats['endings']}")
        print(f"  Estimated playtime: {stats['playtime_min']} - {stats['playtime_max']} minutes")

    return 1 if has_errors(issues) else 0


def cmd_playable(args: argparse.Namespace) -> int:
    result = parse(read_source(args.file), strict=args.strict)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(json.dumps(to_serializable_playable_game(result.data), indent=args.indent, ensure_ascii=False))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    config = get_config()
    uvicorn.run(
        "gamebook.app:app",
        host=args.host or config["host"],
        port=args.port or config["port"],
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gamebook", description="Gamebook DSL tools")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    validate = sub.add_parser("validate", help="Check a story for YAML and structure problems")
    validate.add_argument("file", help="Path or URL of the story")
    validate.set_defaults(func=cmd_validate)

    playable = sub.add_parser("playable", help="Print the playable JSON of a story")
    playable.add_argument("file", help="Path or URL of the story")
    playable.add_argument("--strict", action="store_true",
                          help="Fail on dangling scene references")
    playable.add_argument("--indent", type=int, default=2)
    playable.set_defaults(func=cmd_playable)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT or 8000)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes")
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
