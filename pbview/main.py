"""pbview entry point.

Runs one pb query and prints the decoded result as JSON, e.g.
`pbview list`, `pbview show pv-abc`, `pbview tree pv-abc --flat`,
`pbview log --limit 20 --type close`.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pbview.config import AppConfig, load_config
from pbview.errors import PBError
from pbview.logging import PBViewLogging
from pbview.models import DepNode, EventType
from pbview.services import GitInfoService, PBClient
from pbview.services.pb_client import make_runner

LOG = logging.getLogger("pbview.main")

COMMANDS = ("list", "ready", "show", "tree", "log", "version", "create", "commits")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse global options and one query subcommand."""
    parser = argparse.ArgumentParser(
        prog="pbview",
        description="Query the pebbles issue tracker (pb) and print decoded JSON",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("pbview.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument("--project", "-p", help="Project directory (overrides config)")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("list", help="pb list --json")
    sub.add_parser("ready", help="pb ready --json")
    show = sub.add_parser("show", help="pb show --json ID")
    show.add_argument("issue_id")
    tree = sub.add_parser("tree", help="pb dep tree ID")
    tree.add_argument("issue_id")
    tree.add_argument("--flat", action="store_true", help="One row per node with its depth")
    log = sub.add_parser("log", help="pb log --json")
    log.add_argument("--limit", type=int, default=None)
    log.add_argument("--type", dest="event_type", choices=[t.value for t in EventType], default=None)
    sub.add_parser("version", help="pb version")
    create = sub.add_parser("create", help="pb create")
    create.add_argument("title")
    create.add_argument("--type", dest="issue_type", default=None)
    commits = sub.add_parser("commits", help="git commits mentioning ID")
    commits.add_argument("issue_id")
    return parser.parse_args(argv if argv is not None else sys.argv[1:])


def flatten_tree(root: DepNode) -> list[dict]:
    """Dependency tree as display rows, root first, children in pb's order."""
    return [
        {
            "depth": depth,
            "id": node.id,
            "title": node.issue.title,
            "status": node.issue.status.display_name,
        }
        for depth, node in root.walk()
    ]


def _to_json(value: Any) -> str:
    if isinstance(value, list):
        return json.dumps([v.model_dump(mode="json") if hasattr(v, "model_dump") else v for v in value], indent=2)
    if hasattr(value, "model_dump"):
        return json.dumps(value.model_dump(mode="json"), indent=2)
    return json.dumps(value)


async def run_command(args: argparse.Namespace, config: AppConfig) -> Any:
    """Dispatch one subcommand to PBClient / GitInfoService."""
    project = args.project or config.project
    client = PBClient(config.pb)
    if args.command == "list":
        return await client.list_issues(project)
    if args.command == "ready":
        return await client.ready_issues(project)
    if args.command == "show":
        return await client.show_issue(project, args.issue_id)
    if args.command == "tree":
        root = await client.dependency_tree(project, args.issue_id)
        return flatten_tree(root) if args.flat else root
    if args.command == "log":
        events = await client.event_log(project, limit=args.limit)
        if args.event_type:
            wanted = EventType(args.event_type)
            events = [e for e in events if e.event_type == wanted]
        return events
    if args.command == "version":
        return await client.version()
    if args.command == "create":
        return await client.create_issue(project, args.title, issue_type=args.issue_type)
    if args.command == "commits":
        return await GitInfoService(make_runner(config.pb)).find_commits(project, args.issue_id)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, set up logging, run the query."""
    args = parse_args(argv)
    config = load_config(args.config)
    PBViewLogging(config.logging).setup()

    if args.check:
        print("Config OK:", config.pb.executable, f"timeout={config.pb.timeout}s")
        return 0
    if args.command is None:
        print(f"usage: pbview {{{','.join(COMMANDS)}}} ...", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(run_command(args, config))
    except PBError as e:
        LOG.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    print(_to_json(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
