"""
Command-line entry point for the rgxr client.

Usage:
    python main.py --base-url http://localhost:8000 login me@example.com secret
    python main.py --base-url http://localhost:8000 save fa.json --description "ends in b"
    python main.py --base-url http://localhost:8000 run 0b1c... abba

Results are printed as JSON on stdout. The session token saved by `login`
is picked up again by later invocations.
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from client import AutomatonClient
from config import default_token_path, load_config
from logging_utils import get_logger, set_verbose
from models import FA

logger = get_logger(__name__)


def read_fa(path: str) -> FA:
    """Load an FA from a JSON file."""
    return FA.model_validate_json(Path(path).read_text(encoding="utf-8"))


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="rgxr: work with finite automata on a remote rgxr service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py --base-url http://localhost:8000 list
    python main.py --base-url http://localhost:8000 render fa.json
    python main.py --base-url http://localhost:8000 union ID_A ID_B
        """
    )
    parser.add_argument("--base-url", type=str, default=None,
                        help="Service URL prefix (overrides config/env)")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to config JSON file")
    parser.add_argument("--verbose", action="store_true",
                        help="Log every request")

    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and remember the token")
    login.add_argument("email")
    login.add_argument("password")

    sub.add_parser("list", help="List stored automata")

    get = sub.add_parser("get", help="Show one stored automaton")
    get.add_argument("uuid")

    render = sub.add_parser("render", help="Render an FA from a JSON file")
    render.add_argument("fa_file")

    save = sub.add_parser("save", help="Render and store an FA")
    save.add_argument("fa_file")
    save.add_argument("--description", default=None)

    update = sub.add_parser("update", help="Render and replace a stored FA")
    update.add_argument("uuid")
    update.add_argument("fa_file")
    update.add_argument("--description", default=None)

    delete = sub.add_parser("delete", help="Delete a stored FA")
    delete.add_argument("uuid")

    union = sub.add_parser("union", help="Union of stored FAs")
    union.add_argument("uuids", nargs="+")

    concat = sub.add_parser("concat", help="Concatenation of stored FAs, in order")
    concat.add_argument("uuids", nargs="+")

    run = sub.add_parser("run", help="Run a string through a stored FA")
    run.add_argument("uuid")
    run.add_argument("string")

    regex = sub.add_parser("regex", help="Build an NFA from a regular expression")
    regex.add_argument("regex")

    tex = sub.add_parser("tex", help="Print the TeX source of a render")
    tex.add_argument("uuid")

    svg = sub.add_parser("svg", help="Print the SVG markup of a render")
    svg.add_argument("uuid")

    return parser


def dispatch(client: AutomatonClient, args: argparse.Namespace) -> Any:
    """Run the subcommand named by args against client."""
    command = args.command
    if command == "login":
        client.login(args.email, args.password)
        return {"authenticated": True}
    if command == "list":
        return client.get_all_fas()
    if command == "get":
        return client.get_fa(args.uuid)
    if command == "render":
        return client.render_fa(read_fa(args.fa_file))
    if command == "save":
        return client.save_fa(read_fa(args.fa_file), description=args.description)
    if command == "update":
        return client.update_fa(args.uuid, read_fa(args.fa_file),
                                description=args.description)
    if command == "delete":
        client.delete_fa(args.uuid)
        return {"deleted": args.uuid}
    if command == "union":
        return client.union(args.uuids)
    if command == "concat":
        return client.concatenation(args.uuids)
    if command == "run":
        return client.run_string(args.uuid, args.string)
    if command == "regex":
        return client.regex_to_nfa(args.regex)
    if command == "tex":
        return client.get_tex(args.uuid)
    if command == "svg":
        return client.get_svg(args.uuid)
    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    """Command-line interface. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    if args.base_url is not None:
        config = replace(config, base_url=args.base_url.rstrip("/"))
    if config.token_path is None:
        config = replace(config, token_path=default_token_path())
    set_verbose(args.verbose or config.verbose)

    try:
        with AutomatonClient(config) as client:
            client.restore_session()
            result = dispatch(client, args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.error(f"Error: {e}")
        logger.debug("Traceback", exc_info=True)
        return 1

    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(to_jsonable(result), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
