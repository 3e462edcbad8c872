"""villabook command line.

Examples:
  villabook login guest@example.com --password secret
  villabook whoami
  villabook get /villas --param page=2
  villabook --lang fr logout
"""

import argparse
import asyncio
import json
import logging
import sys

from villabook import __version__
from villabook.api.client import ApiClient
from villabook.api.errors import ApiError
from villabook.auth.credentials import CredentialStore
from villabook.auth.session import AuthSession
from villabook.config import get_settings
from villabook.i18n import LocaleState
from villabook.lifecycle import shutdown_all
from villabook.logging_setup import setup_logging
from villabook.navigation import HistoryNavigator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="villabook",
        description="Villa booking API client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-url", help="API root (default: VILLABOOK_API_URL)")
    parser.add_argument("--lang", default=None, help="UI language for redirects")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING...")

    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and store credentials")
    login.add_argument("email")
    login.add_argument("--password", required=True)

    sub.add_parser("logout", help="Sign out and forget credentials")
    sub.add_parser("whoami", help="Show the signed-in user")

    get = sub.add_parser("get", help="GET a path and print the JSON data")
    get.add_argument("path")
    get.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeatable)",
    )
    return parser


def _parse_params(pairs: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"Invalid --param {pair!r}, expected KEY=VALUE")
        params[key] = value
    return params


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    locale = LocaleState(args.lang or settings.default_language)
    navigator = HistoryNavigator()
    client = ApiClient(
        args.api_url,
        credentials=CredentialStore(),
        navigator=navigator,
        language=locale.get,
    )
    session = AuthSession(client)

    try:
        if args.command == "login":
            user = await session.login(args.email, args.password)
            print(f"Signed in as {user.full_name or user.email} ({user.role})")
        elif args.command == "logout":
            await session.logout()
            print("Signed out")
        elif args.command == "whoami":
            user = await session.restore()
            if user is None:
                print("Not signed in")
                return 1
            print(f"{user.full_name or user.email} <{user.email}> {user.role}")
        elif args.command == "get":
            response = await client.get(args.path, params=_parse_params(args.param) or None)
            print(json.dumps(response.data, indent=2, ensure_ascii=False))
    except ApiError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if navigator.history:
            print(f"Please sign in again ({navigator.history[-1]})", file=sys.stderr)
        return 1
    finally:
        session.close()
        await client.aclose()
        await shutdown_all()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level or get_settings().log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
