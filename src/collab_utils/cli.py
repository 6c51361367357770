"""CLI entry point for collab-utils."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from collab_utils.exceptions import CollabError, InvalidBookmarkError


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="collab-utils",
        description="Outbound notification email and channel bookmark tools",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # mail subcommand
    mail_parser = subparsers.add_parser("mail", help="Send email or check the SMTP settings")
    mail_sub = mail_parser.add_subparsers(dest="action", help="Mail action")
    mail_sub.add_parser("test", help="Connect and authenticate without sending")
    send_parser = mail_sub.add_parser("send", help="Send an HTML email")
    send_parser.add_argument("--to", required=True, help="Recipient address")
    send_parser.add_argument("--subject", required=True, help="Subject line")
    body = send_parser.add_mutually_exclusive_group(required=True)
    body.add_argument("--html", type=Path, help="File containing the HTML body")
    body.add_argument("--body", help="HTML body given inline")
    send_parser.add_argument("--cc", default="", help="CC header value")
    send_parser.add_argument(
        "--embed",
        action="append",
        default=[],
        metavar="NAME=PATH",
        help="Embed a file inline, referenced as cid:NAME (repeatable)",
    )

    # bookmark subcommand
    bookmark_parser = subparsers.add_parser("bookmark", help="Channel bookmark tools")
    bookmark_sub = bookmark_parser.add_subparsers(dest="action", help="Bookmark action")
    validate_parser = bookmark_sub.add_parser("validate", help="Validate bookmarks in a YAML/JSON file")
    validate_parser.add_argument("file", type=Path, help="File with one bookmark or a list")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None or getattr(args, "action", None) is None:
        parser.print_help()
        return 1

    if args.command == "mail":
        return _handle_mail(args)
    if args.command == "bookmark":
        return _handle_bookmark(args)

    return 1


def _handle_mail(args: argparse.Namespace) -> int:
    """Handle mail subcommand."""
    from collab_utils.config import get_settings_eager
    from collab_utils.mailservice import service

    try:
        settings = get_settings_eager()
        if args.action == "test":
            service.test_connection(settings.email)
            print(f"✓ SMTP connection to {settings.email.server}:{settings.email.port} works")
            return 0

        html_body = args.html.read_text() if args.html else args.body
        embedded: dict[str, bytes] = {}
        for item in args.embed:
            name, sep, path = item.partition("=")
            if not sep or not name or not path:
                print(f"✗ Invalid --embed value {item!r}, expected NAME=PATH")
                return 1
            embedded[name] = Path(path).read_bytes()

        service.send_mail_with_embedded_files_using_config(
            args.to, args.subject, html_body, embedded, settings.email, cc=args.cc
        )
        print(f"✓ Mail sent to {args.to}")
        return 0
    except (CollabError, ValueError, OSError) as e:
        print(f"✗ {e}")
        return 1


def _load_records(path: Path) -> list[dict[str, Any]]:
    text = path.read_text()
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return data
    raise ValueError("expected a bookmark mapping or a list of bookmarks")


def _handle_bookmark(args: argparse.Namespace) -> int:
    """Handle bookmark subcommand."""
    from collab_utils.model import ChannelBookmark

    try:
        records = _load_records(args.file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"✗ Cannot read {args.file}: {e}")
        return 1

    failures = 0
    for index, record in enumerate(records):
        label = f"#{index}"
        if isinstance(record, dict) and record.get("display_name"):
            label = str(record["display_name"])
        try:
            ChannelBookmark.model_validate(record).validate_record()
        except ValidationError as e:
            failures += 1
            print(f"✗ {label}: malformed record ({e.error_count()} errors)")
        except InvalidBookmarkError as e:
            failures += 1
            print(f"✗ {label}: {e}")
        else:
            print(f"✓ {label}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
