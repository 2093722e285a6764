"""Operator commands for checks: create, upload, publish, list and reveal.

Examples:
  idcheck-admin create-check user_123 --email agent@example.com
  idcheck-admin upload-url <check-id> passport.jpg --content-type image/jpeg
  idcheck-admin complete-upload <check-id>
  idcheck-admin list user_123
  idcheck-admin reveal <check-id>
"""

import argparse
import json
import sys

from idcheck.checks.exceptions import CheckError
from idcheck.checks.service import CheckService, build_check_service
from idcheck.config.settings import Settings
from idcheck.database.connection import close_pool, init_pool
from idcheck.logging.logger import Log
from idcheck.pipeline.exceptions import PreconditionFailed
from idcheck.security.exceptions import CipherError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idcheck-admin",
        description="Manage identity checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-check", help="Create a check and print its verify link")
    create.add_argument("owner", help="External id of the owning operator")
    create.add_argument("--email", default="", help="Operator email, stored on first use")

    upload = commands.add_parser("upload-url", help="Register an upload and print a signed URL")
    upload.add_argument("check_id")
    upload.add_argument("filename")
    upload.add_argument("--content-type", default="image/jpeg")

    complete = commands.add_parser("complete-upload", help="Publish the upload.completed event")
    complete.add_argument("check_id")

    listing = commands.add_parser("list", help="List an operator's checks, newest first")
    listing.add_argument("owner")

    reveal = commands.add_parser("reveal", help="Print the decrypted fields of a finished check")
    reveal.add_argument("check_id")

    return parser


def _run(service: CheckService, args: argparse.Namespace) -> None:
    if args.command == "create-check":
        created = service.create_check(args.owner, args.email)
        print(f"check_id: {created.check_id}")
        print(f"verify_url: {created.verify_url}")
    elif args.command == "upload-url":
        ticket = service.issue_upload_url(args.check_id, args.filename, args.content_type)
        print(f"file_key: {ticket.file_key}")
        print(f"upload_url: {ticket.upload_url}")
    elif args.command == "complete-upload":
        event_id = service.complete_upload(args.check_id)
        print(f"event_id: {event_id}")
    elif args.command == "list":
        for check in service.list_checks(args.owner):
            created_at = check.created_at.isoformat() if check.created_at else "-"
            print(f"{check.id}\t{check.status.value}\t{created_at}\t{check.note or ''}")
    elif args.command == "reveal":
        fields = service.reveal_extracted_fields(args.check_id)
        print(json.dumps(fields.to_dict() if fields else None, indent=2))


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse arguments -> load settings -> initialize pool -> run one command."""
    args = _build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        _run(build_check_service(settings), args)
    except (CheckError, PreconditionFailed, CipherError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        close_pool()
    return 0


if __name__ == "__main__":
    sys.exit(main())
