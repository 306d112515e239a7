#!/usr/bin/env python3
"""
Trainer Portal CLI.

Database setup, admin accounts and the check-in reminder job.

Usage:
    trainer-portal init-db
    trainer-portal create-admin --username admin --password secret
    trainer-portal set-password --username mario --password secret
    trainer-portal send-reminders --dry-run
    trainer-portal serve --port 3001
"""

import argparse
import sys
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .db.database import PortalDatabase
from .db.repositories import UserRepository
from .services.admin_bootstrap import ensure_admin
from .services.auth_service import AuthService
from .services.reminder_service import ReminderService

console = Console()


def cmd_init_db(args, db: PortalDatabase) -> int:
    """Create the schema and show what is in the database."""
    console.print()
    console.print(Panel("[bold]Trainer Portal - Database[/bold]"))
    console.print()

    table = Table(box=box.ROUNDED)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="white", justify="right")
    for name, count in db.table_counts().items():
        table.add_row(name, str(count))

    console.print(f"Database: {db.db_path}")
    console.print(table)
    console.print()
    return 0


def cmd_create_admin(args, db: PortalDatabase) -> int:
    user, created = ensure_admin(db, args.username, args.password, email=args.email)
    if created:
        console.print(f"[green]Created admin[/green] {user.username} (id {user.id})")
    else:
        console.print(f"[yellow]Promoted existing user[/yellow] {user.username} (id {user.id}) to admin")
    return 0


def cmd_set_password(args, db: PortalDatabase) -> int:
    users = UserRepository(db)
    user = users.get_by_username(args.username)
    if user is None:
        console.print(f"[red]No user named {args.username}[/red]")
        return 1
    users.update(user.id, {"password_hash": AuthService.hash_password(args.password)})
    console.print(f"[green]Password updated[/green] for {user.username}")
    return 0


def cmd_send_reminders(args, db: PortalDatabase) -> int:
    report = ReminderService(db).run(dry_run=args.dry_run)

    table = Table(title="Check-in reminders", box=box.ROUNDED)
    table.add_column("Candidates", justify="right")
    table.add_column("Sent", style="green", justify="right")
    table.add_column("Failed", style="red", justify="right")
    table.add_column("Skipped", style="yellow", justify="right")
    summary = report.to_dict()
    table.add_row(
        str(summary["candidates"]),
        str(summary["sent"]),
        str(summary["failed"]),
        str(summary["skipped"]),
    )
    console.print(table)
    if args.dry_run:
        console.print("[dim]Dry run: no email was sent[/dim]")
    return 1 if report.failed else 0


def cmd_serve(args) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "trainer_portal.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trainer-portal",
        description="Trainer Portal - client area backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  trainer-portal init-db
  trainer-portal create-admin --username admin --password s3cret --email me@example.com
  trainer-portal set-password --username mario --password n3w
  trainer-portal send-reminders --dry-run
  trainer-portal serve --reload
        """,
    )
    parser.add_argument("--db", help="SQLite database path (defaults to DATABASE_PATH)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create tables and seed default data")

    admin_p = subparsers.add_parser("create-admin", help="Create or promote an admin user")
    admin_p.add_argument("--username", required=True)
    admin_p.add_argument("--password", required=True)
    admin_p.add_argument("--email")

    password_p = subparsers.add_parser("set-password", help="Set a user's password")
    password_p.add_argument("--username", required=True)
    password_p.add_argument("--password", required=True)

    reminders_p = subparsers.add_parser("send-reminders", help="Email clients due a check-in")
    reminders_p.add_argument(
        "--dry-run", action="store_true", help="List who would be reminded without sending"
    )

    serve_p = subparsers.add_parser("serve", help="Run the API server")
    serve_p.add_argument("--host")
    serve_p.add_argument("--port", type=int)
    serve_p.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1
    if args.command == "serve":
        return cmd_serve(args)

    db = PortalDatabase(args.db) if args.db else PortalDatabase(get_settings().database_path)
    try:
        if args.command == "init-db":
            return cmd_init_db(args, db)
        elif args.command == "create-admin":
            return cmd_create_admin(args, db)
        elif args.command == "set-password":
            return cmd_set_password(args, db)
        elif args.command == "send-reminders":
            return cmd_send_reminders(args, db)
        else:
            parser.print_help()
            return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
