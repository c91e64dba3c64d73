"""
Nova CLI: admin and workspace operations against the configured storage.

Usage:
    nova init                       # Seed default accounts
    nova status                     # Storage backend, managed mode, credential state
    nova open <url>                 # Provision the credential from a delivery link
    nova login --user NAME          # Check a username/password
    nova key set|status|clear|link  # Shared credential (admin)
    nova users list|create|delete   # Accounts (admin)
    nova modules list|show|set      # Module definitions (set is admin only)
    nova audit                      # Recent audit events (admin)
    nova version                    # Show version

Commands that need a session read the password from --password, then
NOVA_PASSWORD, then an interactive prompt.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_DENIED = 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="nova",
        description="Nova Studio: shared credential custody and account management.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    session_args = argparse.ArgumentParser(add_help=False)
    session_args.add_argument(
        "--user", "-u", default=os.environ.get("NOVA_USER", ""), help="Username"
    )
    session_args.add_argument("--password", "-p", help="Password (prompted when omitted)")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("version", help="Show version")
    subparsers.add_parser("init", help="Seed default accounts on first run")
    subparsers.add_parser("status", help="Show storage and credential state")

    open_parser = subparsers.add_parser("open", help="Provision from a delivery link")
    open_parser.add_argument("url", help="Delivery link (…?sk=…)")

    subparsers.add_parser("login", parents=[session_args], help="Verify a username and password")

    # key
    key_parser = subparsers.add_parser("key", help="Manage the shared API credential")
    key_sub = key_parser.add_subparsers(dest="key_command")
    key_set = key_sub.add_parser(
        "set", parents=[session_args], help="Encrypt and save a credential"
    )
    key_set.add_argument("--value", help="Credential (prompted when omitted)")
    key_sub.add_parser(
        "status", parents=[session_args], help="Show where the credential comes from"
    )
    key_sub.add_parser("clear", parents=[session_args], help="Remove the saved credential")
    key_link = key_sub.add_parser("link", parents=[session_args], help="Print a delivery link")
    key_link.add_argument("--base-url", help="Studio address (default: NOVA_BASE_URL)")

    # users
    users_parser = subparsers.add_parser("users", help="Manage accounts")
    users_sub = users_parser.add_subparsers(dest="users_command")
    users_sub.add_parser("list", parents=[session_args], help="List accounts")
    users_create = users_sub.add_parser("create", parents=[session_args], help="Create an account")
    users_create.add_argument("username")
    users_create.add_argument(
        "--new-password", help="Password for the new account (prompted when omitted)"
    )
    users_create.add_argument("--role", choices=["user", "admin"], default="user")
    users_delete = users_sub.add_parser("delete", parents=[session_args], help="Delete an account")
    users_delete.add_argument("username")

    # modules
    modules_parser = subparsers.add_parser("modules", help="Module definitions")
    modules_sub = modules_parser.add_subparsers(dest="modules_command")
    modules_sub.add_parser("list", help="List modules")
    modules_show = modules_sub.add_parser("show", help="Show one module")
    modules_show.add_argument("module_id")
    modules_set = modules_sub.add_parser("set", parents=[session_args], help="Edit a module")
    modules_set.add_argument("module_id")
    modules_set.add_argument("--name")
    modules_set.add_argument("--description")
    modules_set.add_argument("--model")
    modules_set.add_argument("--instruction", dest="system_instruction")
    modules_set.add_argument("--default-prompt")

    # audit
    audit_parser = subparsers.add_parser(
        "audit", parents=[session_args], help="Recent audit events"
    )
    audit_parser.add_argument("--limit", type=int, default=20)
    audit_parser.add_argument("--type", dest="event_type")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.version or args.command == "version":
        from nova import __version__

        print(f"nova {__version__}")
        return EXIT_OK

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    from nova.auth.roles import PermissionDenied
    from nova.storage.base import StorageError

    try:
        if args.command == "init":
            return _cmd_init()
        elif args.command == "status":
            return _cmd_status()
        elif args.command == "open":
            return _cmd_open(args)
        elif args.command == "login":
            return _cmd_login(args)
        elif args.command == "key":
            return _cmd_key(args, key_parser)
        elif args.command == "users":
            return _cmd_users(args, users_parser)
        elif args.command == "modules":
            return _cmd_modules(args, modules_parser)
        elif args.command == "audit":
            return _cmd_audit(args)
    except PermissionDenied as e:
        print(f"Permission denied: {e}")
        return EXIT_DENIED
    except StorageError as e:
        print(f"Storage error: {e}")
        return EXIT_FAILED

    parser.print_help()
    return EXIT_OK


def _app():
    from nova.app import NovaApp

    app = NovaApp.from_config()
    app.start()
    return app


def _session(args: argparse.Namespace):
    """Start the app and log in with the command's credentials. None on failure."""
    from nova.auth.gate import LOGIN_FAILED_MESSAGE

    app = _app()
    username = args.user or input("Username: ")
    password = args.password or os.environ.get("NOVA_PASSWORD") or getpass.getpass("Password: ")
    if app.login(username, password) is None:
        print(LOGIN_FAILED_MESSAGE)
        return None
    return app


def _cmd_init() -> int:
    from nova.app import NovaApp

    result = NovaApp.from_config().start()
    if result.seeded:
        print("Default accounts created. Change the admin password before sharing this studio.")
    elif not result.accounts_readable:
        print("The stored account list cannot be read; default accounts are in use.")
        return EXIT_FAILED
    else:
        print("Accounts already initialized.")
    return EXIT_OK


def _cmd_status() -> int:
    from nova.config import get_config
    from nova.vault.resolve import CredentialStatus, credential_status

    cfg = get_config()
    app = _app()
    status = credential_status(app.vault, cfg.fallback_api_key)
    managed = app.vault.is_configured()

    print(f"Storage:       {cfg.storage_backend}", end="")
    print(f" ({cfg.storage_file})" if cfg.storage_backend == "file" else "")
    print(f"Managed mode:  {'active' if managed else 'off'}")
    print(f"Credential:    {status.value}")
    if status is CredentialStatus.CORRUPT:
        print("  The saved credential cannot be read. An admin must save it again.")
    elif status is CredentialStatus.LEGACY:
        print("  The saved credential is unencrypted. An admin should save it again.")
    if not app.accounts.is_readable():
        print("Accounts:      unreadable (default accounts in use until an admin saves a change)")
    return EXIT_OK


def _cmd_open(args: argparse.Namespace) -> int:
    from nova.app import NovaApp

    result = NovaApp.from_config().start(args.url)
    if result.provisioned:
        print("Shared API key installed. Managed mode is active.")
        return EXIT_OK
    print("That link does not carry a usable API key.")
    return EXIT_FAILED


def _cmd_login(args: argparse.Namespace) -> int:
    app = _session(args)
    if app is None:
        return EXIT_FAILED
    print(f"Logged in as {app.profile.username} ({app.profile.role.value})")
    return EXIT_OK


def _cmd_key(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    from nova.vault.link import LinkUnavailableError

    if args.key_command is None:
        parser.print_help()
        return EXIT_OK

    app = _session(args)
    if app is None:
        return EXIT_FAILED

    if args.key_command == "set":
        value = args.value or getpass.getpass("API key: ")
        if not app.save_credential(value):
            print("No API key given; nothing saved.")
            return EXIT_FAILED
        print("API key encrypted and saved. Managed mode is active.")
        return EXIT_OK

    if args.key_command == "status":
        loaded = app.load_credential()
        if loaded is None:
            print("No shared API key is saved.")
        elif loaded.needs_resave:
            print("A legacy unencrypted API key is saved. Run 'nova key set' to encrypt it.")
        else:
            print("An encrypted API key is saved.")
        return EXIT_OK

    if args.key_command == "clear":
        app.clear_credential()
        print("Shared API key removed.")
        return EXIT_OK

    if args.key_command == "link":
        try:
            print(app.generate_link(args.base_url))
        except LinkUnavailableError as e:
            print(f"Warning: {e}")
            return EXIT_FAILED
        return EXIT_OK

    parser.print_help()
    return EXIT_OK


def _cmd_users(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    if args.users_command is None:
        parser.print_help()
        return EXIT_OK

    app = _session(args)
    if app is None:
        return EXIT_FAILED

    if args.users_command == "list":
        for account in app.list_accounts():
            created = account.created_at.strftime("%Y-%m-%d %H:%M")
            print(f"{account.username:<20} {account.role.value:<6} {created}")
        return EXIT_OK

    if args.users_command == "create":
        password = args.new_password or getpass.getpass(f"Password for {args.username}: ")
        try:
            created = app.create_account(args.username, password, args.role)
        except ValueError as e:
            print(f"Error: {e}")
            return EXIT_FAILED
        if not created:
            print(f"User {args.username} already exists.")
            return EXIT_FAILED
        print(f"User {args.username} created.")
        return EXIT_OK

    if args.users_command == "delete":
        deleted = app.delete_account(args.username)
        if args.username == "admin":
            print("The admin account cannot be deleted.")
        elif deleted:
            print(f"User {args.username} deleted.")
        else:
            print(f"No user named {args.username}.")
        return EXIT_OK

    parser.print_help()
    return EXIT_OK


def _cmd_modules(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    from nova.modules import ModuleValidationError

    if args.modules_command is None:
        parser.print_help()
        return EXIT_OK

    if args.modules_command == "list":
        for module in _app().modules.list():
            print(
                f"{module.id:<18} {module.model.value:<28} "
                f"{module.input_count} image(s)  {module.name}"
            )
        return EXIT_OK

    if args.modules_command == "show":
        module = _app().modules.get(args.module_id)
        print(module.model_dump_json(indent=2))
        return EXIT_OK

    if args.modules_command == "set":
        changes = {
            field: getattr(args, field)
            for field in ("name", "description", "model", "system_instruction", "default_prompt")
            if getattr(args, field) is not None
        }
        if not changes:
            print("Nothing to change.")
            return EXIT_FAILED
        app = _session(args)
        if app is None:
            return EXIT_FAILED
        try:
            module = app.update_module(args.module_id, **changes)
        except KeyError:
            print(f"No module named {args.module_id}.")
            return EXIT_FAILED
        except ModuleValidationError as e:
            print(f"Invalid module definition: {e}")
            return EXIT_FAILED
        print(f"Module {module.id} updated.")
        return EXIT_OK

    parser.print_help()
    return EXIT_OK


def _cmd_audit(args: argparse.Namespace) -> int:
    app = _session(args)
    if app is None:
        return EXIT_FAILED
    for event in app.audit_events(limit=args.limit, event_type=args.event_type):
        print(
            f"{event['timestamp']}  {event['event_type']:<15} "
            f"{event['actor']:<12} {event['action']}"
        )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
