"""
Main entry point for the Passlane password manager.

Each sub-command prints a one-line outcome; failures exit with status 1.
"""

import sys
import logging
import argparse
from typing import List, Optional

from passlane import config
from passlane import password as password_tools
from passlane.exceptions import PassphraseMismatchError, SelectionCancelled, VaultError
from passlane.keychain import KeychainManager
from passlane.ui import ConsoleUI
from passlane.vault_manager import VaultManager

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    """Configure root logging; log records go to stderr to keep stdout for output."""
    logging.basicConfig(
        level=level.upper(),
        format=config.LOG_FORMAT,
        stream=sys.stderr,
    )


def _pick_index(ui: ConsoleUI, count: int, matches) -> int:
    if count == 1:
        return 0
    return ui.select_index(matches)


def cmd_login(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    first_login = vault.login()
    ui.show("Logged in successfully. Online vaults in use.")
    if first_login:
        ui.show("You can push all your locally stored credentials to the Online Vault with: passlane push")


def cmd_logout(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    if vault.logout():
        ui.show("Logged out. Using the local vault from now on.")
    else:
        ui.show("Not logged in.")


def cmd_unlock(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    vault.unlock_session()
    ui.show("Vault unlocked. Use `passlane lock` to lock it again.")


def cmd_lock(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    vault.lock_session()
    ui.show("Vault locked.")


def _password_to_save(ui: ConsoleUI, args: argparse.Namespace) -> str:
    if args.generate:
        return password_tools.generate()
    if args.clipboard:
        value = ui.paste_from_clipboard().strip()
        if not password_tools.validate_password(value):
            raise VaultError("The text in clipboard is not a valid password")
        return value
    return ui.ask_secret("Enter password to save: ")


def cmd_add(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    password = _password_to_save(ui, args)
    credentials = ui.ask_credentials(password)
    master_password = vault.unlock()
    vault.save_one(master_password, credentials)
    if args.keychain:
        KeychainManager().save(credentials)
    if not args.clipboard:
        ui.copy_to_clipboard(password)
        ui.show("Saved. Password also copied to clipboard.")
    else:
        ui.show("Saved.")


def cmd_show(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    master_password = vault.unlock(store_if_new=False)
    matches = vault.search(master_password, args.regexp)
    if not matches:
        ui.show("No matches found")
        return
    ui.show(f"Found {len(matches)} matches:")
    ui.render_table(matches, args.verbose)
    index = _pick_index(ui, len(matches), matches)
    ui.copy_to_clipboard(matches[index].password)
    ui.show(f"Password from index {index} copied to clipboard!")


def cmd_delete(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    vault.unlock(store_if_new=False)
    matches = vault.search(None, args.regexp)
    if not matches:
        ui.show("No matches found")
        return
    ui.render_table(matches, verbose=False)
    index = _pick_index(ui, len(matches), matches)
    deleted = vault.delete(args.regexp, index)
    ui.show(f"Deleted {deleted} credential(s).")


def cmd_password(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    old = vault.unlock(ui.ask_master_password("Enter current master password: "), store_if_new=False)
    new = ui.ask_secret("Enter new master password: ")
    if new != ui.ask_secret(config.PROMPT_RETYPE_MASTER_PASSWORD):
        raise PassphraseMismatchError("Passwords did not match")
    count = vault.rotate_passphrase(old, new)
    ui.show(f"Master password changed. {count} credential(s) re-encrypted.")


def cmd_push(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    count = vault.push_local_to_remote()
    ui.show(f"Pushed {count} credentials online")


def cmd_import(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    master_password = vault.unlock()
    count = vault.import_csv(args.file, master_password)
    ui.show(f"Imported {count} credentials")


def cmd_export(vault: VaultManager, ui: ConsoleUI, args: argparse.Namespace) -> None:
    master_password = vault.unlock(store_if_new=False)
    count = vault.export_csv(args.file, master_password)
    ui.show(f"Exported {count} credentials to {args.file}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=config.APP_NAME, description="A password manager for the command line.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {config.APP_VERSION}")
    parser.add_argument("-d", "--debug", action="store_true", help="Log debug output to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sub = subparsers.add_parser("login", help="Login to the Passlane Online Vault")
    sub.set_defaults(func=cmd_login)

    sub = subparsers.add_parser("logout", help="Forget the online vault session")
    sub.set_defaults(func=cmd_logout)

    sub = subparsers.add_parser("unlock", help="Remember the master password until `passlane lock`")
    sub.set_defaults(func=cmd_unlock)

    sub = subparsers.add_parser("lock", help="Forget the remembered master password")
    sub.set_defaults(func=cmd_lock)

    sub = subparsers.add_parser("add", help="Add a new credential")
    group = sub.add_mutually_exclusive_group()
    group.add_argument("-g", "--generate", action="store_true", help="Generate a new password")
    group.add_argument("-c", "--clipboard", action="store_true", help="Take the password from the clipboard")
    sub.add_argument("-k", "--keychain", action="store_true", help="Also save to the OS keychain")
    sub.set_defaults(func=cmd_add)

    sub = subparsers.add_parser("show", help="Find credentials and copy a password to the clipboard")
    sub.add_argument("regexp", help="Regular expression matched against service and username")
    sub.add_argument("-v", "--verbose", action="store_true", help="Show passwords in the table")
    sub.set_defaults(func=cmd_show)

    sub = subparsers.add_parser("delete", help="Delete credentials")
    sub.add_argument("regexp", help="Regular expression matched against service and username")
    sub.set_defaults(func=cmd_delete)

    sub = subparsers.add_parser("password", help="Change the master password")
    sub.set_defaults(func=cmd_password)

    sub = subparsers.add_parser("push", help="Push all local credentials to the online vault")
    sub.set_defaults(func=cmd_push)

    sub = subparsers.add_parser("csv", help="Import credentials from a CSV file")
    sub.add_argument("file", help="CSV file with service, username and password columns")
    sub.set_defaults(func=cmd_import)

    sub = subparsers.add_parser("export", help="Export credentials to a CSV file (plaintext!)")
    sub.add_argument("file", help="Target CSV file")
    sub.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None, ui: Optional[ConsoleUI] = None,
         vault: Optional[VaultManager] = None) -> int:
    """Run one command and return the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.debug else config.LOG_LEVEL)

    ui = ui or ConsoleUI()
    vault = vault or VaultManager(ui)
    try:
        args.func(vault, ui, args)
    except SelectionCancelled:
        ui.show("Nothing selected.")
    except VaultError as e:
        logger.debug("command failed", exc_info=True)
        ui.show(f"{args.command.capitalize()} failed: {e}")
        return 1
    except KeyboardInterrupt:
        ui.show("")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
