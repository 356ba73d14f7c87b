"""
Console user interface: prompts, tables and the clipboard.
"""

import getpass
import logging
import webbrowser
from typing import Callable, List, Optional, Sequence

import pyperclip

from passlane import config
from passlane.exceptions import SelectionCancelled, VaultError
from passlane.models import Credentials

logger = logging.getLogger(__name__)


class ConsoleUI:
    """Prompts on stdin, prints to stdout."""

    def __init__(self, output: Callable[[str], None] = print,
                 read_line: Callable[[str], str] = input,
                 read_secret: Callable[[str], str] = getpass.getpass):
        self._output = output
        self._read_line = read_line
        self._read_secret = read_secret

    def show(self, message: str) -> None:
        self._output(message)

    def ask_text(self, prompt: str) -> str:
        return self._read_line(prompt)

    def ask_secret(self, prompt: str) -> str:
        return self._read_secret(prompt)

    def ask_master_password(self, prompt: Optional[str] = None) -> str:
        return self.ask_secret(prompt or config.PROMPT_MASTER_PASSWORD)

    def ask_credentials(self, password: str) -> Credentials:
        service = self.ask_text("Enter service: ").strip()
        username = self.ask_text("Enter username: ").strip()
        return Credentials(service=service, username=username, password=password)

    def select_index(self, options: Sequence[Credentials],
                     prompt: str = config.SELECT_INDEX_PROMPT) -> int:
        """
        Ask for a row number of the table that was just rendered.

        Raises:
            SelectionCancelled: If the user enters q or nothing
        """
        while True:
            answer = self.ask_text(prompt).strip()
            if answer in ("", "q", "Q"):
                raise SelectionCancelled("Nothing selected")
            try:
                index = int(answer)
            except ValueError:
                self.show(f"Invalid row number: {answer}")
                continue
            if 0 <= index < len(options):
                return index
            self.show(f"Row number must be between 0 and {len(options) - 1}")

    def render_table(self, records: Sequence[Credentials], verbose: bool = False) -> None:
        """Print records as a table; passwords are masked unless verbose."""
        headers = ["", "Service", "Username", "Password"]
        rows: List[List[str]] = [
            [
                str(index),
                creds.service,
                creds.username,
                creds.password if verbose else config.TABLE_PASSWORD_HIDDEN_TEXT,
            ]
            for index, creds in enumerate(records)
        ]
        widths = [max(len(row[col]) for row in rows + [headers]) for col in range(len(headers))]
        separator = "+".join("-" * (width + 2) for width in widths)
        self.show(" | ".join(h.ljust(w) for h, w in zip(headers, widths)))
        self.show(separator)
        for row in rows:
            self.show(" | ".join(cell.ljust(w) for cell, w in zip(row, widths)))

    def open_url(self, url: str) -> None:
        self.show(f"Opening {url} in your browser.")
        if not webbrowser.open(url):
            self.show("Could not open a browser; please visit the URL above manually.")

    def copy_to_clipboard(self, value: str) -> None:
        try:
            pyperclip.copy(value)
        except pyperclip.PyperclipException as e:
            raise VaultError(f"Clipboard is not available: {e}") from e

    def paste_from_clipboard(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise VaultError(f"Clipboard is not available: {e}") from e
