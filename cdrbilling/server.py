"""Single-client sign-up/login server with a post-login billing menu."""

from __future__ import annotations

import argparse
import re
import socket
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from .cdr import CdrLayout, CustomerBilling, aggregate, format_report
from .passwords import is_valid_password
from .users import UserStore

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_USERS_PATH = "users.txt"
DEFAULT_CDR_PATH = "cdr.txt"
DEFAULT_REPORT_PATH = "CB.txt"
BUFFER_SIZE = 1024
FIELD_SIZE = 100
BACKLOG = 3

MAIN_MENU = (
    "\n--- Main Menu ---\n"
    "1. SignUp\n"
    "2. Login\n"
    "3. Exit\n"
    "Choice: "
)
POST_LOGIN_MENU = (
    "\n--- Post-Login Menu ---\n"
    "1. Process CDR File\n"
    "2. Print/Search Billing Info\n"
    "3. Logout\n"
    "Choice: "
)
USERNAME_PROMPT = "Enter Username: "
SIGNUP_RULES_PROMPT = "Enter Password (min 8 chars, upper, lower, number, special): "
LOGIN_SECOND_PROMPT = "Enter Password: "

_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


class Connection(Protocol):
    """The part of a socket a session needs."""

    def recv(self, bufsize: int) -> bytes: ...

    def sendall(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class _Disconnected(Exception):
    """The peer closed the connection."""


def _parse_choice(data: bytes) -> int:
    """Read a leading integer from a menu reply; 0 if there is none."""
    match = _LEADING_INT.match(data.decode("ascii", errors="replace"))
    return int(match.group(1)) if match else 0


def _field(data: bytes) -> str:
    """Decode a reply and cut it at the first newline."""
    return data.decode("utf-8", errors="replace").split("\n", 1)[0]


class MenuSession:
    """One client's conversation: main menu, sign-up, login and billing menu."""

    processing_delay = 2.0

    def __init__(
        self,
        conn: Connection,
        users: UserStore,
        cdr_path: str | Path = DEFAULT_CDR_PATH,
        report_path: str | Path = DEFAULT_REPORT_PATH,
    ) -> None:
        self.conn = conn
        self.users = users
        self.cdr_path = Path(cdr_path)
        self.report_path = Path(report_path)
        self._send_lock = threading.Lock()

    def _send(self, text: str) -> None:
        with self._send_lock:
            self.conn.sendall(text.encode("utf-8"))

    def _receive(self, size: int) -> bytes:
        data = self.conn.recv(size)
        if not data:
            raise _Disconnected
        return data

    def _ask(self, prompt: str) -> str:
        self._send(prompt)
        return _field(self._receive(FIELD_SIZE))

    def run(self) -> None:
        """Serve the main menu until the client exits or disconnects, then close."""
        try:
            while True:
                self._send(MAIN_MENU)
                choice = _parse_choice(self._receive(BUFFER_SIZE))
                if choice == 1:
                    self._sign_up()
                elif choice == 2:
                    self._log_in()
                elif choice == 3:
                    self._send("Goodbye!\n")
                    break
                else:
                    self._send("Invalid choice.\n")
        except (_Disconnected, ConnectionError):
            pass
        finally:
            self.conn.close()

    def _sign_up(self) -> None:
        username = self._ask(USERNAME_PROMPT)
        if self.users.exists(username):
            self._send("Username already exists.\n")
            return
        password = self._ask(SIGNUP_RULES_PROMPT)
        if not is_valid_password(password):
            self._send("Invalid password format.\n")
            return
        self.users.add(username, password)
        self._send("SignUp successful!\n")

    def _log_in(self) -> None:
        username = self._ask(USERNAME_PROMPT)
        password = self._ask(LOGIN_SECOND_PROMPT)
        if self.users.verify(username, password):
            self._send("Login successful!\n")
            self.post_login_menu()
        else:
            self._send("Invalid username or password.\n")

    def post_login_menu(self) -> None:
        """Serve the billing menu until the user logs out."""
        while True:
            self._send(POST_LOGIN_MENU)
            choice = _parse_choice(self._receive(BUFFER_SIZE))
            if choice == 1:
                self.process_cdr()
            elif choice == 2:
                self._send("Billing Info: (Dummy Data)\n")
            elif choice == 3:
                self._send("Logging out...\n")
                return
            else:
                self._send("Invalid choice.\n")

    def process_cdr(self) -> list[CustomerBilling] | None:
        """Run customer and interoperator billing side by side.

        Returns the customer totals, or None if the CDR file could not be
        read or the report could not be written.
        """
        with ThreadPoolExecutor(max_workers=2) as pool:
            customers = pool.submit(self._customer_billing)
            interoperator = pool.submit(self._interoperator_billing)
            interoperator.result()
            return customers.result()

    def _customer_billing(self) -> list[CustomerBilling] | None:
        self._send("[Thread] Processing Customer Billing...\n")
        try:
            with self.cdr_path.open(encoding="utf-8") as source:
                customers = aggregate(source, CdrLayout.LEGACY)
        except OSError:
            self._send(f"Error opening {self.cdr_path.name}\n")
            return None
        try:
            self.report_path.write_text(
                format_report(customers, header=False), encoding="utf-8"
            )
        except OSError:
            self._send(f"Error creating {self.report_path.name}\n")
            return None
        time.sleep(self.processing_delay)
        self._send("[Thread] Customer Billing Done.\n")
        return customers

    def _interoperator_billing(self) -> None:
        self._send("[Thread] Processing Interoperator Billing...\n")
        time.sleep(self.processing_delay)
        self._send("[Thread] Interoperator Billing Done.\n")


def serve(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    users_path: str | Path = DEFAULT_USERS_PATH,
    cdr_path: str | Path = DEFAULT_CDR_PATH,
    report_path: str | Path = DEFAULT_REPORT_PATH,
) -> None:
    """Accept a single client, run its session, then stop."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        server.bind((host, port))
        server.listen(BACKLOG)
        print(f"Server listening on port {server.getsockname()[1]}...")
        conn, _ = server.accept()
        print("Client connected.")
        MenuSession(conn, UserStore(users_path), cdr_path, report_path).run()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Billing login server (one client).")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--users", default=DEFAULT_USERS_PATH)
    parser.add_argument("--cdr", default=DEFAULT_CDR_PATH)
    parser.add_argument("--report", default=DEFAULT_REPORT_PATH)
    args = parser.parse_args(argv)
    try:
        serve(args.host, args.port, args.users, args.cdr, args.report)
    except OSError as exc:
        print(f"Server error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())