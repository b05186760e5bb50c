"""Multi-client login server: one thread per client, XOR-obscured passwords."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from pathlib import Path

from .server import Connection
from .users import UserStore, xor_cipher

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_USERS_PATH = "users.txt"
MAX_CLIENTS = 10
BUFFER_SIZE = 1024
FIELD_SIZE = 100

MENU = (
    "\n================ MENU ================\n"
    "1. Signup\n"
    "2. Login\n"
    "3. Exit\n"
    "Choose an option: "
)
GOODBYE = "\n[SERVER]: Goodbye!\n"
USERNAME_PROMPT = "\n[SERVER]: Enter username: "
SECOND_FIELD_PROMPT = "[SERVER]: Enter password: "
USER_EXISTS = "[SERVER]: Username already exists.\n"
SIGNUP_OK = "[SERVER]: Signup successful.\n"
LOGIN_OK = "[SERVER]: Login successful.\n"
LOGIN_FAILED = "[SERVER]: Invalid username or password.\n"
INVALID_OPTION = "[SERVER]: Invalid option.\n"


def _read_field(conn: Connection, size: int) -> str | None:
    """Receive one reply cut at its first newline; None if the peer left."""
    data = conn.recv(size)
    if not data:
        return None
    return data.decode("utf-8", errors="replace").split("\n", 1)[0]


def _respond(option: str, username: str, encrypted_password: str, users: UserStore) -> str | None:
    """Carry out the chosen option; None means no reply is sent."""
    if option == "1":
        try:
            added = users.add_if_absent(username, encrypted_password)
        except OSError as exc:
            print(f"[SERVER]: Failed to open file: {exc}", file=sys.stderr)
            return None
        return SIGNUP_OK if added else USER_EXISTS
    if option == "2":
        if not users.path.is_file():
            print(f"[SERVER]: Failed to open file: {users.path}", file=sys.stderr)
            return None
        return LOGIN_OK if users.verify(username, encrypted_password) else LOGIN_FAILED
    return INVALID_OPTION


def handle_client(conn: Connection, users: UserStore) -> None:
    """Serve one client until it exits or disconnects, then close the connection."""
    try:
        while True:
            try:
                conn.sendall(MENU.encode("utf-8"))
            except OSError as exc:
                print(f"[SERVER]: Failed to send menu: {exc}", file=sys.stderr)
                break
            option = _read_field(conn, BUFFER_SIZE)
            if option is None:
                break
            if option == "3":
                conn.sendall(GOODBYE.encode("utf-8"))
                break
            conn.sendall(USERNAME_PROMPT.encode("utf-8"))
            username = _read_field(conn, FIELD_SIZE)
            if username is None:
                break
            conn.sendall(SECOND_FIELD_PROMPT.encode("utf-8"))
            password = _read_field(conn, FIELD_SIZE)
            if password is None:
                break
            response = _respond(option, username, xor_cipher(password), users)
            if response is not None:
                conn.sendall(response.encode("utf-8"))
    except ConnectionError:
        pass
    finally:
        conn.close()


def serve(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    users_path: str | Path = DEFAULT_USERS_PATH,
) -> None:
    """Accept clients forever, each on its own thread."""
    users = UserStore(users_path)
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind((host, port))
        server.listen(MAX_CLIENTS)
        print(
            f"[SERVER]: Server running on port {server.getsockname()[1]}. "
            "Waiting for clients..."
        )
        while True:
            try:
                conn, _ = server.accept()
            except (ConnectionError, InterruptedError) as exc:
                print(f"[SERVER]: Accept failed: {exc}", file=sys.stderr)
                continue
            threading.Thread(
                target=handle_client, args=(conn, users), daemon=True
            ).start()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Multi-client login server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--users", default=DEFAULT_USERS_PATH)
    args = parser.parse_args(argv)
    try:
        serve(args.host, args.port, args.users)
    except OSError as exc:
        print(f"[SERVER]: Bind failed: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())