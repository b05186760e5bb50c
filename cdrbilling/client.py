"""Interactive terminal clients for the login servers."""

from __future__ import annotations

import argparse
import codecs
import socket
import sys
import time
from typing import Protocol, TextIO

from .passwords import is_complex_enough

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
BUFFER_SIZE = 1024

PROMPTS = ("Choice:", "Enter Username", "Enter Password")
RETRY_DELAY = 0.0002

COMPLEXITY_RULES = (
    "[CLIENT]: Password must contain at least one uppercase letter, one "
    "lowercase letter, one digit, and one special character.\n"
)


class Connection(Protocol):
    """The part of a socket a client needs."""

    def recv(self, bufsize: int) -> bytes: ...

    def sendall(self, data: bytes) -> None: ...


class _InputClosed(Exception):
    """The user's input stream reached its end."""


class _Channel:
    """Text view of a connection that decodes replies incrementally."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def receive(self) -> str | None:
        """Return the next chunk of text, or None once the peer has closed."""
        data = self._conn.recv(BUFFER_SIZE - 1)
        if not data:
            return None
        return self._decoder.decode(data)

    def send(self, text: str) -> None:
        if text:
            self._conn.sendall(text.encode("utf-8"))


def _read_line(stdin: TextIO) -> str:
    line = stdin.readline()
    if not line:
        raise _InputClosed
    return line.split("\n", 1)[0]


def _write(stdout: TextIO, text: str) -> None:
    stdout.write(text)
    stdout.flush()


def is_prompt(message: str) -> bool:
    """Return True if the server message asks the user for input."""
    return any(prompt in message for prompt in PROMPTS)


def run_prompt_client(
    conn: Connection,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Echo server messages and answer each prompt with a line of input.

    Stops when the server closes the connection, says goodbye, or the
    input runs out.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    channel = _Channel(conn)
    try:
        while True:
            message = channel.receive()
            if message is None:
                break
            _write(stdout, message)
            if "Goodbye" in message:
                break
            if is_prompt(message):
                channel.send(_read_line(stdin))
    except _InputClosed:
        pass


def _guided_round(channel: _Channel, stdin: TextIO, stdout: TextIO) -> bool:
    """Run one menu round; return False when the session is over."""
    menu = channel.receive()
    if menu is None:
        _write(stdout, "[CLIENT]: Server closed the connection.\n")
        return False
    _write(stdout, menu)

    option = _read_line(stdin)
    channel.send(option)
    if option == "3":
        _write(stdout, f"{channel.receive() or ''}\n")
        return False

    _write(stdout, channel.receive() or "")
    channel.send(_read_line(stdin))

    _write(stdout, channel.receive() or "")
    password = _read_line(stdin)
    while not is_complex_enough(password):
        _write(stdout, COMPLEXITY_RULES)
        _write(stdout, "Please enter password again: ")
        password = _read_line(stdin)
    channel.send(password)

    response = channel.receive()
    if response is None:
        return False
    _write(stdout, f"\n{response}\n")

    if "Signup successful" in response:
        _write(stdout, "[CLIENT]: Redirecting to login...\n")
        channel.send("2")
        return True
    if "Login successful" in response:
        _write(stdout, "[CLIENT]: Login successful. Press Enter to return to menu...\n")
        _read_line(stdin)
        return True
    _write(stdout, "[CLIENT]: Press Enter to return to menu...\n")
    _read_line(stdin)
    time.sleep(RETRY_DELAY)
    return True


def run_guided_client(
    conn: Connection,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Walk the user through menu option, username and a checked password.

    Passwords that do not mix upper case, lower case, digits and other
    characters are asked for again before anything is sent.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    channel = _Channel(conn)
    try:
        while _guided_round(channel, stdin, stdout):
            pass
    except _InputClosed:
        pass


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Terminal client for the login servers.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--guided",
        action="store_true",
        help="step through each menu round and check passwords locally",
    )
    args = parser.parse_args(argv)
    try:
        with socket.create_connection((args.host, args.port)) as conn:
            if args.guided:
                print(f"[CLIENT]: Connected to server at port {args.port}")
                run_guided_client(conn)
            else:
                run_prompt_client(conn)
    except ConnectionError as exc:
        print(f"Connection failed: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Socket error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())