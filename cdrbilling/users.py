"""Plain-text user database: one "username password" pair per line."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterator


def xor_cipher(text: str, key: str = "K") -> str:
    """XOR every character of text with the single character key.

    Applying the cipher twice with the same key gives back the original text.
    """
    if len(key) != 1:
        raise ValueError("key must be a single character")
    mask = ord(key)
    return "".join(chr(ord(char) ^ mask) for char in text)


class UserStore:
    """Credentials kept in a whitespace-separated text file.

    Lookups read the file afresh each time; a missing file means no users.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _pairs(self) -> Iterator[tuple[str, str | None]]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        tokens = text.split()
        for start in range(0, len(tokens), 2):
            pair = tokens[start:start + 2]
            yield pair[0], pair[1] if len(pair) > 1 else None

    def exists(self, username: str) -> bool:
        """Return True if a record for username is present."""
        with self._lock:
            return any(name == username for name, _ in self._pairs())

    def verify(self, username: str, password: str) -> bool:
        """Return True if username is stored with exactly this password."""
        with self._lock:
            return any(
                name == username and stored == password
                for name, stored in self._pairs()
            )

    def _append(self, username: str, password: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"{username} {password}\n")

    def add(self, username: str, password: str) -> None:
        """Append a record without checking for duplicates."""
        with self._lock:
            self._append(username, password)

    def add_if_absent(self, username: str, password: str) -> bool:
        """Append a record unless the username is taken; return whether it was added."""
        with self._lock:
            if any(name == username for name, _ in self._pairs()):
                return False
            self._append(username, password)
            return True