import io
import socket
import threading

import pytest

from cdrbilling.client import (
    is_prompt,
    main,
    run_guided_client,
    run_prompt_client,
)
from cdrbilling.server import MAIN_MENU, MenuSession
from cdrbilling.threaded_server import (
    GOODBYE,
    LOGIN_OK,
    MENU,
    SIGNUP_OK,
    USERNAME_PROMPT,
)
from cdrbilling.users import UserStore

RULES_NOTICE = (
    "[CLIENT]: Password must contain at least one uppercase letter, "
    "one lowercase letter, one digit, and one special character."
)
CREDENTIAL_PROMPT = "[SERVER]: Enter password: "


class FakeConnection:
    def __init__(self, replies):
        self.replies = [reply.encode("utf-8") for reply in replies]
        self.sent = []

    def recv(self, bufsize):
        if not self.replies:
            return b""
        return self.replies.pop(0)

    def sendall(self, data):
        self.sent.append(data)


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Choice: ", True),
        ("Enter Username: ", True),
        ("Enter Password (min 8 chars, upper, lower, number, special): ", True),
        ("Login successful!\n", False),
        ("Choose an option: ", False),
        ("", False),
    ],
)
def test_is_prompt(message, expected):
    assert is_prompt(message) is expected


def test_prompt_client_exits_on_goodbye():
    conn = FakeConnection([MAIN_MENU, "Goodbye!\n", "never read"])
    out = io.StringIO()
    run_prompt_client(conn, io.StringIO("3\n"), out)
    assert conn.sent == [b"3"]
    assert out.getvalue() == MAIN_MENU + "Goodbye!\n"
    assert conn.replies == [b"never read"]


def test_prompt_client_does_not_answer_non_prompts():
    conn = FakeConnection(["Invalid choice.\n"])
    out = io.StringIO()
    run_prompt_client(conn, io.StringIO("1\n"), out)
    assert conn.sent == []
    assert out.getvalue() == "Invalid choice.\n"


def test_prompt_client_stops_at_end_of_input():
    conn = FakeConnection(["Choice: ", "Enter Username: "])
    out = io.StringIO()
    run_prompt_client(conn, io.StringIO(""), out)
    assert conn.sent == []
    assert out.getvalue() == "Choice: "


def test_prompt_client_against_menu_session(tmp_path):
    users_path = tmp_path / "users.txt"
    client_end, server_end = socket.socketpair()
    session = MenuSession(server_end, UserStore(users_path))
    worker = threading.Thread(target=session.run)
    worker.start()
    out = io.StringIO()
    try:
        run_prompt_client(client_end, io.StringIO("1\nalice\nXy9!abcd\n3\n"), out)
    finally:
        worker.join(timeout=5)
        client_end.close()
    assert not worker.is_alive()
    assert "SignUp successful!\n" in out.getvalue()
    assert out.getvalue().endswith("Goodbye!\n")
    assert UserStore(users_path).verify("alice", "Xy9!abcd")


def test_guided_client_exit():
    conn = FakeConnection([MENU, GOODBYE])
    out = io.StringIO()
    run_guided_client(conn, io.StringIO("3\n"), out)
    assert conn.sent == [b"3"]
    assert out.getvalue() == MENU + GOODBYE + "\n"


def test_guided_client_server_closed():
    conn = FakeConnection([])
    out = io.StringIO()
    run_guided_client(conn, io.StringIO("1\n"), out)
    assert out.getvalue() == "[CLIENT]: Server closed the connection.\n"
    assert conn.sent == []


def test_guided_client_asks_again_for_weak_password():
    conn = FakeConnection([MENU, USERNAME_PROMPT, CREDENTIAL_PROMPT, LOGIN_OK])
    out = io.StringIO()
    run_guided_client(conn, io.StringIO("2\nalice\nweak\nXy9!\n\n"), out)
    assert conn.sent == [b"2", b"alice", b"Xy9!"]
    text = out.getvalue()
    assert text.count(RULES_NOTICE) == 1
    assert "Please enter password again: " in text
    assert f"\n{LOGIN_OK}\n" in text
    assert text.endswith("[CLIENT]: Server closed the connection.\n")


def test_guided_client_redirects_to_login_after_signup():
    conn = FakeConnection([MENU, USERNAME_PROMPT, CREDENTIAL_PROMPT, SIGNUP_OK])
    out = io.StringIO()
    run_guided_client(conn, io.StringIO("1\nbob\nXy9!\n"), out)
    assert conn.sent == [b"1", b"bob", b"Xy9!", b"2"]
    assert "[CLIENT]: Redirecting to login...\n" in out.getvalue()


def test_guided_client_other_response_waits_for_enter():
    conn = FakeConnection(
        [MENU, USERNAME_PROMPT, CREDENTIAL_PROMPT, "[SERVER]: Invalid option.\n"]
    )
    out = io.StringIO()
    run_guided_client(conn, io.StringIO("7\ncarol\nXy9!\n"), out)
    assert conn.sent == [b"7", b"carol", b"Xy9!"]
    assert out.getvalue().endswith("[CLIENT]: Press Enter to return to menu...\n")


def test_main_reports_refused_connection():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
    assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1