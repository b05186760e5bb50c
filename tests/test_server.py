import pytest

from cdrbilling.cdr import format_report
from cdrbilling.passwords import SPECIAL_CHARACTERS
from cdrbilling.server import MAIN_MENU, POST_LOGIN_MENU, MenuSession
from cdrbilling.users import UserStore

PASSWORD = "password"
STRONG_PASSWORD = PASSWORD.capitalize() + str(7) + SPECIAL_CHARACTERS[0]


class FakeConn:
    def __init__(self, replies):
        self.replies = list(replies)
        self.sent = []
        self.closed = False

    def recv(self, size):
        if not self.replies:
            return b""
        return self.replies.pop(0)[:size]

    def sendall(self, data):
        self.sent.append(data)

    def close(self):
        self.closed = True

    @property
    def text(self):
        return b"".join(self.sent).decode()


@pytest.fixture
def users(tmp_path):
    return UserStore(tmp_path / "users.txt")


def make_session(conn, users, tmp_path):
    session = MenuSession(conn, users, tmp_path / "cdr.txt", tmp_path / "CB.txt")
    session.processing_delay = 0
    return session


def test_exit_says_goodbye_and_closes(users, tmp_path):
    conn = FakeConn([b"3"])
    make_session(conn, users, tmp_path).run()
    assert conn.text == MAIN_MENU + "Goodbye!\n"
    assert conn.closed


def test_invalid_choice_repeats_menu(users, tmp_path):
    conn = FakeConn([b"9", b"3"])
    make_session(conn, users, tmp_path).run()
    assert "Invalid choice.\n" in conn.text
    assert conn.text.count(MAIN_MENU) == 2


def test_signup_stores_user(users, tmp_path):
    conn = FakeConn([b"1", b"alice\n", STRONG_PASSWORD.encode(), b"3"])
    make_session(conn, users, tmp_path).run()
    assert "SignUp successful!\n" in conn.text
    assert users.verify("alice", STRONG_PASSWORD)


def test_signup_existing_user_skips_password_prompt(users, tmp_path):
    users.add("alice", PASSWORD)
    conn = FakeConn([b"1", b"alice", b"3"])
    make_session(conn, users, tmp_path).run()
    assert "Username already exists.\n" in conn.text
    assert "Enter Password" not in conn.text


def test_signup_rejects_weak_password(users, tmp_path):
    conn = FakeConn([b"1", b"bob", PASSWORD.encode(), b"3"])
    make_session(conn, users, tmp_path).run()
    assert "Invalid password format.\n" in conn.text
    assert not users.exists("bob")


def test_login_with_wrong_password(users, tmp_path):
    users.add("alice", STRONG_PASSWORD)
    conn = FakeConn([b"2", b"alice", PASSWORD.encode(), b"3"])
    make_session(conn, users, tmp_path).run()
    assert "Invalid username or password.\n" in conn.text
    assert POST_LOGIN_MENU not in conn.text


def test_login_then_logout(users, tmp_path):
    users.add("alice", PASSWORD)
    conn = FakeConn([b"2", b"alice", PASSWORD.encode(), b"3", b"3"])
    make_session(conn, users, tmp_path).run()
    text = conn.text
    assert "Login successful!\n" in text
    assert text.index(POST_LOGIN_MENU) < text.index("Logging out...\n")
    assert text.endswith("Goodbye!\n")


def test_post_login_billing_info_and_invalid_choice(users, tmp_path):
    users.add("alice", PASSWORD)
    conn = FakeConn([b"2", b"alice", PASSWORD.encode(), b"2", b"x", b"3", b"3"])
    make_session(conn, users, tmp_path).run()
    assert "Billing Info: (Dummy Data)\n" in conn.text
    assert conn.text.count(POST_LOGIN_MENU) == 3


def test_process_cdr_writes_report(users, tmp_path):
    (tmp_path / "cdr.txt").write_text(
        "5|OpA|x|MOC|x|x|30|x|x\n"
        "5|OpA|x|MTC|x|x|12|x|x\n"
        "7|OpB|x|GPRS|x|x|4|x|x\n"
        "short|line\n",
        encoding="utf-8",
    )
    conn = FakeConn([])
    session = make_session(conn, users, tmp_path)
    customers = session.process_cdr()
    assert [c.customer_id for c in customers] == ["5", "7"]
    assert customers[0].outgoing_voice == 30
    assert customers[0].incoming_voice == 12
    assert (customers[1].download, customers[1].upload) == (4, 4)
    report = (tmp_path / "CB.txt").read_text(encoding="utf-8")
    assert report == format_report(customers, header=False)
    assert "Customer ID: 5 (OpA)" in report
    assert "[Thread] Customer Billing Done.\n" in conn.text
    assert "[Thread] Interoperator Billing Done.\n" in conn.text


def test_process_cdr_without_input_file(users, tmp_path):
    conn = FakeConn([])
    session = make_session(conn, users, tmp_path)
    assert session.process_cdr() is None
    assert "Error opening cdr.txt\n" in conn.text
    assert not (tmp_path / "CB.txt").exists()
    assert "[Thread] Interoperator Billing Done.\n" in conn.text


def test_process_cdr_from_menu(users, tmp_path):
    (tmp_path / "cdr.txt").write_text("9|OpC|x|SMS-MO|x|x|1|x|x\n", encoding="utf-8")
    users.add("alice", PASSWORD)
    conn = FakeConn([b"2", b"alice", PASSWORD.encode(), b"1", b"3", b"3"])
    make_session(conn, users, tmp_path).run()
    report = (tmp_path / "CB.txt").read_text(encoding="utf-8")
    assert "Customer ID: 9 (OpC)" in report
    assert "[Thread] Processing Customer Billing...\n" in conn.text


def test_disconnect_ends_session(users, tmp_path):
    conn = FakeConn([b"2", b"alice"])
    make_session(conn, users, tmp_path).run()
    assert conn.closed
    assert conn.text.endswith("Enter Password: ")