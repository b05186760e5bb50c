"""Password policy checks used by the login servers and the guided client."""

from __future__ import annotations

SPECIAL_CHARACTERS = "!@#$%^&()_-+=<>?/"
MIN_LENGTH = 8


def _is_upper(char: str) -> bool:
    return "A" <= char <= "Z"


def _is_lower(char: str) -> bool:
    return "a" <= char <= "z"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def is_valid_password(password: str) -> bool:
    """Return True if the password satisfies the server's sign-up policy.

    The password needs at least eight characters, an upper-case letter, a
    lower-case letter, a digit and one character from SPECIAL_CHARACTERS.
    """
    has_upper = has_lower = has_digit = has_special = False
    for char in password:
        if _is_upper(char):
            has_upper = True
        elif _is_lower(char):
            has_lower = True
        elif _is_digit(char):
            has_digit = True
        elif char in SPECIAL_CHARACTERS:
            has_special = True
    return (
        len(password) >= MIN_LENGTH
        and has_upper
        and has_lower
        and has_digit
        and has_special
    )


def is_complex_enough(password: str) -> bool:
    """Return True if the password mixes upper, lower, digit and other characters.

    This is the client-side check: there is no length requirement and any
    character that is not an ASCII letter or digit counts as special.
    """
    has_upper = has_lower = has_digit = has_special = False
    for char in password:
        if _is_upper(char):
            has_upper = True
        elif _is_lower(char):
            has_lower = True
        elif _is_digit(char):
            has_digit = True
        else:
            has_special = True
    return has_upper and has_lower and has_digit and has_special