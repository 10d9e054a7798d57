"""Unit tests for USSD input decoding."""

import pytest

from yaya.dialog.decoder import InputKind, decode_input


class TestInitialContact:
    """Empty history always means a fresh dialog."""

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_history_is_initial(self, text):
        decoded = decode_input(text, 4)

        assert decoded.kind == InputKind.INITIAL
        assert decoded.is_initial
        assert decoded.position == 0
        assert decoded.token == ""

    def test_empty_history_without_session(self):
        assert decode_input("", None).is_initial


class TestNewToken:
    """The token is everything after the consumed position."""

    def test_first_choice_after_main_menu(self):
        decoded = decode_input("1", 0)

        assert decoded.kind == InputKind.TOKEN
        assert decoded.token == "1"
        assert decoded.position == 1

    def test_name_after_menu_choice(self):
        decoded = decode_input("1*John Mwangi", 1)

        assert decoded.token == "John Mwangi"
        assert decoded.position == 2

    def test_free_text_containing_delimiter_survives(self):
        decoded = decode_input("1*John*Doe", 1)

        assert decoded.token == "John*Doe"
        assert decoded.position == 3

    def test_empty_segment_is_a_token(self):
        decoded = decode_input("1*", 1)

        assert decoded.kind == InputKind.TOKEN
        assert decoded.token == ""
        assert decoded.position == 2


class TestRepeat:
    """A history with exactly the consumed segments is a duplicate request."""

    def test_same_history_twice(self):
        decoded = decode_input("1*John Mwangi", 2)

        assert decoded.kind == InputKind.REPEAT
        assert decoded.is_repeat
        assert decoded.position == 2


class TestNoUsablePosition:
    """Without a usable position the last segment is taken."""

    def test_unknown_session_uses_last_segment(self):
        decoded = decode_input("1*2*3", None)

        assert decoded.token == "3"
        assert decoded.position == 3

    def test_history_shorter_than_position(self):
        decoded = decode_input("2", 5)

        assert decoded.kind == InputKind.TOKEN
        assert decoded.token == "2"
        assert decoded.position == 1
