# tests/scripts/test_tokens.py
from unittest.mock import patch

from parlor.core.security import decode_access_token
from parlor.scripts import tokens


def test_find_user_by_id_or_username(db_session, alice) -> None:
    assert tokens.find_user(db_session, alice.id) is alice
    assert tokens.find_user(db_session, alice.username) is alice
    assert tokens.find_user(db_session, "nobody") is None


def test_main_prints_token_for_user(db_session, alice, capsys) -> None:
    with patch.object(tokens, "SessionLocal", return_value=db_session), patch.object(db_session, "close"):
        assert tokens.main([alice.username]) == 0

    token = capsys.readouterr().out.strip()
    assert decode_access_token(token) == alice.id


def test_main_reports_unknown_user(db_session, capsys) -> None:
    with patch.object(tokens, "SessionLocal", return_value=db_session), patch.object(db_session, "close"):
        assert tokens.main(["nobody"]) == 1

    assert "no user matches" in capsys.readouterr().err
