import pytest

import manage
from common.security.jwt.decode import decode_token


def test_issue_token_prints_admin_token(capsys):
    assert manage.main(["issue-token", "root", "--admin", "--name", "Root"]) == 0

    payload = decode_token(capsys.readouterr().out.strip())
    assert payload.sub == "root"
    assert payload.admin is True
    assert payload.role == "admin"
    assert payload.name == "Root"


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        manage.main(["drop-everything"])
