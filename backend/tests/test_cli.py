"""CLI command tests using Flask's CLI runner."""

from motorbersih.services.auth_service import verify_token


def test_operator_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["operators", "create", "--name", "Budi", "--rate", "25"])
    assert result.exit_code == 0
    assert "PASS Created operator: Budi" in result.output
    assert "Rate: 25.00%" in result.output

    result = runner.invoke(args=["operators", "list"])
    assert result.exit_code == 0
    assert "Budi" in result.output


def test_operator_create_rejects_bad_rate(app, db_session):
    result = app.test_cli_runner().invoke(args=["operators", "create", "--name", "X", "--rate", "150"])
    assert result.exit_code == 1
    assert "FAIL" in result.output


def test_pending_commissions_unknown_operator(app, db_session):
    result = app.test_cli_runner().invoke(args=["commissions", "pending", "--operator-id", "99"])
    assert result.exit_code == 1
    assert "Operator not found" in result.output


def test_auth_token_round_trips(app, db_session):
    result = app.test_cli_runner().invoke(args=["auth", "token", "--user-id", "5", "--role", "cashier"])
    assert result.exit_code == 0

    actor = verify_token(result.output.strip())
    assert actor.id == 5
    assert actor.role == "cashier"
