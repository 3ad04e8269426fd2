# Overview: Flask CLI command groups for bootstrap, inspection and token issuance.

# backend/motorbersih/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (development; production uses flask db upgrade).
#
# Operators:
# - python -m flask operators create --name "Budi" --phone 0812... --rate 30
#   Create a wash operator.
# - python -m flask operators list [--status active]
#   List operators with accrued commission.
#
# Commissions:
# - python -m flask commissions pending --operator-id 1
#   Show the unpaid ledger entries of one operator.
#
# Auth:
# - python -m flask auth token --user-id 1 --role admin
#   Print a bearer token for API calls.

import click
from flask.cli import with_appcontext

from .extensions import db
from .operations import Operation, execute
from .services import auth_service
from .services.auth_service import AuthError, ROLES


def _fail(result) -> None:
    click.echo(f"FAIL {result.message}")
    raise SystemExit(1)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401

    db.create_all()
    click.echo("PASS Database tables created")


@click.group('operators')
def operators_group():
    """Operator management commands."""


@operators_group.command('create')
@click.option('--name', required=True, help='Operator name')
@click.option('--phone', help='Phone number')
@click.option('--rate', 'commission_rate', help='Commission rate in percent (default from config)')
@click.option('--user-id', type=int, help='Linked user account ID')
@with_appcontext
def create_operator_cli(name, phone, commission_rate, user_id):
    """
    Create an operator.

    Example:
        flask operators create --name "Budi" --rate 30
    """
    payload = {"name": name, "phone": phone, "commission_rate": commission_rate, "user_id": user_id}
    result = execute(Operation.CREATE_OPERATOR, payload)
    if not result.ok:
        _fail(result)
    op = result.value
    click.echo(f"PASS Created operator: {op['name']} (ID: {op['id']}, Rate: {op['commission_rate']}%)")


@operators_group.command('list')
@click.option('--status', type=click.Choice(['active', 'inactive']), help='Filter by status')
@with_appcontext
def list_operators_cli(status):
    """List operators."""
    result = execute(Operation.LIST_OPERATORS, {"status": status})
    if not result.ok:
        _fail(result)

    operators = result.value["operators"]
    if not operators:
        click.echo("No operators found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Rate':<8} {'Washes':<8} {'Commission':<14} {'Status'}")
    click.echo("="*80)
    for op in operators:
        click.echo(
            f"{op['id']:<5} {op['name']:<25} {op['commission_rate']:<8} "
            f"{op['total_washes']:<8} {op['total_commission']:<14} {op['status']}"
        )
    click.echo("="*80 + "\n")


@click.group('commissions')
def commissions_group():
    """Commission ledger commands."""


@commissions_group.command('pending')
@click.option('--operator-id', type=int, required=True, help='Operator ID')
@with_appcontext
def pending_commissions_cli(operator_id):
    """Show pending commissions for one operator."""
    result = execute(Operation.LIST_PENDING_COMMISSIONS, {"operator_id": operator_id})
    if not result.ok:
        _fail(result)

    data = result.value
    for entry in data["commissions"]:
        click.echo(f"{entry['id']:<6} txn={entry['transaction_id']:<6} amount={entry['amount']}")
    click.echo(f"Pending total: {data['pending_total']} ({len(data['commissions'])} entries)")


@click.group('auth')
def auth_group():
    """Token commands."""


@auth_group.command('token')
@click.option('--user-id', type=int, required=True, help='User ID to embed in the token')
@click.option('--role', type=click.Choice(list(ROLES)), required=True)
@with_appcontext
def issue_token_cli(user_id, role):
    """Print a signed bearer token."""
    try:
        click.echo(auth_service.issue_token(user_id, role))
    except AuthError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(operators_group)
    app.cli.add_command(commissions_group)
    app.cli.add_command(auth_group)
