"""
Management commands for setup and ledger maintenance
"""
import click
from flask.cli import AppGroup, with_appcontext

from .extensions import db
from .services.ledger import get_lot_summary, receive_lot, withdraw


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create database tables directly (local development only; use `flask db upgrade` elsewhere)"""
    db.create_all()
    click.echo("✅ Database tables created/verified")


ledger_cli = AppGroup('ledger', help='Stock lot ledger commands.')


@ledger_cli.command('receive')
@click.argument('name')
@click.argument('quantity')
@click.option('--category', required=True, help='Reporting category for the lot.')
@click.option('--expires', 'expiration_date', required=True, help='Expiration date (ISO-8601).')
@click.option('--delivered', 'delivery_date', required=True, help='Delivery date (ISO-8601).')
@click.option('--unit', default=None, help='Unit of measure (defaults to LEDGER_DEFAULT_UNIT).')
def receive_command(name, quantity, category, expiration_date, delivery_date, unit):
    """Receive QUANTITY of NAME as a new lot"""
    success, message, lot = receive_lot(
        name=name,
        category=category,
        quantity=quantity,
        expiration_date=expiration_date,
        delivery_date=delivery_date,
        unit=unit,
    )
    if not success:
        raise click.ClickException(message)
    click.echo(f"✅ {message}: lot {lot.id} ({lot.quantity_on_hand} {lot.unit} of {lot.item_name})")


@ledger_cli.command('withdraw')
@click.argument('name')
@click.argument('quantity')
@click.option('--timeout', type=float, default=None, help='Seconds before giving up (overrides config).')
def withdraw_command(name, quantity, timeout):
    """Withdraw QUANTITY of NAME, newest lots first"""
    result = withdraw(name, quantity, timeout=timeout)
    if not result.ok:
        raise click.ClickException(f"{result.status}: {result.message}")

    click.echo(f"✅ Withdrew {result.requested_quantity} {name} (attempt {result.attempts})")
    for lot in result.mutated_lots:
        click.echo(f"   lot {lot.id}: {lot.quantity_on_hand} remaining")


@ledger_cli.command('summary')
@click.argument('name')
def summary_command(name):
    """Show lots and totals for NAME"""
    summary = get_lot_summary(name)
    click.echo(
        f"{summary['item_name']}: {summary['total_quantity']} across {summary['total_lots']} lot(s), "
        f"{summary['expired_lots']} expired, {summary['expiring_soon']} expiring soon"
    )
    for lot in summary['lots']:
        click.echo(f"   lot {lot['id']}: {lot['quantity']} {lot['unit']} received {lot['received_at']}")


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(init_db_command)
    app.cli.add_command(ledger_cli)
