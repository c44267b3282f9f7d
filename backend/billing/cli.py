# Overview: Flask CLI command groups for database bootstrap, catalog setup, and invoice inspection.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "billing:create_app" (PowerShell: $env:FLASK_APP="billing:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent; use "flask db upgrade" on shared databases).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask products add --name "Cola 330ml" --sku COLA330 --quantity 24 --price-cents 250 --buying-price-cents 150
#   Create a product.
# - python -m flask products list [--search cola]
#   List products with stock and prices.
#
# Invoices:
# - python -m flask invoices list [--status unpaid] [--month 2026-01] [--limit 50]
#   List invoices, newest first.
# - python -m flask invoices next-number
#   Show the number the next committed invoice would receive.
# - python -m flask invoices toggle 17 paid --actor "Sara"
#   Mark invoice 17 paid (or unpaid).

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import BillingError
from .extensions import db
from .records import INVOICE_STATUSES
from .services import products_service, reporting_service
from .services.invoice_engine import engine_from_config
from .services.reporting_service import format_cents


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, including every committed invoice!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('products')
def products_group():
    """Product catalog commands."""


@products_group.command('add')
@click.option('--name', required=True, help='Product name')
@click.option('--sku', default=None, help='Unique stock keeping unit')
@click.option('--barcode', default=None, help='Scan code')
@click.option('--quantity', type=int, default=0, show_default=True, help='Units on hand')
@click.option('--price-cents', type=int, default=0, show_default=True, help='Selling price in cents')
@click.option('--buying-price-cents', type=int, default=0, show_default=True, help='Cost in cents')
@with_appcontext
def add_product_cli(name, sku, barcode, quantity, price_cents, buying_price_cents):
    """
    Create a product.

    Example:
        flask products add --name "Cola 330ml" --sku COLA330 --quantity 24 --price-cents 250
    """
    try:
        patch = products_service.parse_product_payload({
            "name": name,
            "sku": sku,
            "barcode": barcode,
            "quantity": quantity,
            "price_cents": price_cents,
            "buying_price_cents": buying_price_cents,
        })
        product = products_service.create_product(patch=patch)
    except BillingError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created product {product.id}: {product.name} (SKU: {product.sku or '-'})")


@products_group.command('list')
@click.option('--search', default=None, help='Filter by name, SKU or barcode')
@with_appcontext
def list_products_cli(search):
    """List products."""
    products = products_service.list_products(search=search)["items"]

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'SKU':<16} {'Name':<40} {'Qty':>6} {'Price':>12} {'Cost':>12}")
    click.echo("="*100)

    for p in products:
        click.echo(
            f"{p['id']:<5} {(p['sku'] or '-'):<16} {p['name'][:40]:<40} {p['quantity']:>6} "
            f"{format_cents(p['price_cents']):>12} {format_cents(p['buying_price_cents']):>12}"
        )

    click.echo("="*100 + "\n")


@click.group('invoices')
def invoices_group():
    """Invoice inspection and status commands."""


@invoices_group.command('list')
@click.option('--status', type=click.Choice(('all',) + INVOICE_STATUSES), default='all', show_default=True)
@click.option('--month', default=None, help='Only invoices from YYYY-MM')
@click.option('--limit', type=int, default=50, show_default=True, help='Max rows to show')
@with_appcontext
def list_invoices_cli(status, month, limit):
    """
    List invoices, newest first.

    Example:
        flask invoices list
        flask invoices list --status unpaid --month 2026-01
    """
    engine = engine_from_config(current_app.config)
    try:
        invoices = reporting_service.filter_invoices(engine.list_invoices(), status=status, month=month)
    except BillingError as e:
        raise click.ClickException(str(e))

    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<6} {'Number':<20} {'Created':<20} {'Cashier':<16} {'Status':<8} {'Total':>12}")
    click.echo("="*100)

    for inv in invoices[:limit]:
        created = inv.created_at.strftime("%Y-%m-%d %H:%M")
        click.echo(
            f"{inv.id:<6} {inv.invoice_number:<20} {created:<20} {inv.cashier_id[:16]:<16} "
            f"{inv.status:<8} {format_cents(inv.grand_total_cents):>12}"
        )

    click.echo("="*100 + "\n")


@invoices_group.command('next-number')
@with_appcontext
def next_number_cli():
    """Show the next sequential invoice number (nothing is reserved)."""
    engine = engine_from_config(current_app.config)
    try:
        click.echo(engine.allocate_invoice_number())
    except BillingError as e:
        raise click.ClickException(str(e))


@invoices_group.command('toggle')
@click.argument('invoice_id')
@click.argument('status', type=click.Choice(INVOICE_STATUSES))
@click.option('--actor', required=True, help='Who is changing the status')
@with_appcontext
def toggle_status_cli(invoice_id, status, actor):
    """Mark an invoice paid or unpaid."""
    engine = engine_from_config(current_app.config)
    try:
        invoice = engine.toggle_status(invoice_id, status, actor)
    except BillingError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Invoice {invoice.invoice_number} is {invoice.status}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(invoices_group)
