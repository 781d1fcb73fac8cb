# finance_tracker/cli.py
from datetime import date
from pathlib import Path

import click
import uvicorn
from dotenv import load_dotenv

from finance_tracker import analytics
from finance_tracker.config import DEFAULT_CONFIG, configure_logging, load_config, save_config
from finance_tracker.core.errors import FinanceTrackerError
from finance_tracker.core.models import TransactionDraft, TransactionFilter, TransactionType
from finance_tracker.database import TransactionStore
from finance_tracker.importer import decode_upload, import_csv
from finance_tracker.settings import SettingsStore, YamlSettingsStorage
from finance_tracker.web import create_app

SEED_TRANSACTIONS = [
    TransactionDraft(description='Salary', amount='2500', type=TransactionType.INCOME,
                     category='Income', date=date(2023, 4, 1), is_recurring=True,
                     payment_method='Bank Transfer'),
    TransactionDraft(description='Rent', amount='800', type=TransactionType.EXPENSE,
                     category='Housing', date=date(2023, 4, 3), is_recurring=True,
                     payment_method='Bank Transfer'),
    TransactionDraft(description='Grocery Shopping', amount='120.50', type=TransactionType.EXPENSE,
                     category='Food & Dining', date=date(2023, 4, 5),
                     payment_method='Credit Card'),
    TransactionDraft(description='Freelance Work', amount='350', type=TransactionType.INCOME,
                     category='Income', date=date(2023, 4, 10), payment_method='PayPal'),
    TransactionDraft(description='Netflix Subscription', amount='15.99', type=TransactionType.EXPENSE,
                     category='Subscriptions', date=date(2023, 4, 15), is_recurring=True,
                     payment_method='Credit Card'),
]

_DATE = click.DateTime(formats=['%Y-%m-%d'])


def _store(ctx):
    return TransactionStore(ctx.obj['database_url'])


def _settings(ctx):
    store = SettingsStore(YamlSettingsStorage(ctx.obj['config']['settings_file']))
    store.initialize()
    return store


def _fail(exc):
    raise click.ClickException(str(exc))


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used when it does not exist)'
)
@click.option(
    '--db', 'database_url',
    default=None,
    help='SQLAlchemy database URL (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with FINANCE_TRACKER_* overrides'
)
@click.pass_context
def main(ctx, config_path, database_url, env_file):
    """
    Track personal income and expenses: import bank CSV exports,
    list and summarize transactions, or serve the JSON API.
    """
    if env_file:
        load_dotenv(env_file)
    cfg = load_config(config_path)
    configure_logging(cfg['log_level'])
    ctx.obj = {
        'config': cfg,
        'config_path': config_path,
        'database_url': database_url or cfg['database_url'],
    }


@main.command('init-config')
@click.pass_context
def init_config(ctx):
    """Write a config.yaml populated with the defaults."""
    path = Path(ctx.obj['config_path'])
    if path.exists():
        raise click.ClickException(f"{path} already exists")
    save_config(DEFAULT_CONFIG, path)
    click.echo(f"Wrote default configuration to {path}.")


@main.command('import-csv')
@click.argument('csv_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_csv_command(ctx, csv_file):
    """Import a CSV with date, description and amount columns (all or nothing)."""
    store = _store(ctx)
    try:
        text = decode_upload(Path(csv_file).read_bytes())
        result = import_csv(text, store, ctx.obj['config'].get('categories'))
    except FinanceTrackerError as e:
        _fail(e)
    click.echo(f"Imported {result.count} transaction(s) into {ctx.obj['database_url']}.")


@main.command('list')
@click.option('--start', 'start_date', type=_DATE, default=None, help='Earliest date (inclusive)')
@click.option('--end', 'end_date', type=_DATE, default=None, help='Latest date (inclusive)')
@click.option('--type', 'tx_type', type=click.Choice([t.value for t in TransactionType]), default=None)
@click.option('--category', default=None, help='Exact category name')
@click.option('--min-amount', type=float, default=None)
@click.option('--max-amount', type=float, default=None)
@click.option('--search', 'search_term', default=None, help='Case-insensitive description search')
@click.pass_context
def list_command(ctx, start_date, end_date, tx_type, category, min_amount, max_amount, search_term):
    """Print matching transactions, newest first."""
    try:
        flt = TransactionFilter(
            start_date=start_date.date() if start_date else None,
            end_date=end_date.date() if end_date else None,
            type=tx_type,
            category=category,
            min_amount=min_amount,
            max_amount=max_amount,
            search_term=search_term,
        )
    except FinanceTrackerError as e:
        _fail(e)
    txs = _store(ctx).list(flt)
    for tx in txs:
        click.echo(
            f"{tx.id:>5}  {tx.date.isoformat()}  {tx.type.value:<8}  "
            f"{tx.amount:>10}  {tx.category or '-':<16}  {tx.description}"
        )
    click.echo(f"{len(txs)} transaction(s).")


@main.command('summary')
@click.option('--start', 'start_date', type=_DATE, default=None)
@click.option('--end', 'end_date', type=_DATE, default=None)
@click.pass_context
def summary(ctx, start_date, end_date):
    """Show income, expenses, balance and spend per category."""
    start = start_date.date() if start_date else None
    end = end_date.date() if end_date else None
    try:
        txs = _store(ctx).list(TransactionFilter(start_date=start, end_date=end))
    except FinanceTrackerError as e:
        _fail(e)
    currency = _settings(ctx).settings.currency
    click.echo(f"Income:   {analytics.total_income(txs):>12} {currency}")
    click.echo(f"Expenses: {analytics.total_expense(txs):>12} {currency}")
    click.echo(f"Balance:  {analytics.balance(txs):>12} {currency}")
    rows = analytics.category_totals(txs)
    if rows:
        click.echo("\nSpend by category:")
    for row in rows:
        click.echo(f"  {row['category']:<20} {row['total']:>12} {row['percentage']:6.1f}%")


@main.command('seed')
@click.pass_context
def seed(ctx):
    """Insert a handful of sample transactions."""
    created = _store(ctx).bulk_create(SEED_TRANSACTIONS)
    click.echo(f"Seeded {len(created)} sample transaction(s).")


@main.command('serve')
@click.option('--host', default=None, help='Host to bind (default from config)')
@click.option('--port', type=int, default=None, help='Port to bind (default from config)')
@click.pass_context
def serve(ctx, host, port):
    """Run the JSON API with uvicorn."""
    cfg = ctx.obj['config']
    app = create_app(_store(ctx), cfg)
    uvicorn.run(app, host=host or cfg['host'], port=port or int(cfg['port']))


@main.command('settings')
@click.option('--currency', default=None, help='ISO currency code, e.g. EUR')
@click.option('--dark-mode/--light-mode', 'dark_mode', default=None)
@click.option('--date-format', default=None, help='Display date format, e.g. DD/MM/YYYY')
@click.option('--language', default=None, help='Interface language code')
@click.option('--reset', is_flag=True, default=False, help='Restore the defaults')
@click.pass_context
def settings_command(ctx, currency, dark_mode, date_format, language, reset):
    """Show or change display preferences."""
    store = _settings(ctx)
    changes = {
        name: value
        for name, value in (
            ('currency', currency),
            ('dark_mode', dark_mode),
            ('date_format', date_format),
            ('language', language),
        )
        if value is not None
    }
    if reset:
        store.reset()
    if changes:
        store.update(**changes)
    for name, value in vars(store.settings).items():
        click.echo(f"{name}: {value}")
