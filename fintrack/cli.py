# fintrack/cli.py
import logging
import os
from datetime import timedelta

import click
from dotenv import load_dotenv

from fintrack.config import load_config
from fintrack.core.dates import add_months, to_day
from fintrack.core.models import TRANSACTION_TYPES
from fintrack.database import (
    append_transactions,
    delete_rule,
    delete_transaction,
    fetch_rules,
    fetch_transactions,
    overview_metrics,
    reconcile,
    save_rules,
    set_rule_active,
    summarize_by_category,
    summarize_by_period,
)
from fintrack.manual import load_manual_transactions
from fintrack.outputs import get_output
from fintrack.recurring import next_occurrence
from fintrack.rules import load_rules
from fintrack.utils import dedupe_transactions, filter_transactions_by_month


def _parse_day(_ctx, _param, value):
    if value is None:
        return None
    try:
        return to_day(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a YYYY-MM-DD date") from None


def _parse_month(_ctx, _param, value):
    if value is None:
        return None
    try:
        return to_day(f"{value}-01")
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a YYYY-MM month") from None


def _format_tx(tx):
    sign = '+' if tx.type == 'income' else '-'
    return f"{tx.date.isoformat()}  {sign}{tx.amount:.2f}  {tx.category}  {tx.description}"


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used when it does not exist)'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database holding rules and transactions'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file (FINTRACK_DB, FINTRACK_LOG_LEVEL)'
)
@click.pass_context
def main(ctx, config_path, db_path, env_file):
    """
    Track income and expenses, and materialize recurring rules into
    concrete transactions up to today.
    """
    if env_file:
        load_dotenv(env_file)
    logging.basicConfig(level=os.getenv("FINTRACK_LOG_LEVEL", "WARNING").upper())

    cfg = load_config(config_path)
    ctx.obj = {
        'config': cfg,
        'db_path': db_path or cfg['db_path'],
    }


@main.command()
@click.option(
    '--today', default=None, callback=_parse_day,
    help='Reference date for catch-up (default: the current day)'
)
@click.option(
    '--dry-run', is_flag=True, default=False,
    help='Show what would be generated without storing anything'
)
@click.pass_obj
def generate(obj, today, dry_run):
    """Generate every recurring transaction that is due and missing."""
    result = reconcile(obj['db_path'], today=today, dry_run=dry_run)
    for tx in result.transactions:
        click.echo(_format_tx(tx))
    verb = 'Would generate' if dry_run else 'Generated'
    click.echo(f"{verb} {len(result.transactions)} transaction(s).")


@main.command('import-rules')
@click.argument('rules_file', required=False, type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_rules(obj, rules_file):
    """Load recurring rules from a YAML file into the database."""
    path = rules_file or obj['config'].get('rules_file')
    if not path or not os.path.exists(path):
        raise click.ClickException("No rules file given and none configured.")
    try:
        rules = load_rules(path)
    except ValueError as e:
        raise click.ClickException(f"Error loading recurring rules: {e}")
    save_rules(rules, obj['db_path'])
    click.echo(f"Imported {len(rules)} recurring rule(s) into {obj['db_path']}.")


@main.command()
@click.argument('manual_file', required=False, type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def add(obj, manual_file):
    """Import one-off transactions from a YAML file."""
    path = manual_file or obj['config'].get('manual_transactions_file')
    if not path:
        raise click.ClickException("No manual transactions file given and none configured.")
    try:
        txs = dedupe_transactions(load_manual_transactions(path))
    except ValueError as e:
        raise click.ClickException(f"Error loading manual transactions: {e}")
    inserted = append_transactions(txs, obj['db_path'])
    click.echo(f"Stored {inserted} of {len(txs)} transaction(s) in {obj['db_path']}.")


@main.command('rules')
@click.pass_obj
def list_rules(obj):
    """List recurring rules with their status and next due date."""
    rules = fetch_rules(obj['db_path'])
    if not rules:
        click.echo("No recurring rules.")
        return
    for rule in rules:
        status = 'active' if rule.is_active else 'paused'
        nxt = next_occurrence(rule)
        click.echo(
            f"{rule.id}  {rule.type}  {rule.amount:.2f}  {rule.frequency}  "
            f"{rule.description}  [{status}]  next: {nxt.isoformat() if nxt else 'ended'}"
        )


def _set_active(obj, rule_id, is_active):
    if not set_rule_active(obj['db_path'], rule_id, is_active):
        raise click.ClickException(f"Unknown recurring rule '{rule_id}'.")
    click.echo(f"Rule {rule_id} {'resumed' if is_active else 'paused'}.")


@main.command()
@click.argument('rule_id')
@click.pass_obj
def pause(obj, rule_id):
    """Stop a rule from generating transactions."""
    _set_active(obj, rule_id, False)


@main.command()
@click.argument('rule_id')
@click.pass_obj
def resume(obj, rule_id):
    """Let a paused rule catch up again on the next generate."""
    _set_active(obj, rule_id, True)


@main.command('delete-rule')
@click.argument('rule_id')
@click.pass_obj
def delete_rule_cmd(obj, rule_id):
    """Delete a rule and every transaction it generated."""
    try:
        removed = delete_rule(obj['db_path'], rule_id)
    except KeyError:
        raise click.ClickException(f"Unknown recurring rule '{rule_id}'.")
    click.echo(f"Deleted rule {rule_id} and {removed} generated transaction(s).")


def _month_bounds(month):
    if month is None:
        return None, None
    return month, add_months(month, 1) - timedelta(days=1)


@main.command('list')
@click.option(
    '--type', 'type_',
    default=None,
    type=click.Choice(TRANSACTION_TYPES),
    help='Only income or only expense transactions'
)
@click.option('--category', default=None, help='Only transactions in this category')
@click.option('--month', default=None, callback=_parse_month, help='Restrict to a YYYY-MM month')
@click.pass_obj
def list_transactions(obj, type_, category, month):
    """List stored transactions, oldest first."""
    start, end = _month_bounds(month)
    txs = fetch_transactions(obj['db_path'], start, end, category=category, type_=type_)
    if not txs:
        click.echo("No transactions.")
        return
    for tx in txs:
        click.echo(f"{tx.id}  {_format_tx(tx)}")


@main.command('delete')
@click.argument('tx_id')
@click.pass_obj
def delete_transaction_cmd(obj, tx_id):
    """Delete a single transaction."""
    if not delete_transaction(obj['db_path'], tx_id):
        raise click.ClickException(f"Unknown transaction '{tx_id}'.")
    click.echo(f"Deleted transaction {tx_id}.")


@main.command()
@click.option('--month', default=None, callback=_parse_month, help='Restrict to a YYYY-MM month')
@click.option(
    '--by', 'period',
    default=None,
    type=click.Choice(['month', 'year']),
    help='Break the totals down by month or year instead of by category'
)
@click.pass_obj
def summary(obj, month, period):
    """Show income, expenses, balance and per-category or per-period totals."""
    start, end = _month_bounds(month)

    overview = overview_metrics(obj['db_path'], start, end)
    click.echo(f"Income:   {overview['income']:.2f}")
    click.echo(f"Expenses: {overview['expenses']:.2f}")
    click.echo(f"Balance:  {overview['balance']:.2f}")
    if period:
        for row in summarize_by_period(obj['db_path'], period, start, end):
            click.echo(
                f"  {row['period']:<10}{row['income']:>12.2f}{row['expenses']:>12.2f}"
                f"{row['balance']:>12.2f}"
            )
        return
    for row in summarize_by_category(obj['db_path'], start, end):
        click.echo(f"  {row['type']:<8}{row['category']:<24}{row['total']:>10.2f}")


@main.command()
@click.option(
    '--output', 'output_format',
    default='csv',
    help='Output module name from config output_modules'
)
@click.option('--month', default=None, callback=_parse_month, help='Only export a YYYY-MM month')
@click.pass_obj
def export(obj, output_format, month):
    """Export stored transactions."""
    cfg = obj['config']
    if output_format not in cfg['output_modules']:
        raise click.ClickException(f"Unknown output '{output_format}'.")
    txs = fetch_transactions(obj['db_path'])
    if month:
        txs = filter_transactions_by_month(txs, month.strftime('%Y-%m'))
    outputter = get_output(output_format, cfg)
    location = outputter.append(txs)
    click.echo(f"Exported {len(txs)} transaction(s) to {location or output_format.upper()}.")
