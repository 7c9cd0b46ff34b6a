# === FILE: site_audit/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for SiteAudit.

Commands:
  run       Discover pages, run the audit suites, save and e-mail the report
  suites    List registered suites in priority order
  config    Show the effective configuration

Global options:
  --config PATH       Path to the YAML/JSON config (default: configs/default.yaml)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only when omitted)
  --log-format FORMAT Log format string

Options of run:
  --suite, -s NAME    Run only this suite (repeatable)
  --suites A,B        Comma-separated suite selection
  --url URL           Override base_url from the config
  --json PATH         Also write the report JSON to PATH
  --concurrency N     Cells executed at the same time
  --notify/--no-notify  E-mail the report when an email block is configured (default: on)

Exit codes: 0 run completed, 1 configuration error or unknown suite,
2 report could not be delivered.

Example:
  site-audit --config configs/default.yaml run -s accessibility -s seo --json out/report.json
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from pydantic import ValidationError

from site_audit import __version__
from site_audit.config import AuditConfig, load_config
from site_audit.engine import run_audit
from site_audit.errors import UnknownSuiteError
from site_audit.logger import DEFAULT_FORMAT, init_logging
from site_audit.report.json_report import render_json
from site_audit.suites.registry import default_registry

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

EXIT_CONFIG_ERROR = 1
EXIT_DELIVERY_ERROR = 2


def print_error(message: str, code: int = EXIT_CONFIG_ERROR):
    click.secho(message, fg='red', err=True)
    sys.exit(code)


def _load(ctx: click.Context) -> AuditConfig:
    try:
        return load_config(ctx.obj['config_path'])
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Failed to load configuration: {e}')


def _selection(suite: Tuple[str, ...], suites: Optional[str]) -> Optional[list]:
    names = list(suite)
    if suites:
        names.extend(part.strip() for part in suites.split(',') if part.strip())
    return names or None


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAudit, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Path to the YAML/JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Log format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SiteAudit command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.option('--suite', '-s', 'suite', multiple=True, help='Run only this suite (repeatable)')
@click.option('--suites', 'suites', default=None, help='Comma-separated suite selection')
@click.option('--url', 'url', default=None, help='Override base_url from the config')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, path_type=Path),
    help='Also write the report JSON to this path'
)
@click.option('--concurrency', type=click.IntRange(min=1), default=None,
              help='Cells executed at the same time')
@click.option('--notify/--no-notify', default=True, show_default=True,
              help='E-mail the report when an email block is configured')
@click.pass_context
def run(ctx, suite, suites, url, json_output, concurrency, notify):
    """Run the audit and report the outcome."""
    cfg = _load(ctx)
    overrides = {}
    if url:
        overrides['base_url'] = url
    if concurrency:
        overrides['concurrency'] = concurrency
    if overrides:
        try:
            cfg = AuditConfig(**{**cfg.model_dump(mode='json'), **overrides})
        except ValidationError as e:
            print_error(f'Invalid option: {e}')

    selection = _selection(suite, suites)
    click.echo(f'Starting audit of {cfg.site_url}')
    try:
        outcome = asyncio.run(run_audit(cfg, selection, notify=notify))
    except UnknownSuiteError as e:
        print_error(str(e))

    report = outcome.report
    for name in report.suites:
        s = report.summary[name]
        mean = f'{s.mean_score:.1f}' if s.mean_score is not None else 'n/a'
        click.echo(f'{name.value:<14} runs={s.runs} failures={s.failures} mean={mean}')
    click.echo(f'URLs audited: {report.url_count}')

    if outcome.report_path:
        click.echo(f'JSON report: {outcome.report_path}')
    if json_output:
        try:
            click.echo(f'JSON report: {render_json(report, json_output)}')
        except OSError as e:
            print_error(f'Failed to save JSON: {e}')

    if outcome.delivery_error:
        print_error(f'Report delivery failed: {outcome.delivery_error}', EXIT_DELIVERY_ERROR)
    if outcome.delivered:
        click.echo('Report e-mailed.')


@cli.command('suites', context_settings=CONTEXT_SETTINGS)
def list_suites():
    """List registered suites in priority order."""
    for name in default_registry().names():
        click.echo(name.value)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = _load(ctx)
    data = cfg.model_dump(mode='json')
    if data.get('email') and data['email'].get('api_key'):
        data['email']['api_key'] = '***'
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
