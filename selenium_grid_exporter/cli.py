"""
Command line entry point.
"""
import json

import click

from .collector import GridCollector
from .config import ExporterConfig, EXPORTER_VERSION
from .errors import ConfigError
from .logger import configure_logging
from .schema import SCHEMAS
from .server import ExporterServer


_OPTIONS = [
    click.option('--listen-address', default=None,
                 help='Address on which to expose metrics. [default: :8080]'),
    click.option('--telemetry-path', default=None,
                 help='Path under which to expose metrics. [default: /metrics]'),
    click.option('--scrape-uri', default=None,
                 help='URI on which to scrape Selenium Grid. [default: http://grid.local]'),
    click.option('--grid-schema', default=None, type=click.Choice(sorted(SCHEMAS)),
                 help='Hub API variant to query. [default: graphql]'),
    click.option('--timeout', default=None, type=float,
                 help='Timeout in seconds for requests to the hub. [default: 3]'),
    click.option('--log-level', default=None,
                 type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                                   case_sensitive=False),
                 help='Log level. [default: INFO]'),
]


def exporter_options(func):
    """Options shared by every command. Unset options fall back to the environment."""
    for option in reversed(_OPTIONS):
        func = option(func)
    return func


def _build_config(options) -> ExporterConfig:
    try:
        # environment first, then every flag given on the command line
        config = ExporterConfig()
        for name, value in options.items():
            if value is not None:
                setattr(config, name, value)
        return config.validate()
    except ConfigError as e:
        raise click.UsageError(str(e)) from e


@click.group(invoke_without_command=True)
@click.version_option(EXPORTER_VERSION, prog_name='selenium_grid_exporter')
@click.pass_context
def main(ctx):
    """Prometheus exporter for Selenium Grid hub slot and session counters."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@main.command()
@exporter_options
def serve(**options):
    """Serve metrics over HTTP, scraping the hub on every request."""
    config = _build_config(options)
    logger = configure_logging(config)
    logger.log_startup(listen_address=config.listen_address,
                       telemetry_path=config.telemetry_path)

    collector = GridCollector(config, logger=logger)
    server = ExporterServer(config, collector)
    try:
        server.bind()
    except OSError as e:
        logger.critical("Failed to listen", listen_address=config.listen_address, error=str(e))
        collector.close()
        raise SystemExit(1)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.stop()
        collector.close()


@main.command()
@exporter_options
@click.pass_context
def probe(ctx, **options):
    """Scrape the hub once and print the gauge values as JSON."""
    config = _build_config(options)
    logger = configure_logging(config)

    collector = GridCollector(config, logger=logger)
    try:
        values = collector.scrape()
    finally:
        collector.close()

    click.echo(json.dumps(values, sort_keys=True))
    ctx.exit(0 if values['up'] == 1 else 1)


if __name__ == '__main__':
    main()
