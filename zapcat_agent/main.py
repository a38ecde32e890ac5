import logging

import click

from .client import query
from .config import Config, DEFAULT_HOST, DEFAULT_PORT, PROTOCOL_PROPERTY
from .protocol import ProtocolVersion
from .server import Server
from .storage import platform_registry


def _parse_properties(ctx, param, values):
    properties = {}
    for value in values:
        key, sep, setting = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{value}'")
        properties[key] = setting
    return properties


@click.group()
def cli():
    pass


@cli.command()
@click.option('--host', default=DEFAULT_HOST, help='The host to bind to.')
@click.option('--port', default=DEFAULT_PORT, help='The port to listen on.')
@click.option('--protocol', type=click.Choice([v.value for v in ProtocolVersion]),
              help='Response framing, 1.4 unless set.')
@click.option('--read-timeout', type=float, default=None,
              help='Seconds to wait for a request line. Waits forever if unset.')
@click.option('-D', '--property', 'properties', multiple=True,
              metavar='KEY=VALUE', callback=_parse_properties,
              help='Set a system property, may be repeated.')
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                                case_sensitive=False))
def start_server(host, port, protocol, read_timeout, properties, log_level):
    """Starts the monitoring agent."""
    logging.basicConfig(level=log_level.upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    config = Config(properties=properties, read_timeout=read_timeout)
    if protocol is not None:
        config.set_property(PROTOCOL_PROPERTY, protocol)

    server = Server(host=host, port=port, registry=platform_registry(),
                    config=config)
    try:
        server.run()
    except KeyboardInterrupt:
        server.stop()


@cli.command(name='get')
@click.argument('host')
@click.argument('item')
@click.option('--port', default=DEFAULT_PORT, help='The agent port.')
def get_item(host, item, port):
    """Asks an agent for one item and prints the value."""
    click.echo(query(host, item, port=port))


if __name__ == '__main__':
    cli()
