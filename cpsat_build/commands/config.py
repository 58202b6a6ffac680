import json
import os

import click

from .. import config as config_module
from ..cli_logger import logger
from ..errors import BuildError


def _load(ctx):
    try:
        return config_module.load_config(path=ctx.obj["path"])
    except BuildError as e:
        logger.error(e.format_message())
        raise click.exceptions.Exit(1)


def _config_path(ctx):
    return os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the cpsat-build.toml configuration file."""
    pass


@config.command()
@click.pass_context
def view(ctx):
    """Print cpsat-build.toml as written."""
    config_file_path = _config_path(ctx)
    if not os.path.exists(config_file_path):
        logger.error(f"Error: No {config_module.CONFIG_FILE} found; built-in defaults are in use.")
        return
    with open(config_file_path, 'r') as f:
        click.echo(f.read())


@config.command(name="list")
@click.option("--effective", is_flag=True, help="Show the configuration merged with built-in defaults.")
@click.pass_context
def list_values(ctx, effective):
    """List all configuration keys and values."""
    conf = _load(ctx)
    if effective:
        conf = config_module.merge_config(config_module.DEFAULT_CONFIG, conf)
    click.echo(json.dumps(conf, indent=4))


@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value, falling back to the built-in default."""
    conf = config_module.merge_config(config_module.DEFAULT_CONFIG, _load(ctx))
    value = conf
    try:
        for k in key.split('.'):
            value = value[k]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in {config_module.CONFIG_FILE}")
        raise click.exceptions.Exit(1)
    click.echo(value)


@config.command(name="set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set a value in cpsat-build.toml, creating the file if needed."""
    conf = _load(ctx)
    keys = key.split('.')
    d = conf
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = value

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to '{value}'")


@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a key from cpsat-build.toml so its default applies again."""
    conf = _load(ctx)
    keys = key.split('.')
    d = conf
    try:
        for k in keys[:-1]:
            d = d[k]
        del d[keys[-1]]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in {config_module.CONFIG_FILE}")
        raise click.exceptions.Exit(1)
    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Unset '{key}'")
