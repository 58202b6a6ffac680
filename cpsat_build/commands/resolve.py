import os

import click

from .. import config as config_module
from ..acquirer import expected_dir_name, release_url
from ..decorators import handle_build_errors
from ..environment import EnvSnapshot, probe_os
from ..platform_resolver import is_windows, resolve_platform


@click.command()
@click.pass_context
@click.option("--target", default=None, help="Target triple (defaults to $TARGET, then the host).")
@handle_build_errors
def resolve(ctx, target):
    """Show which OR-Tools archive a build would use, without downloading it."""
    env = EnvSnapshot.from_environ(target=target)
    settings = config_module.load_settings(path=ctx.obj["path"])
    identifiers = resolve_platform(env.target, probe_os())

    click.echo(f"target:      {env.target}")
    click.echo(f"url form:    {identifiers.url_form}")
    click.echo(f"dir form:    {identifiers.dir_form}")
    click.echo(f"archive:     {release_url(settings, identifiers, is_windows(env.target))}")
    click.echo(f"unpacks to:  {os.path.join(env.out_dir, expected_dir_name(settings, identifiers))}")
    if env.ortools_prefix and not env.force_download:
        click.echo(f"override:    {env.ortools_prefix}")
