import click
from .commands import build, clean, config, doctor, log, resolve, version


@click.group()
@click.option("--path", "-p", default=".", help="Path to the binding's project directory.")
@click.pass_context
def cli(ctx, path):
    """cpsat-build: OR-Tools resolver and native build helper."""
    ctx.obj = {"path": path}


cli.add_command(build)
cli.add_command(resolve)
cli.add_command(doctor)
cli.add_command(config)
cli.add_command(clean)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
