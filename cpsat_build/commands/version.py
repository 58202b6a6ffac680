import importlib.metadata

import click

from .. import __version__
from ..cli_logger import logger


@click.command()
def version():
    """Print the version of cpsat-build."""
    try:
        ver = importlib.metadata.version("cpsat-build")
    except importlib.metadata.PackageNotFoundError:
        logger.warning("cpsat-build is not installed as a distribution; reporting the source version.")
        ver = __version__
    click.echo(f"cpsat-build {ver}")
