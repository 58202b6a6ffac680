import os
import shutil

import click

from ..cli_logger import logger
from ..environment import EnvSnapshot


@click.command()
@click.option("--out-dir", default=None, help="Scratch/output directory (defaults to $OUT_DIR).")
def clean(out_dir):
    """Remove the scratch directory holding downloads and compiled artifacts."""
    env = EnvSnapshot.from_environ(out_dir=out_dir)
    if not os.path.exists(env.out_dir):
        logger.info(f"Nothing to clean; {env.out_dir} does not exist.")
        return
    try:
        shutil.rmtree(env.out_dir)
    except OSError as e:
        logger.error(f"Error removing {env.out_dir}: {e}")
        raise click.exceptions.Exit(1)
    logger.success(f"Removed {env.out_dir}")
