import dataclasses

import click

from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_build_errors
from ..environment import EnvSnapshot, probe_os
from ..pipeline import run_build


@click.command()
@click.pass_context
@click.option("--target", default=None, help="Target triple (defaults to $TARGET, then the host).")
@click.option("--out-dir", default=None, help="Scratch/output directory (defaults to $OUT_DIR).")
@click.option("--force-download", is_flag=True, help="Download OR-Tools even if ORTOOLS_PREFIX is set.")
@handle_build_errors
def build(ctx, target, out_dir, force_download):
    """Generate schema types, resolve OR-Tools, compile the shim and print link directives."""
    env = EnvSnapshot.from_environ(target=target, out_dir=out_dir)
    if force_download:
        env = dataclasses.replace(env, force_download=True)
    settings = config_module.load_settings(path=ctx.obj["path"])

    logger.info(f"Building the CP-SAT native layer for {env.target} in {env.out_dir}")
    outcome = run_build(env, probe_os(), settings, root=ctx.obj["path"])
    if outcome is None:
        logger.success("Schema types generated; native build skipped.")
    else:
        logger.success(
            f"Native build finished: {len(outcome.directives.libraries)} OR-Tools libraries, "
            f"shim archive {outcome.shim.path}"
        )
