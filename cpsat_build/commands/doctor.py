import os
import shutil

import click

from .. import config as config_module
from ..cli_logger import logger
from ..emitter import archiver_for, compiler_for
from ..environment import EnvSnapshot, probe_os
from ..errors import BuildError
from ..platform_resolver import resolve_platform


@click.command()
@click.pass_context
def doctor(ctx):
    """Check that the toolchain and environment are ready for a build."""
    logger.info("Running environment check...")
    env = EnvSnapshot.from_environ()
    all_ok = True

    try:
        settings = config_module.load_settings(path=ctx.obj["path"])
    except BuildError as e:
        logger.error(e.format_message())
        raise click.exceptions.Exit(1)

    try:
        identifiers = resolve_platform(env.target, probe_os())
        logger.success(f"Target {env.target} maps to OR-Tools platform {identifiers.dir_form}")
    except BuildError as e:
        logger.warning(e.format_message())
        all_ok = False

    for role, tool in (("C++ compiler", compiler_for(env)), ("archiver", archiver_for(env)),
                       ("schema compiler", settings.schema_compiler)):
        if shutil.which(tool):
            logger.success(f"{role} found: {tool}")
        else:
            logger.warning(f"{role} '{tool}' not found on PATH.")
            all_ok = False

    shim_source = os.path.join(ctx.obj["path"], settings.shim_source)
    if not os.path.isfile(shim_source):
        logger.warning(f"Shim source {shim_source} does not exist.")
        all_ok = False

    if env.ortools_prefix:
        for sub in ("include", "lib"):
            path = os.path.join(env.ortools_prefix, sub)
            if not os.path.isdir(path):
                logger.warning(f"ORTOOLS_PREFIX has no {sub}/ directory: {path}")
                all_ok = False
    else:
        logger.info("ORTOOLS_PREFIX not set; builds will download a prebuilt release.")

    if all_ok:
        logger.success("Environment is ready to build.")
    else:
        logger.error("Environment check found issues. Please review the warnings above.")
        raise click.exceptions.Exit(1)
