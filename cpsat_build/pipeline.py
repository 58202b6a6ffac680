"""The per-build pipeline: schema types, then resolve, compile and link."""
import os
from dataclasses import dataclass

from .acquirer import acquire_archive
from .cli_logger import logger
from .emitter import collect_link_directives, compile_shim, emit_directives, render_directives
from .locator import locate_library
from .platform_resolver import resolve_platform
from .schema import compile_schemas


@dataclass(frozen=True)
class BuildOutcome:
    identifiers: object
    library: object
    shim: object
    directives: object
    lines: tuple


def resolve_library(env, probe, settings, acquire=acquire_archive):
    """Resolve the target platform and locate (or fetch) the matching installation.

    Reads nothing from the process: the environment and the OS probe come
    in as values.
    """
    identifiers = resolve_platform(env.target, probe)
    logger.info(f"Target {env.target} -> OR-Tools platform {identifiers.dir_form}")
    library = locate_library(env, identifiers, settings, acquire=acquire)
    return identifiers, library


def run_build(env, probe, settings, root=".", stream=None, acquire=acquire_archive):
    compile_schemas(settings, os.path.join(env.out_dir, "schema"), root)

    if env.docs_rs:
        logger.info("DOCS_RS is set; skipping OR-Tools download, shim compilation and linking.")
        return None

    identifiers, library = resolve_library(env, probe, settings, acquire=acquire)
    shim = compile_shim(env, settings, library.path, root)
    directives = collect_link_directives(library.path, env.target)

    watched = [os.path.join(root, settings.shim_source)]
    watched += [os.path.join(root, proto) for proto in settings.protos]
    lines = render_directives(directives, shim=shim, watched_files=watched)
    emit_directives(lines, stream=stream)

    return BuildOutcome(
        identifiers=identifiers,
        library=library,
        shim=shim,
        directives=directives,
        lines=tuple(lines),
    )
