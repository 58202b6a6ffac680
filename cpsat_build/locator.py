import os
from dataclasses import dataclass

from .acquirer import acquire_archive
from .cli_logger import logger
from .errors import InvalidConfiguration
from .platform_resolver import is_windows


@dataclass(frozen=True)
class ResolvedLibrary:
    """An OR-Tools installation root holding ``include/`` and ``lib/``."""

    path: str
    downloaded: bool

    @property
    def include_dir(self):
        return os.path.join(self.path, "include")

    @property
    def lib_dir(self):
        return os.path.join(self.path, "lib")


def locate_library(env, identifiers, settings, acquire=acquire_archive):
    """Return the OR-Tools installation to build against.

    A user override (``ORTOOLS_PREFIX``) is used as-is when it is a
    directory; a broken override is an error, never a reason to download.
    ``force_download`` ignores the override and always fetches.
    """
    if env.force_download:
        if env.ortools_prefix:
            logger.warning(f"Forced download requested; ignoring ORTOOLS_PREFIX={env.ortools_prefix}")
        return _acquire(env, identifiers, settings, acquire)

    if env.ortools_prefix:
        prefix = env.ortools_prefix
        if not os.path.isdir(prefix):
            raise InvalidConfiguration(
                "ORTOOLS_PREFIX is set but does not name an existing directory",
                path=prefix,
            )
        logger.info(f"Using OR-Tools installation from ORTOOLS_PREFIX: {prefix}")
        return ResolvedLibrary(path=prefix, downloaded=False)

    logger.info("ORTOOLS_PREFIX not set; fetching a prebuilt OR-Tools release")
    return _acquire(env, identifiers, settings, acquire)


def _acquire(env, identifiers, settings, acquire):
    path = acquire(settings, identifiers, env.out_dir, is_windows(env.target))
    return ResolvedLibrary(path=path, downloaded=True)
