"""Capture of the process environment and host OS at the pipeline boundary.

Everything downstream receives these frozen values instead of reading
``os.environ`` or probing the system itself.
"""
import os
import platform
from dataclasses import dataclass
from typing import Optional, Tuple

from packaging.version import InvalidVersion, parse as parse_version

from .cli_logger import logger

FORCE_DOWNLOAD_VARS = ("ORTOOLS_FORCE_DOWNLOAD", "CARGO_FEATURE_BUILD_FORCE")

# Environment variables a surrounding build system should watch.
WATCHED_VARS = ("ORTOOLS_PREFIX", "DOCS_RS", "CXX", "AR", "CXXFLAGS") + FORCE_DOWNLOAD_VARS


@dataclass(frozen=True)
class EnvSnapshot:
    target: str
    out_dir: str
    ortools_prefix: Optional[str] = None
    docs_rs: bool = False
    force_download: bool = False
    cxx: Optional[str] = None
    ar: Optional[str] = None
    cxxflags: Tuple[str, ...] = ()

    @classmethod
    def from_environ(cls, environ=None, target=None, out_dir=None):
        environ = os.environ if environ is None else environ
        return cls(
            target=target or environ.get("TARGET") or host_target(),
            out_dir=out_dir or environ.get("OUT_DIR") or os.path.join(os.getcwd(), "target", "cpsat-build"),
            ortools_prefix=environ.get("ORTOOLS_PREFIX") or None,
            docs_rs="DOCS_RS" in environ,
            force_download=any(_truthy(environ.get(name)) for name in FORCE_DOWNLOAD_VARS),
            cxx=environ.get("CXX") or None,
            ar=environ.get("AR") or None,
            cxxflags=tuple(environ.get("CXXFLAGS", "").split()),
        )


@dataclass(frozen=True)
class OsProbeResult:
    distribution: Optional[str] = None
    version: Optional[Tuple[int, int]] = None

    def describe(self):
        if not self.distribution:
            return "unknown distribution"
        if self.version is None:
            return self.distribution
        return f"{self.distribution} {self.version[0]}.{self.version[1]:02d}"


def _truthy(value):
    return value is not None and value.strip().lower() not in ("", "0", "false", "no", "off")


def parse_os_version(version_id):
    """Turn an os-release ``VERSION_ID`` such as ``22.04`` or ``12`` into ``(major, minor)``."""
    try:
        release = parse_version(version_id).release
    except InvalidVersion:
        return None
    major = release[0]
    minor = release[1] if len(release) > 1 else 0
    return major, minor


def probe_os():
    """Read the running system's distribution id and version from os-release."""
    if platform.system() != "Linux":
        return OsProbeResult()
    try:
        info = platform.freedesktop_os_release()
    except OSError as e:
        logger.warning(f"Could not read os-release: {e}")
        return OsProbeResult()
    distribution = info.get("ID", "").lower() or None
    version = parse_os_version(info.get("VERSION_ID", ""))
    logger.debug(f"Detected host OS: {distribution} {info.get('VERSION_ID', '')}")
    return OsProbeResult(distribution=distribution, version=version)


def host_target():
    """Best-effort target triple for the interpreter's own platform."""
    machine = platform.machine().lower()
    arch = {"amd64": "x86_64", "x64": "x86_64", "arm64": "aarch64"}.get(machine, machine)
    system = platform.system()
    if system == "Windows":
        return f"{arch}-pc-windows-msvc"
    if system == "Darwin":
        return f"{arch}-apple-darwin"
    if system == "Linux":
        return f"{arch}-unknown-linux-gnu"
    return f"{arch}-unknown-{system.lower()}"
