from dataclasses import dataclass

from .cli_logger import logger
from .errors import UnsupportedPlatform

WINDOWS_MSVC = "x86_64-pc-windows-msvc"
LINUX_X86_64 = "x86_64-unknown-linux-gnu"
LINUX_AARCH64 = "aarch64-unknown-linux-gnu"
MACOS_ARM64 = "aarch64-apple-darwin"
MACOS_X86_64 = "x86_64-apple-darwin"


@dataclass(frozen=True)
class PlatformIdentifiers:
    url_form: str  # token in the release asset file name
    dir_form: str  # token in the directory the archive unpacks to


# Targets with exactly one prebuilt archive.
FIXED_PLATFORMS = {
    WINDOWS_MSVC: PlatformIdentifiers("x64_VisualStudio2022", "x64_VisualStudio2022"),
    LINUX_AARCH64: PlatformIdentifiers("aarch64_debian-12", "aarch64_Debian-12"),
    MACOS_ARM64: PlatformIdentifiers("arm64_macOS-15.3", "arm64_macOS-15.3"),
    MACOS_X86_64: PlatformIdentifiers("x86_64_macOS-15.3", "x86_64_macOS-15.3"),
}

ANY_MINOR = None

# x86_64 Linux ships one archive per distribution release. Keys are
# (major, minor); ANY_MINOR matches every minor of that major. The first
# entry of each table is the lowest supported release.
DISTRIBUTIONS = {
    "ubuntu": ("Ubuntu", {(22, 4): "22.04", (24, 4): "24.04"}),
    "debian": ("Debian", {(11, ANY_MINOR): "11", (12, ANY_MINOR): "12"}),
    "fedora": ("Fedora", {(40, ANY_MINOR): "40", (41, ANY_MINOR): "41"}),
}


def supported_targets():
    return sorted(list(FIXED_PLATFORMS) + [LINUX_X86_64])


def is_windows(target):
    return "-windows-" in target


def is_msvc(target):
    return is_windows(target) and target.endswith("-msvc")


def is_macos(target):
    return target.endswith("-apple-darwin")


def resolve_platform(target, probe):
    """Map a target triple (and, for x86_64 Linux, the probed OS) to its identifiers."""
    if target in FIXED_PLATFORMS:
        return FIXED_PLATFORMS[target]
    if target == LINUX_X86_64:
        return _resolve_linux_distribution(probe)
    raise UnsupportedPlatform(
        f"no prebuilt OR-Tools archive for target '{target}'; supported targets: {', '.join(supported_targets())}",
        platform=target,
    )


def select_distribution_release(distribution, version):
    """Pick the release label for ``distribution`` at ``version``.

    Returns ``(label, exact)``. ``exact`` is False when the lowest supported
    release was chosen because ``version`` is not in the table.
    """
    _, releases = DISTRIBUTIONS[distribution]
    if version is not None:
        major, minor = version
        if (major, minor) in releases:
            return releases[(major, minor)], True
        if (major, ANY_MINOR) in releases:
            return releases[(major, ANY_MINOR)], True
    lowest = next(iter(releases.values()))
    return lowest, False


def _resolve_linux_distribution(probe):
    if probe.distribution not in DISTRIBUTIONS:
        raise UnsupportedPlatform(
            f"no prebuilt OR-Tools archive for {probe.describe()} on {LINUX_X86_64}; "
            f"supported distributions: {', '.join(sorted(DISTRIBUTIONS))}",
            platform=probe.distribution or "unknown",
        )
    label, exact = select_distribution_release(probe.distribution, probe.version)
    if not exact:
        # Forward-compatibility fallback: newer or unlisted releases use the
        # oldest archive, which is built against the oldest glibc.
        logger.warning(
            f"{probe.describe()} is not a listed release; falling back to the lowest supported "
            f"archive ({probe.distribution}-{label})"
        )
    display_name, _ = DISTRIBUTIONS[probe.distribution]
    return PlatformIdentifiers(
        url_form=f"amd64_{probe.distribution}-{label}",
        dir_form=f"x86_64_{display_name}-{label}",
    )
