import os
from dataclasses import dataclass, field

import click

from .cli_logger import logger
from .environment import WATCHED_VARS
from .errors import CompilationFailed, LinkEmissionFailed
from .platform_resolver import is_macos, is_msvc, is_windows
from .utils.command_executor import run_shell_command

# Library the shared-artifact fallback prefers when several are present.
PRIMARY_LIBRARY = "ortools"


@dataclass(frozen=True)
class ShimArchive:
    path: str
    name: str


@dataclass
class LinkDirectives:
    search_path: str
    libraries: dict = field(default_factory=dict)  # name -> "static" | "dylib"

    def lines(self):
        out = [f"cargo:rustc-link-search=native={self.search_path}"]
        for name in sorted(self.libraries):
            out.append(f"cargo:rustc-link-lib={self.libraries[name]}={name}")
        return out


# -------------------- Compilation --------------------

def std_flag(env, std="c++20"):
    if is_msvc(env.target):
        return f"/std:{std}"
    return f"-std={std}"


def compiler_for(env):
    return env.cxx or ("cl.exe" if is_msvc(env.target) else "c++")


def archiver_for(env):
    return env.ar or ("lib.exe" if is_msvc(env.target) else "ar")


def _run_step(step, command, cwd):
    logger.info(f"  - {step}: {' '.join(command)}")
    stdout, stderr, returncode = run_shell_command(command, cwd=cwd)
    if returncode != 0:
        if stdout:
            logger.error(f"Stdout:\n{stdout}")
        if stderr:
            logger.error(f"Stderr:\n{stderr}")
        raise CompilationFailed(
            f"{step} failed with exit code {returncode}; check that the OR-Tools headers match the expected release",
            command=command,
            stderr=stderr,
        )


def compile_shim(env, settings, library, root="."):
    """Compile the interop shim against ``library/include`` into a static archive."""
    msvc = is_msvc(env.target)
    source = os.path.abspath(os.path.join(root, settings.shim_source))
    include_dir = os.path.join(library, "include")
    build_dir = os.path.join(env.out_dir, "shim")
    os.makedirs(build_dir, exist_ok=True)

    name = settings.shim_library
    flag = std_flag(env, settings.cxx_std)
    if msvc:
        obj = os.path.join(build_dir, f"{name}.obj")
        compile_cmd = [compiler_for(env), "/nologo", "/EHsc", "/MD", flag, f"/I{include_dir}",
                       *env.cxxflags, "/c", source, f"/Fo{obj}"]
    else:
        obj = os.path.join(build_dir, f"{name}.o")
        compile_cmd = [compiler_for(env), flag, "-O2"]
        if not is_windows(env.target):
            compile_cmd.append("-fPIC")
        compile_cmd += [f"-I{include_dir}", *env.cxxflags, "-c", source, "-o", obj]

    logger.info(f"Compiling {settings.shim_source} against {include_dir}")
    _run_step("compile", compile_cmd, build_dir)

    if msvc:
        archive = os.path.join(env.out_dir, f"{name}.lib")
        archive_cmd = [archiver_for(env), "/nologo", f"/OUT:{archive}", obj]
    else:
        archive = os.path.join(env.out_dir, f"lib{name}.a")
        archive_cmd = [archiver_for(env), "crs", archive, obj]
    if os.path.exists(archive):
        os.remove(archive)
    _run_step("archive", archive_cmd, build_dir)

    logger.success(f"Built {archive}")
    return ShimArchive(path=archive, name=name)


# -------------------- Link directives --------------------

def library_name(file_name, windows):
    """Link name for a library file: drop only the final extension, and ``lib`` off-Windows."""
    stem, _ = os.path.splitext(file_name)
    if not windows and stem.startswith("lib") and len(stem) > 3:
        stem = stem[3:]
    return stem


def _shared_suffix(target):
    if is_windows(target):
        return ".dll"
    if is_macos(target):
        return ".dylib"
    return ".so"


def collect_link_directives(library, target):
    """Scan ``library/lib`` and build one directive per static or import library."""
    windows = is_windows(target)
    lib_dir = os.path.join(library, "lib")
    try:
        entries = sorted(os.listdir(lib_dir))
    except OSError as e:
        raise LinkEmissionFailed(f"cannot read the OR-Tools library directory: {e.strerror or e}", path=lib_dir)

    static_suffix = ".lib" if windows else ".a"
    directives = LinkDirectives(search_path=lib_dir)
    for entry in entries:
        if os.path.splitext(entry)[1].lower() != static_suffix:
            continue
        if not os.path.isfile(os.path.join(lib_dir, entry)):
            continue
        name = library_name(entry, windows)
        kind = "static"
        if windows and _has_dll(library, name):
            kind = "dylib"
        directives.libraries[name] = kind

    if not directives.libraries:
        shared = _select_shared_library(lib_dir, entries, target)
        if shared:
            directives.libraries[shared] = "dylib"

    if not directives.libraries:
        raise LinkEmissionFailed(
            "no static, import or shared libraries found; the OR-Tools installation looks incomplete",
            path=lib_dir,
        )
    logger.info(f"Linking against {len(directives.libraries)} libraries from {lib_dir}")
    return directives


def _has_dll(library, name):
    dll = f"{name}.dll"
    return any(os.path.isfile(os.path.join(library, d, dll)) for d in ("bin", "lib"))


def _select_shared_library(lib_dir, entries, target):
    suffix = _shared_suffix(target)
    windows = is_windows(target)
    candidates = sorted({
        library_name(entry, windows)
        for entry in entries
        if entry.endswith(suffix) and os.path.exists(os.path.join(lib_dir, entry))
    })
    if not candidates:
        return None
    if PRIMARY_LIBRARY in candidates:
        return PRIMARY_LIBRARY
    if len(candidates) == 1:
        return candidates[0]
    raise LinkEmissionFailed(
        f"several shared libraries and no {PRIMARY_LIBRARY} among them: {', '.join(candidates)}",
        path=lib_dir,
    )


def render_directives(directives, shim=None, watched_files=()):
    lines = []
    if shim is not None:
        lines.append(f"cargo:rustc-link-search=native={os.path.dirname(shim.path)}")
        lines.append(f"cargo:rustc-link-lib=static={shim.name}")
    lines.extend(directives.lines())
    lines.extend(f"cargo:rerun-if-env-changed={name}" for name in WATCHED_VARS)
    lines.extend(f"cargo:rerun-if-changed={path}" for path in watched_files)
    return lines


def emit_directives(lines, stream=None):
    for line in lines:
        click.echo(line, file=stream)
