import os

from .cli_logger import logger
from .errors import SchemaCompilationFailed
from .utils.command_executor import run_shell_command


def schema_command(settings, out_dir, root="."):
    command = [settings.schema_compiler]
    for include in settings.proto_includes:
        command.append(f"--proto_path={os.path.join(root, include)}")
    command.append(f"{settings.schema_out_flag}={out_dir}")
    command.extend(os.path.join(root, proto) for proto in settings.protos)
    return command


def compile_schemas(settings, out_dir, root="."):
    """Generate the model data types from the .proto files into ``out_dir``."""
    if not settings.protos:
        logger.info("No schema files configured; skipping schema compilation.")
        return None
    os.makedirs(out_dir, exist_ok=True)
    command = schema_command(settings, out_dir, root)
    logger.info(f"Compiling {len(settings.protos)} schema files with {settings.schema_compiler}")
    stdout, stderr, returncode = run_shell_command(command, cwd=root)
    if returncode != 0:
        if stderr:
            logger.error(f"Stderr:\n{stderr}")
        raise SchemaCompilationFailed(
            f"{settings.schema_compiler} exited with code {returncode}",
            command=command,
            stderr=stderr,
        )
    logger.success(f"Schema types generated in {out_dir}")
    return out_dir
