from .command_executor import run_shell_command
from .file_manager import extract_tar_stream, extract_zip_bytes, safe_join
