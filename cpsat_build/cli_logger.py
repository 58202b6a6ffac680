import datetime
import sys
import time
import traceback
import os
from colorama import Fore, Style, init

# Initialize Colorama
init(autoreset=True)

LOG_DIR = os.environ.get(
    "CPSAT_BUILD_LOG_DIR",
    os.path.join(os.path.expanduser("~"), ".cpsat-build", "logs"),
)


class Logger:
    def __init__(self, log_dir=LOG_DIR):
        self.log_dir = log_dir
        self.log_file = os.path.join(
            log_dir,
            f"cpsat-build_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )

    def _get_timestamp(self):
        return datetime.datetime.now().strftime("%H:%M:%S")

    def _write_file(self, line):
        try:
            os.makedirs(self.log_dir, exist_ok=True)
            with open(self.log_file, "a") as f:
                f.write(line)
        except OSError:
            # log file is best-effort
            pass

    def _log(self, level, message, color, stream=None, prefix=""):
        # stdout carries build directives, so console logging goes to stderr
        stream = stream or sys.stderr
        timestamp = self._get_timestamp()
        print(f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {color}{prefix}{message}{Style.RESET_ALL}", file=stream)
        self._write_file(f"[{timestamp}] [{level}] {prefix}{message}\n")

    def info(self, message):
        self._log("INFO", message, Fore.CYAN)

    def success(self, message):
        self._log("SUCCESS", message, Fore.GREEN, prefix="✓ ")

    def warning(self, message):
        self._log("WARNING", message, Fore.YELLOW, prefix="⚠ ")

    def error(self, message):
        self._log("ERROR", message, Fore.RED, prefix="✖ ")

    def debug(self, message):
        if os.environ.get("CPSAT_BUILD_DEBUG"):
            self._log("DEBUG", message, Fore.WHITE + Style.DIM)
        else:
            self._write_file(f"[{self._get_timestamp()}] [DEBUG] {message}\n")

    # -------- Progress bar --------
    def progress(self, chunks, description="Downloading", total=0, bar_length=30):
        """Yield byte chunks unchanged while drawing a progress line on stderr."""
        if not total:
            for chunk in chunks:
                yield chunk
            return

        start_time = time.time()
        done = 0
        print(f"{description}...", file=sys.stderr)

        for chunk in chunks:
            yield chunk
            done += len(chunk)

            elapsed = time.time() - start_time
            percent = min(1.0, done / total)
            filled_len = int(bar_length * percent)
            bar = Fore.GREEN + "━" * filled_len + Style.RESET_ALL + "━" * (bar_length - filled_len)
            speed = done / elapsed if elapsed > 0 else 0
            sys.stderr.write(
                f"\r{percent * 100:3.0f}% | {bar} | "
                f"{format_size(done)}/{format_size(total)} • "
                f"{speed / (1024 * 1024):.1f} MB/s"
            )
            sys.stderr.flush()

        sys.stderr.write("\n")
        self._write_file(f"[{self._get_timestamp()}] [INFO] {description}: {format_size(done)}\n")

    # -------- Exception logging --------
    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        for line in traceback.format_exception(exc_type, exc_value, exc_traceback):
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", f">> {sub_line}", Fore.RED)


def format_size(num_bytes):
    if num_bytes >= 1024 * 1024 * 1024:
        return f"{num_bytes / (1024 * 1024 * 1024):.1f} GB"
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{int(num_bytes)} B"


# ---------------- Helper ----------------
logger = Logger()


def get_latest_log_file():
    """Return the path to the latest log file."""
    if not os.path.isdir(LOG_DIR):
        return None
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
