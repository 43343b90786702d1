"""Console logging for the CHIP-8 machine.

``ConsoleLogger`` is the levelled logger the host driver writes load,
trace and fault lines to. ``scan_with_progress`` feeds a tqdm bar from
inside a jitted ``lax.scan`` through ``io_callback``.
"""

import sys
import time
from typing import Callable, Optional

import jax
import jax.numpy as jnp
from jax.experimental import io_callback

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET_COLOR = "\033[0m"


class ConsoleLogger:
    """Levelled console logger with optional colors and elapsed-time stamps.

    Colors are only used when the stream is a terminal.
    """

    def __init__(
        self,
        name: str = "chip8vm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        level = log_level.upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")

        self.name = name
        self.log_level = level
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = use_colors and getattr(self.stream, "isatty", lambda: False)()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def is_enabled_for(self, level: str) -> bool:
        """True if a message at ``level`` would be written."""
        return LEVELS.index(level.upper()) >= LEVELS.index(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        prefix = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        tag = f"[{level:>8s}]"
        if self.use_colors:
            tag = f"{LEVEL_COLORS[level]}{tag}{RESET_COLOR}"
        return f"{prefix}{tag}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if self.is_enabled_for(level):
            print(self._format_message(level, message), file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **kwargs,
) -> Callable:
    """Build a callback reporting scan iteration ``iter_num`` out of ``n``.

    The bar is opened on the first iteration, advanced every ``print_rate``
    iterations and closed on the last one. Only those iterations leave the
    device.
    """
    if desc is None:
        desc = f"Running ({n:,} instructions)"
    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    print_rate = max(1, min(print_rate, n))

    for kwarg in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(kwarg, None)

    bars = {}

    def _report(iter_num):
        done = int(iter_num) + 1
        if "bar" not in bars:
            bars["bar"] = tqdm(total=n, desc=desc, unit="instr", **kwargs)
            bars["done"] = 0
        bar = bars["bar"]
        bar.update(done - bars["done"])
        bars["done"] = done
        if done >= n:
            bar.close()
            bars.clear()

    def update_progress_bar(iter_num):
        is_report_step = (iter_num == 0) | ((iter_num + 1) % print_rate == 0) | (iter_num == n - 1)
        jax.lax.cond(
            is_report_step,
            lambda: io_callback(_report, None, iter_num, ordered=True),
            lambda: None,
        )

    return update_progress_bar


def scan_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorate a ``lax.scan`` body so it reports progress.

    The scanned-over ``xs`` must be (or start with) the iteration number.
    """
    update_progress_bar = build_tqdm_progress_bar(n, print_rate, desc, **tqdm_kwargs)

    def decorator(body):
        def body_with_progress(carry, x):
            iter_num = x[0] if isinstance(x, tuple) else x
            result = body(carry, x)
            update_progress_bar(jnp.asarray(iter_num))
            return result

        return body_with_progress

    return decorator
