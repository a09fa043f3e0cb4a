"""Console output. Progress goes to stdout, failures to stderr, both timestamped."""

from rich.console import Console
from rich.text import Text

from issueflow.errors import WorkflowError

console = Console(log_path=False, highlight=False)
err_console = Console(stderr=True, log_path=False, highlight=False)


def log(message: str) -> None:
    # markup off: messages routinely contain "[profile ...]" and branch names
    console.log(message, markup=False)


def log_error(exc: BaseException, *, traceback: bool = True) -> None:
    """Report an unhandled failure. Call from inside the ``except`` block."""
    step = f" [{exc.step}]" if isinstance(exc, WorkflowError) and exc.step else ""
    err_console.log(Text.assemble((f"✗ ERROR{step}: ", "bold red"), str(exc)))
    if traceback:
        err_console.print_exception(max_frames=10)
