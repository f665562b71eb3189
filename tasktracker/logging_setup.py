import logging
import sys
from pathlib import Path
from typing import Optional, Union


def setup_logging(level: Union[int, str] = logging.INFO, log_dir: Optional[Union[str, Path]] = None) -> None:
    """
    Configure the root logger:
    - stderr handler at `level`
    - with `log_dir`: all.log (everything at `level`) and error.log (ERROR+)

    Call this once, before the app starts serving.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(str(log_dir / "all.log"), encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

        eh = logging.FileHandler(str(log_dir / "error.log"), encoding="utf-8")
        eh.setLevel(logging.ERROR)
        eh.setFormatter(fmt)
        root.addHandler(eh)

    # passlib checks bcrypt's version on first use and logs a traceback when it can't
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.captureWarnings(True)
