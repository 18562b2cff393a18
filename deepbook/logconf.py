# deepbook/logconf.py
import datetime
import logging
import pathlib
import sys

LOG_DIR = pathlib.Path.cwd() / "output" / "logs"

def init(level: str = "INFO", log_dir: pathlib.Path | None = None):
    """Configure root logger once per run."""
    log_dir = log_dir or LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    fmt = "%(asctime)s | %(levelname)-5s | %(module)s | %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), 20),
        format=fmt,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(
                log_dir / f"deepbook_{datetime.date.today()}.log", encoding="utf-8"
            ),
        ],
        force=True,
    )
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
