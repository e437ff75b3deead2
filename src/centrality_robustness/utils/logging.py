"""
Logging setup for pipeline scripts: root logger to stdout and results/logs/<script>.log.
"""
import logging
import sys
from pathlib import Path

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_file: Path, level: int = logging.INFO) -> None:
    """
    Route the root logger, and with it every library module, to stdout and `log_file`.

    Re-running replaces earlier handlers so repeated calls do not double lines.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, mode='a', encoding='utf-8')
        ],
        force=True,
    )
