"""
Logging setup for Roll Enhancements.

Console output is colored per level and tags each record with the roll
module that emitted it (``dice``, ``damage``, ``autoroll``...), so a damage
roll can be followed part by part in the terminal. File output stays plain.
"""

import logging
import sys
from typing import Iterable, Optional

from colorama import Fore, Style, init

init(autoreset=True)

DEFAULT_FORMAT = '%(asctime)s %(levelname)s [%(component)s] %(message)s'

# Third-party loggers that drown out roll output at DEBUG
NOISY_LOGGERS = ('werkzeug', 'urllib3')

PACKAGE = 'roll_enhancements'


def component_name(logger_name: str) -> str:
    """
    Short component tag for a logger name.

    ``roll_enhancements.modules.damage.aggregator`` -> ``damage``,
    ``roll_enhancements.core.storage`` -> ``storage``; foreign loggers keep
    their top-level name.
    """
    parts = logger_name.split('.')
    if parts[0] != PACKAGE:
        return parts[0]
    if len(parts) > 2 and parts[1] == 'modules':
        return parts[2]
    return parts[-1] if len(parts) > 1 else PACKAGE


class ComponentFilter(logging.Filter):
    """Adds ``record.component`` for the format string."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.component = component_name(record.name)
        return True


class RollLogFormatter(logging.Formatter):
    """Colors the level name and component tag of console records."""

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        # Handlers share the record, so work on a copy
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, '')
        colored.levelname = f"{color}{record.levelname:<7}{Style.RESET_ALL}"
        colored.component = f"{Fore.MAGENTA}{getattr(record, 'component', record.name)}{Style.RESET_ALL}"
        return super().format(colored)


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    use_colors: bool = True,
    quiet: Iterable[str] = NOISY_LOGGERS
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file that receives every record at DEBUG
        use_colors: Color the console output
        quiet: Logger names raised to WARNING

    Returns:
        The root logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else numeric_level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.addFilter(ComponentFilter())
    console.setFormatter(RollLogFormatter(DEFAULT_FORMAT) if use_colors else logging.Formatter(DEFAULT_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(ComponentFilter())
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


__all__ = ['setup_logging', 'component_name', 'ComponentFilter', 'RollLogFormatter']
