# Module for setting up logging
import logging
import os
import sys

LEVEL_TAGS = {
    logging.DEBUG: 'DEBUG',
    logging.INFO: 'INFO',
    logging.WARNING: 'WARN',
    logging.ERROR: 'ERROR',
    logging.CRITICAL: 'FATAL',
}

LEVEL_COLORS = {
    logging.DEBUG: '\033[0;90m',
    logging.INFO: '\033[0;34m',
    logging.WARNING: '\033[0;33m',
    logging.ERROR: '\033[0;31m',
    logging.CRITICAL: '\033[1;31m',
}
RESET_COLOR = '\033[0m'


class ColorFormatter(logging.Formatter):
    """Console formatter producing '[WARN]  message' style lines, colored on a TTY."""

    def __init__(self, use_color=False):
        super().__init__('%(message)s')
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        tag = LEVEL_TAGS.get(record.levelno, record.levelname)
        label = f"[{tag}]"
        if self.use_color:
            color = LEVEL_COLORS.get(record.levelno, '')
            label = f"{color}{label}{RESET_COLOR}"
        # Pad on the visible tag width so messages line up
        padding = ' ' * max(1, 8 - len(tag) - 2)
        return f"{label}{padding}{message}"


def setup_logging(log_file=None, level=logging.INFO, use_color=None):
    """Sets up logging to console and, optionally, a file."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers (important if this function is called multiple times)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)

            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
            file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Error: Could not set up file logging to {log_file}: {e}", file=sys.stderr)
            sys.exit(1)

    if use_color is None:
        use_color = sys.stdout.isatty()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorFormatter(use_color=use_color))
    root_logger.addHandler(console_handler)

    logging.debug("Logging setup complete.")
