import logging
import sys
from typing import Any, Dict

from http_mcp.security.utils import mask_sensitive_data

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SensitiveDataFilter(logging.Filter):
    """
    A logging filter that masks forwarded credentials within log records.

    It applies the `mask_sensitive_data` utility to the log message and its arguments.
    """
    def __init__(self, name: str = 'SensitiveDataFilter'):
        """Initialize the filter."""
        super().__init__(name)

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter the log record, masking sensitive data in msg and args.

        Args:
            record: The logging record to filter.

        Returns:
            True (always allows the record to pass after masking).
        """
        if isinstance(record.msg, str):
            record.msg = mask_sensitive_data(record.msg)

        # Only %-style arguments are visible here; f-string messages are covered by msg above.
        if record.args:
            if isinstance(record.args, dict):
                record.args = mask_sensitive_data(record.args)
            else:
                record.args = tuple(mask_sensitive_data(arg) for arg in record.args)

        return True


def setup_logging(level: str = 'INFO', protocol: str = 'stdio') -> None:
    """
    Configure logging for the HTTP MCP bridge.

    Args:
        level: Logging level (default: 'INFO')
        protocol: Server transport; with 'stdio' stdout carries the MCP
            stream, so every record goes to stderr.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(level.upper())

    formatter = logging.Formatter(DEFAULT_FORMAT)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(stderr_handler)

    for logger_name in ('http_mcp', 'http_mcp.core', 'http_mcp.error_handling'):
        package_logger = logging.getLogger(logger_name)
        package_logger.setLevel(level.upper())
        package_logger.propagate = True
        package_logger.handlers = []

    # Library chatter
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info(f"Logging configured for {protocol} protocol. All logs will be written to stderr.")


def setup_logging_from_config(logging_config: Dict[str, Any]) -> None:
    """
    Set up logging from a logging config dictionary (as in the YAML config file).
    Supports StreamHandler (always stderr) and FileHandler entries and a custom format.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging_config.get('level', 'INFO').upper())
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(logging_config.get('format', DEFAULT_FORMAT))
    handler_configs = logging_config.get('handlers') or [{'type': 'StreamHandler'}]
    for handler_cfg in handler_configs:
        if handler_cfg['type'] == 'StreamHandler':
            handler = logging.StreamHandler(sys.stderr)
        elif handler_cfg['type'] == 'FileHandler':
            handler = logging.FileHandler(handler_cfg['filename'])
        else:
            logger.warning(f"Ignoring unsupported log handler type: {handler_cfg['type']}")
            continue
        handler.setLevel(handler_cfg.get('level', logging_config.get('level', 'INFO')).upper())
        handler.setFormatter(formatter)
        handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(handler)
