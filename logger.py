"""Structured logging infrastructure with verbosity levels, progress tracking and the migration log."""

import copy
import logging
import logging.handlers
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import colorlog

LOGGER_NAME = 'notion_obsidian_migrator'


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with configurable verbosity levels.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_file: Optional path to log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit log level string

    Returns:
        Configured logger instance
    """
    # Determine log level
    if level:
        # Validate level before using it
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level_upper = level.upper()
        if level_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {sorted(allowed_levels)}"
            )
        log_level = getattr(logging, level_upper)
    else:
        # Default levels based on verbosity
        if verbosity >= 2:
            log_level = logging.DEBUG
        elif verbosity >= 1:
            log_level = logging.INFO
        else:
            log_level = logging.WARNING

    # Set default formats
    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    # Root stays at WARNING to keep requests/urllib3 quiet
    logging.basicConfig(
        level=logging.WARNING,
        format=log_format,
        datefmt=date_format
    )

    # Get module logger
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Clear existing handlers
    logger.handlers.clear()

    # Colored console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        try:
            # Use rotating file handler
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,  # Keep 5 backups
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
            logger.addHandler(file_handler)

            logger.info(f"Logging to file: {log_file}")
            logger.info(f"Log level: {logging.getLevelName(log_level)}")
        except OSError as e:
            logger.warning(f"Failed to set up file logging: {str(e)}")
    else:
        logger.info(f"Console logging only. Level: {logging.getLevelName(log_level)}")

    return logger


class ProgressTracker:
    """Context manager for tracking progress across operations."""

    def __init__(self, total_items: int, item_type: str = "items"):
        """
        Initialize progress tracker.

        Args:
            total_items: Total number of items to process
            item_type: Description of item type (e.g., "documents", "attachments")
        """
        self.total_items = total_items
        self.item_type = item_type
        self.processed_items = 0
        self.successful_items = 0
        self.failed_items = 0
        self.start_time: Optional[float] = None
        self.logger = logging.getLogger(LOGGER_NAME)
        self._lock = threading.Lock()

    def __enter__(self) -> 'ProgressTracker':
        """Enter progress tracking context."""
        self.start_time = time.time()
        self.logger.info(
            f"Starting processing of {self.total_items} {self.item_type}"
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit progress tracking context and log summary."""
        if self.start_time is None:
            return

        elapsed = time.time() - self.start_time
        success_rate = (self.successful_items / self.total_items * 100) if self.total_items > 0 else 0

        if self.failed_items > 0 and self.failed_items == self.total_items:
            log_method = self.logger.error
        elif self.failed_items > 0:
            log_method = self.logger.warning
        else:
            log_method = self.logger.info

        log_method(f"=== Progress Summary: {self.item_type.upper()} ===")
        log_method(f"Total: {self.total_items}")
        log_method(f"Processed: {self.processed_items}")
        log_method(f"Successful: {self.successful_items}")
        log_method(f"Failed: {self.failed_items}")
        log_method(f"Success Rate: {success_rate:.1f}%")
        log_method(f"Elapsed Time: {self._format_elapsed(elapsed)}")

    def increment(self, success: bool = True) -> None:
        """
        Increment progress counter.

        Args:
            success: Whether the item was processed successfully
        """
        with self._lock:
            self.processed_items += 1
            if success:
                self.successful_items += 1
            else:
                self.failed_items += 1
            processed = self.processed_items

        # Log progress every 10 items or on failure
        if processed % 10 == 0 or not success:
            remaining = self.total_items - processed
            status = "Success" if success else "Failed"
            self.logger.info(
                f"Processed {processed}/{self.total_items} {self.item_type} "
                f"({remaining} remaining) - Last: {status}"
            )

    def get_stats(self) -> Dict[str, Any]:
        """Get current progress statistics."""
        if self.start_time is None:
            elapsed = 0.0
        else:
            elapsed = time.time() - self.start_time

        return {
            'total': self.total_items,
            'processed': self.processed_items,
            'successful': self.successful_items,
            'failed': self.failed_items,
            'success_rate': (self.successful_items / self.total_items * 100)
                           if self.total_items > 0 else 0,
            'elapsed_time': elapsed,
            'elapsed_time_formatted': self._format_elapsed(elapsed)
        }

    @staticmethod
    def _format_elapsed(seconds: float) -> str:
        """Format elapsed time in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"

        minutes = int(seconds // 60)
        seconds = int(seconds % 60)

        if minutes < 60:
            return f"{minutes}m {seconds}s"

        hours = minutes // 60
        minutes = minutes % 60

        return f"{hours}h {minutes}m {seconds}s"


class MigrationLog:
    """
    Persistent milestone log shown to the user across runs.

    Each message is echoed to the project logger and appended to the log
    file as one timestamped line.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: Log file path; None keeps milestones in memory only
        """
        self.path = Path(path).expanduser() if path else None
        self.entries: List[str] = []
        self.logger = logging.getLogger(LOGGER_NAME)
        self._lock = threading.Lock()

    def message(self, text: str, level: int = logging.INFO) -> None:
        """Record one milestone."""
        self.logger.log(level, text)
        line = f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] {text}"
        with self._lock:
            self.entries.append(text)
            if self.path is None:
                return
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open('a', encoding='utf-8') as handle:
                    handle.write(line + '\n')
            except OSError as e:
                self.logger.warning(f"Failed to append to migration log {self.path}: {e}")

    def read(self) -> str:
        """Return the persisted log ('' if there is none yet)."""
        if self.path is None or not self.path.exists():
            return ''
        return self.path.read_text(encoding='utf-8')

    def clear(self) -> None:
        """Empty the persisted log and the in-memory entries."""
        with self._lock:
            self.entries.clear()
            if self.path is not None and self.path.exists():
                self.path.write_text('', encoding='utf-8')
        self.logger.info("Migration log cleared")


def log_section(title: str) -> None:
    """
    Log a decorative section header.

    Args:
        title: Section title to display
    """
    logger = logging.getLogger(LOGGER_NAME)

    separator = "=" * 60
    logger.info("")
    logger.info(separator)
    logger.info(f"  {title.upper()}")
    logger.info(separator)
    logger.info("")


def log_config(config: Dict[str, Any]) -> None:
    """
    Log sanitized configuration for debugging.

    Args:
        config: Configuration dictionary to log
    """
    logger = logging.getLogger(LOGGER_NAME)

    sanitized_config = _sanitize_config(config)

    log_section("Configuration")

    notion = sanitized_config.get('notion', {})
    logger.info(f"Notion API: {notion.get('base_url', 'https://api.notion.com/v1')}")
    logger.info(f"Notion Version: {notion.get('api_version', '2022-06-28')}")
    logger.info("API Key: ***REDACTED***" if notion.get('api_key') else "API Key: Not Set")
    logger.info(f"Database ID: {notion.get('database_id', 'Not Set')}")

    logger.info("")

    export_settings = sanitized_config.get('export', {})
    logger.info(f"Vault Path: {export_settings.get('vault_path', 'Not Set')}")
    logger.info(f"Destination Directory: {export_settings.get('destination_directory', 'Not Set')}")
    logger.info(f"Attachment Directory: {export_settings.get('attachment_directory', 'attachments')}")
    logger.info(f"Subpages Directory: {export_settings.get('subpages_directory', 'subpages')}")
    logger.info(f"Title Policy: {export_settings.get('title_policy', 'append_id')}")
    logger.info(f"Include Content: {export_settings.get('include_content', True)}")
    logger.info(f"Relation Style: {export_settings.get('relation_style', 'inline')}")
    logger.info(f"Semantic Links: {export_settings.get('semantic_links', False)}")
    logger.info(f"Normalize Date Keys: {export_settings.get('normalize_date_keys', False)}")

    disabled = [name for name, enabled in (export_settings.get('properties') or {}).items() if enabled is False]
    if disabled:
        logger.info(f"Disabled Properties: {', '.join(disabled)}")

    logger.info("")

    advanced = sanitized_config.get('advanced', {})
    logger.info(f"Max Workers: {advanced.get('max_workers', 4)}")
    logger.info(f"Max Retries: {advanced.get('max_retries', 3)}")
    logger.info(f"Rate Limit: {advanced.get('rate_limit', 0.0)}s")


def _sanitize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a sanitized copy of configuration with sensitive fields masked.

    Args:
        config: Configuration dictionary

    Returns:
        Sanitized configuration copy
    """
    sanitized = copy.deepcopy(config)

    sensitive_fields = {
        'password', 'token_secret', 'api_key', 'secret',
        'api_token', 'access_token', 'auth_header'
    }

    def mask_sensitive(data: Any) -> Any:
        """Recursively mask sensitive fields."""
        if isinstance(data, dict):
            masked = {}
            for key, value in data.items():
                is_sensitive = any(sensitive in str(key).lower() for sensitive in sensitive_fields)
                if is_sensitive and isinstance(value, str):
                    masked[key] = "***REDACTED***"
                else:
                    masked[key] = mask_sensitive(value)
            return masked
        elif isinstance(data, list):
            return [mask_sensitive(item) for item in data]
        else:
            return data

    return mask_sensitive(sanitized)


__all__ = [
    'setup_logging',
    'ProgressTracker',
    'MigrationLog',
    'log_section',
    'log_config'
]
