"""Tests for the migration log, progress tracking and config redaction."""

import logging

from logger import MigrationLog, ProgressTracker, _sanitize_config, setup_logging


def test_migration_log_appends_timestamped_lines(tmp_path):
    """Test migration log appends timestamped lines."""
    path = tmp_path / 'logs' / 'migration.log'
    log = MigrationLog(path)

    log.message('Fetching data from Notion...')
    log.message('Migration completed!')

    lines = log.read().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith('[') and lines[0].endswith('] Fetching data from Notion...')
    assert log.entries == ['Fetching data from Notion...', 'Migration completed!']


def test_migration_log_persists_across_instances(tmp_path):
    """Test migration log persists across instances."""
    path = tmp_path / 'migration.log'
    MigrationLog(path).message('first run')
    MigrationLog(path).message('second run')

    assert MigrationLog(path).read().count('run') == 2


def test_clear_empties_log(tmp_path):
    """Test clear empties log."""
    log = MigrationLog(tmp_path / 'migration.log')
    log.message('something')

    log.clear()

    assert log.read() == ''
    assert log.entries == []


def test_in_memory_log_reads_empty():
    """Test in memory log reads empty."""
    log = MigrationLog()
    log.message('kept in memory')
    assert log.read() == ''
    assert log.entries == ['kept in memory']


def test_messages_reach_project_logger(caplog):
    """Test messages reach project logger."""
    with caplog.at_level(logging.ERROR, logger='notion_obsidian_migrator'):
        MigrationLog().message('Error: boom', logging.ERROR)
    assert 'Error: boom' in caplog.text


def test_progress_tracker_counts():
    """Test progress tracker counts."""
    with ProgressTracker(total_items=3, item_type='documents') as tracker:
        tracker.increment(success=True)
        tracker.increment(success=False)

    stats = tracker.get_stats()
    assert stats['processed'] == 2
    assert stats['successful'] == 1
    assert stats['failed'] == 1


def test_sanitize_config_masks_secrets():
    """Test sanitize config masks secrets."""
    config = {'notion': {'api_key': 'secret_abc', 'database_id': 'db'}}
    sanitized = _sanitize_config(config)

    assert sanitized['notion']['api_key'] == '***REDACTED***'
    assert sanitized['notion']['database_id'] == 'db'
    assert config['notion']['api_key'] == 'secret_abc'


def test_setup_logging_levels(tmp_path):
    """Test setup logging levels."""
    logger = setup_logging(verbosity=2)
    assert logger.level == logging.DEBUG

    logger = setup_logging(level='warning', log_file=str(tmp_path / 'run.log'))
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 2
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
