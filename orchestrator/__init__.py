"""
Orchestration package for coordinating the migration pipeline.

This package sequences the migration: destination check, fetch of the
Notion database, concurrent conversion and write of every document, report.
"""

from .migration_orchestrator import DestinationMissingError, MigrationCancelled, MigrationOrchestrator
from .migration_report import MigrationReport

__all__ = [
    'DestinationMissingError',
    'MigrationCancelled',
    'MigrationOrchestrator',
    'MigrationReport'
]
