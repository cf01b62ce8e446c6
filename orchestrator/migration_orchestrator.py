"""
Migration orchestrator for coordinating the complete migration pipeline.

This module provides the central coordinator that sequences the migration:
destination check, fetch of every database page, concurrent per-document
conversion and write, then the report.
"""

import logging
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

import requests
from tqdm import tqdm

from models import ConversionContext, Document, MigrationStatus, TitlePolicy
from converters import build_converter
from exporters import AttachmentManager, LocalVault, MarkdownExporter, TitleDeduplicator
from fetchers import BaseFetcher, FetcherError, FetcherFactory
from logger import MigrationLog, ProgressTracker, log_section
from orchestrator.migration_report import MigrationReport

logger = logging.getLogger('notion_obsidian_migrator.orchestrator')


class DestinationMissingError(Exception):
    """Raised when the destination folder does not exist in the vault."""
    pass


class MigrationCancelled(Exception):
    """Raised for a document whose turn came after cancellation was requested."""
    pass


class MigrationOrchestrator:
    """Central coordinator: destination check, fetch, convert and write, report."""

    def __init__(
        self,
        config: Dict[str, Any],
        fetcher: Optional[BaseFetcher] = None,
        vault=None,
        migration_log: Optional[MigrationLog] = None,
        cancel_event: Optional[threading.Event] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize migration orchestrator.

        Args:
            config: Configuration dictionary
            fetcher: Document service (built from config when omitted)
            vault: Vault store (LocalVault at export.vault_path when omitted)
            migration_log: Milestone log (in-memory when omitted)
            cancel_event: Shared cancellation flag for the batch
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.orchestrator')

        notion_config = config.get('notion', {})
        export_config = config.get('export', {})
        advanced_config = config.get('advanced', {})

        self.database_id = notion_config.get('database_id')
        self.destination_directory = (export_config.get('destination_directory') or '').strip('/')
        self.property_filter = export_config.get('properties') or {}
        self.show_progress = export_config.get('progress_bars', True)
        self.max_workers = int(advanced_config.get('max_workers', 4))

        self.fetcher = fetcher or FetcherFactory.create_fetcher(config, self.logger)
        self.vault = vault or LocalVault(export_config.get('vault_path', '.'))
        self.migration_log = migration_log or MigrationLog()
        self.cancel_event = cancel_event or threading.Event()

        self.attachment_manager = AttachmentManager.from_config(config, self.vault, self.fetcher)
        self.title_deduplicator = TitleDeduplicator(
            self.vault,
            TitlePolicy(export_config.get('title_policy', TitlePolicy.APPEND_ID.value)),
        )
        self.converter = build_converter(
            self.fetcher,
            config=config,
            attachment_manager=self.attachment_manager,
            title_deduplicator=self.title_deduplicator,
        )
        self.exporter = MarkdownExporter(
            self.vault,
            self.destination_directory,
            self.title_deduplicator,
            converter=self.converter,
        )
        self.report_generator = MigrationReport()

        self.logger.info(
            f"MigrationOrchestrator initialized for database {self.database_id}, "
            f"vault {self.vault}, max_workers={self.max_workers}"
        )

    def cancel(self) -> None:
        """Request cancellation; documents already started still complete."""
        self.logger.warning("Cancellation requested")
        self.cancel_event.set()

    def run(self) -> Dict[str, Any]:
        """
        Run the migration for the configured database.

        Returns:
            Migration report dictionary

        Raises:
            DestinationMissingError: If the destination folder is missing
            FetcherError: If paging through the database fails
            requests.RequestException: If fetching the database fails
        """
        start_time = time.time()
        log_section("Notion to Obsidian Migration")

        self._check_destination()

        self.migration_log.message("Fetching data from Notion...")
        try:
            collection_name = self.fetcher.get_collection_name(self.database_id)
            if collection_name:
                self.logger.info(f"Database: {collection_name}")
            documents = self.fetcher.fetch_all(self.database_id)
        except (requests.RequestException, FetcherError) as e:
            self.migration_log.message(f"Error: {e}", logging.ERROR)
            raise

        self.migration_log.message(f"{len(documents)} items fetched from Notion.")

        self.migration_log.message("Creating markdown files...")
        statuses = self._export_documents(documents)

        cancelled = any(status.status == 'cancelled' for status in statuses)
        if cancelled:
            self.migration_log.message("Migration cancelled.", logging.WARNING)
        else:
            self.migration_log.message("Migration completed!")

        return self.report_generator.generate_report(
            statuses,
            migration_duration=time.time() - start_time,
            collection_name=collection_name,
            attachment_stats=self.attachment_manager.get_stats(),
            export_stats=self.exporter.get_stats(),
            cancelled=cancelled,
        )

    def _check_destination(self) -> None:
        if not self.vault.is_dir(self.destination_directory):
            message = (
                f"Error: destination folder '{self.destination_directory}' "
                f"does not exist in {self.vault}"
            )
            self.migration_log.message(message, logging.ERROR)
            raise DestinationMissingError(message)

    def _export_documents(self, documents: List[Document]) -> List[MigrationStatus]:
        """Convert and write all documents on the worker pool."""
        statuses: List[MigrationStatus] = []
        if not documents:
            self.logger.warning("No documents to migrate")
            return statuses

        with ProgressTracker(total_items=len(documents), item_type='documents') as tracker:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_document = {
                    executor.submit(self._export_single, document): document
                    for document in documents
                }

                futures = as_completed(future_to_document)
                if self._should_show_progress():
                    futures = tqdm(futures, desc="Creating notes", total=len(documents))

                try:
                    self._collect_results(futures, future_to_document, statuses, tracker)
                except KeyboardInterrupt:
                    # Queued documents see the flag and never start
                    self.cancel()
                    raise

        return statuses

    def _collect_results(self, futures, future_to_document, statuses: List[MigrationStatus], tracker) -> None:
        for future in futures:
            document = future_to_document[future]
            title = document.title or document.id
            try:
                outcome = future.result()
            except MigrationCancelled:
                statuses.append(MigrationStatus(document.id, title, 'cancelled'))
                continue
            except Exception as e:
                self.logger.error(f"Failed to migrate document '{title}' ({document.id}): {e}")
                statuses.append(MigrationStatus(document.id, title, 'failed', error_message=str(e)))
                tracker.increment(success=False)
                continue

            statuses.append(MigrationStatus(
                document.id, title, 'exported', relative_path=outcome.relative_path
            ))
            tracker.increment(success=True)

    def _export_single(self, document: Document):
        if self.cancel_event.is_set():
            raise MigrationCancelled(f"Document {document.id} not started: migration cancelled")

        context = ConversionContext(
            document_id=document.id,
            property_filter=self.property_filter,
            cancel_event=self.cancel_event,
        )
        return self.exporter.export_document(document, context)

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        return bool(self.show_progress) and sys.stdout.isatty()


__all__ = ['DestinationMissingError', 'MigrationCancelled', 'MigrationOrchestrator']
