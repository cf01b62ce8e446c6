"""
Migration report generator for aggregating statistics and formatting reports.

This module builds the migration report from per-document statuses and
formats it for console display and JSON export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from models import MigrationStatus

logger = logging.getLogger('notion_obsidian_migrator.orchestrator.report')


class MigrationReport:
    """Generates migration reports from per-document statuses."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize migration report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('notion_obsidian_migrator.orchestrator.report')

    def generate_report(
        self,
        statuses: List[MigrationStatus],
        migration_duration: float,
        collection_name: Optional[str] = None,
        attachment_stats: Optional[Dict[str, int]] = None,
        export_stats: Optional[Dict[str, int]] = None,
        cancelled: bool = False
    ) -> Dict[str, Any]:
        """
        Generate migration report.

        Args:
            statuses: One MigrationStatus per fetched document
            migration_duration: Total migration duration in seconds
            collection_name: Database title, if it could be fetched
            attachment_stats: AttachmentManager statistics
            export_stats: MarkdownExporter statistics
            cancelled: Whether the batch was cancelled

        Returns:
            Migration report dictionary
        """
        counts = {'exported': 0, 'failed': 0, 'cancelled': 0}
        for status in statuses:
            counts[status.status] = counts.get(status.status, 0) + 1

        attempted = counts['exported'] + counts['failed']
        report = {
            'summary': {
                'collection': collection_name,
                'documents': len(statuses),
                'exported': counts['exported'],
                'failed': counts['failed'],
                'not_started': counts['cancelled'],
                'cancelled': cancelled,
                'success_rate': counts['exported'] / attempted if attempted else 0.0,
                'duration': migration_duration,
                'duration_formatted': self._format_duration(migration_duration),
            },
            'attachments': dict(attachment_stats or {}),
            'notes': dict(export_stats or {}),
            'errors': [
                {
                    'document_id': status.document_id,
                    'document_title': status.document_title,
                    'error': status.error_message,
                }
                for status in statuses if status.status == 'failed'
            ],
            'documents': [status.to_dict() for status in statuses],
            'timestamp': datetime.now().isoformat(),
        }

        self.logger.info(
            f"Report generated: {counts['exported']} exported, "
            f"{counts['failed']} failed, {counts['cancelled']} not started"
        )
        return report

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Migration report dictionary

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("MIGRATION REPORT")
        sections.append("=" * 60)
        sections.append("")

        summary = report.get('summary', {})
        sections.append("Summary:")
        if summary.get('collection'):
            sections.append(f"  Database:    {summary['collection']}")
        sections.append(f"  Documents:   {summary.get('documents', 0)}")
        sections.append(f"  Exported:    {summary.get('exported', 0)}")
        sections.append(f"  Failed:      {summary.get('failed', 0)}")
        if summary.get('cancelled'):
            sections.append(f"  Not started: {summary.get('not_started', 0)} (cancelled)")
        sections.append(f"  Success:     {summary.get('success_rate', 0.0) * 100:.1f}%")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        sections.append("")

        attachments = report.get('attachments', {})
        if attachments.get('total_attachments'):
            sections.append("Attachments:")
            sections.append(f"  Downloaded:   {attachments.get('downloaded', 0)}")
            sections.append(f"  Deduplicated: {attachments.get('deduplicated', 0)}")
            sections.append(f"  Failed:       {attachments.get('failed', 0)}")
            sections.append("")

        notes = report.get('notes', {})
        if notes.get('child_notes_written') or notes.get('child_notes_failed'):
            sections.append("Subpages:")
            sections.append(f"  Written: {notes.get('child_notes_written', 0)}")
            sections.append(f"  Failed:  {notes.get('child_notes_failed', 0)}")
            sections.append("")

        errors = report.get('errors', [])
        if errors:
            sections.append("Errors:")
            for error in errors[:10]:
                sections.append(f"  - {error['document_title']}: {error['error']}")
            if len(errors) > 10:
                sections.append(f"  ... and {len(errors) - 10} more")
            sections.append("")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Migration report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['MigrationReport']
