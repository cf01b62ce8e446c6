"""Tests for note naming and persistence."""

import pytest

from exporters import LocalVault, MarkdownExporter, TitleDeduplicator
from models import PendingWrite, TitlePolicy
from fakes import RecordingVault, make_document


def test_deduplicate_skips_names_already_in_vault(vault_root):
    """Test deduplicate skips names already in vault."""
    (vault_root / 'Notion' / 'A.md').write_text('old')
    (vault_root / 'Notion' / 'A_1.md').write_text('old')
    deduplicator = TitleDeduplicator(LocalVault(vault_root), TitlePolicy.DEDUPLICATE)

    assert deduplicator.reserve('Notion', 'A', 'doc-1') == 'A_2'


def test_deduplicate_respects_earlier_reservations(vault_root):
    """Test deduplicate respects earlier reservations."""
    deduplicator = TitleDeduplicator(LocalVault(vault_root), TitlePolicy.DEDUPLICATE)

    assert deduplicator.reserve('Notion', 'A', 'doc-1') == 'A'
    assert deduplicator.reserve('Notion', 'A', 'doc-2') == 'A_1'
    # Other directories are independent
    assert deduplicator.reserve('Notion/subpages', 'A', 'doc-3') == 'A'


def test_append_id_policy(vault_root):
    """Test append id policy."""
    (vault_root / 'Notion' / 'A_doc-1.md').write_text('old')
    deduplicator = TitleDeduplicator(LocalVault(vault_root), TitlePolicy.APPEND_ID)

    assert deduplicator.reserve('Notion', 'A', 'doc-1') == 'A_doc-1'


@pytest.fixture
def recording_vault(vault_root):
    return RecordingVault(vault_root)


def make_exporter(vault, policy=TitlePolicy.DEDUPLICATE):
    return MarkdownExporter(vault, 'Notion', TitleDeduplicator(vault, policy))


def test_finalize_writes_note(recording_vault, vault_root):
    """Test finalize writes note."""
    exporter = make_exporter(recording_vault)
    outcome = exporter.finalize(make_document('doc-1', 'A'), 'A', 'content\n')

    assert outcome.relative_path == 'Notion/A.md'
    assert outcome.title == 'A'
    assert (vault_root / 'Notion' / 'A.md').read_text(encoding='utf-8') == 'content\n'
    assert exporter.get_stats()['notes_written'] == 1


def test_children_are_written_before_parent(recording_vault):
    """Test children are written before parent."""
    exporter = make_exporter(recording_vault)
    pending = [
        PendingWrite('Notion/subpages/Grand.md', 'grand', 'Grand', 'g'),
        PendingWrite('Notion/subpages/Child.md', 'child', 'Child', 'c'),
    ]
    outcome = exporter.finalize(make_document('doc-1', 'Parent'), 'Parent', 'parent', pending)

    assert recording_vault.text_writes == [
        'Notion/subpages/Grand.md',
        'Notion/subpages/Child.md',
        'Notion/Parent.md',
    ]
    assert outcome.child_paths == ['Notion/subpages/Grand.md', 'Notion/subpages/Child.md']
    assert exporter.get_stats()['child_notes_written'] == 2


def test_failed_child_write_does_not_block_parent(vault_root):
    """Test failed child write does not block parent."""
    vault = RecordingVault(vault_root, fail_paths={'Notion/subpages/Child.md'})
    exporter = make_exporter(vault)
    pending = [PendingWrite('Notion/subpages/Child.md', 'child', 'Child', 'c')]

    outcome = exporter.finalize(make_document('doc-1', 'Parent'), 'Parent', 'parent', pending)

    assert vault.text_writes == ['Notion/Parent.md']
    assert outcome.child_paths == []
    assert exporter.get_stats()['child_notes_failed'] == 1


def test_existing_note_with_same_id_is_overwritten_under_append_id(recording_vault, vault_root):
    """Test existing note with same id is overwritten under append id."""
    (vault_root / 'Notion' / 'A_doc-1.md').write_text('stale')
    exporter = make_exporter(recording_vault, TitlePolicy.APPEND_ID)

    exporter.finalize(make_document('doc-1', 'A'), 'A', 'fresh')

    assert (vault_root / 'Notion' / 'A_doc-1.md').read_text(encoding='utf-8') == 'fresh'


def test_export_document_requires_converter(recording_vault, context):
    """Test export document requires converter."""
    exporter = make_exporter(recording_vault)
    with pytest.raises(ValueError):
        exporter.export_document(make_document('doc-1', 'A'), context)
