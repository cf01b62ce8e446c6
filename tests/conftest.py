import threading

import pytest

from models import ConversionContext


@pytest.fixture
def vault_root(tmp_path):
    """Vault directory with an existing 'Notion' destination folder."""
    (tmp_path / 'Notion').mkdir()
    return tmp_path


@pytest.fixture
def context():
    return ConversionContext(
        document_id='abcd1234-0000-0000-0000-000000000000',
        document_title='Doc',
        cancel_event=threading.Event(),
    )


@pytest.fixture
def base_config(vault_root):
    return {
        'notion': {'api_key': 'secret_test', 'database_id': 'db-1'},
        'export': {
            'vault_path': str(vault_root),
            'destination_directory': 'Notion',
            'attachment_directory': 'attachments',
            'subpages_directory': 'subpages',
            'title_policy': 'deduplicate',
            'include_content': True,
            'progress_bars': False,
            'properties': {},
        },
        'advanced': {'max_workers': 1},
    }
