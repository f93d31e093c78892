import pytest
import sys
import os
import logging

# Ensure the project root is in the Python path for imports in tests
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


@pytest.fixture(autouse=True)
def configure_logging(caplog):
    """Ensure logging is configured to capture DEBUG level messages for all tests."""
    caplog.set_level(logging.DEBUG, logger="root")


@pytest.fixture
def base_config(tmp_path):
    """A fully-populated config dict as load_config would return it."""
    return {
        'domain': 'acme',
        'api_key': 'secret-key',
        'helpdesk_host': 'acme.freshservice.com',
        'api_base_url': 'https://acme.freshservice.com/api/v2',
        'output_dir': str(tmp_path / 'export'),
        'per_page': 100,
        'request_delay_seconds': 0,
        'max_retries': 2,
        'request_timeout_api': 5,
        'request_timeout_content': 5,
        'user_agent': 'TestAgent/1.0',
        'published_only': False,
        'generate_pdf': False,
        'backup_on_change': True,
        'converter': 'html2text',
        'log_file': None,
        'attachment_url_pattern': 'freshservice',
        'pdf_engines': ['xelatex', 'pdflatex', 'weasyprint', 'wkhtmltopdf'],
    }
