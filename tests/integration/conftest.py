"""Integration test fixtures and configuration.

This module provides fixtures for integration tests, including:
- JSON record stores in a temporary data directory
- A document service and exporter wired over those stores
- Paths to the fixture files under tests/fixtures
"""

import logging
from pathlib import Path

import pytest

from clinidoc.documents.service import DocumentService
from clinidoc.export.exporter import DocumentExporter
from clinidoc.store.json_store import Stores, open_stores
from clinidoc.template_engine.library import seed_default_templates

# Configure logging for integration tests
logger = logging.getLogger(__name__)


def pytest_collection_modifyitems(items):
    """Mark every test in this directory as an integration test."""
    for item in items:
        if "tests/integration" in item.nodeid.replace("\\", "/"):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def fixtures_dir(project_root: Path) -> Path:
    """Directory of fixture files."""
    return project_root / "tests" / "fixtures"


@pytest.fixture
def patients_csv(fixtures_dir: Path) -> Path:
    return fixtures_dir / "sample_patients.csv"


@pytest.fixture
def intake_template_file(fixtures_dir: Path) -> Path:
    return fixtures_dir / "intake_template.json"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def json_stores(data_dir: Path, clock) -> Stores:
    """JSON stores with the built-in templates installed."""
    stores = open_stores(data_dir, clock)
    seed_default_templates(stores.templates)
    logger.debug(f"Integration stores ready in {data_dir}")
    return stores


@pytest.fixture
def service(json_stores: Stores, clock) -> DocumentService:
    return DocumentService(
        json_stores.patients, json_stores.templates, json_stores.documents, clock=clock
    )


@pytest.fixture
def exporter(tmp_path: Path, clock) -> DocumentExporter:
    return DocumentExporter(tmp_path / "output", clock=clock)
