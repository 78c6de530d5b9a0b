"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import pytest
import pytest_asyncio

from dossier.db.database import Database
from dossier.main import Services
from dossier.models.report import ReportDocument


class FakeRenderer:
    """Stands in for Typst compilation; records what it was asked to render."""

    name = "fake"
    media_type = "application/pdf"

    def __init__(self) -> None:
        self.rendered: list[ReportDocument] = []

    def render(self, document: ReportDocument) -> bytes:
        self.rendered.append(document)
        return b"%PDF-fake " + document.project.title.encode()


@pytest_asyncio.fixture
async def db():
    """Connected in-memory datastore, closed after each test."""
    database = Database(":memory:")
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def services(db: Database, renderer: FakeRenderer) -> Services:
    return Services.build(db, renderer=renderer)


@pytest_asyncio.fixture
async def project_id(services: Services) -> str:
    return await services.research.create_project("Coastal erosion", "Is erosion accelerating?")


@pytest_asyncio.fixture
async def round_id(services: Services, project_id: str) -> str:
    return await services.research.create_round(project_id, "A", "scope")
