"""
Shared pytest fixtures for Rookie Guide tests.

- ``conn``: in-memory SQLite with the schema applied
- ``clock``: deterministic clock advancing one second per call
- ``make_template``: store a template straight through the repository
- ``engine``: a ChecklistProgressEngine wired to ``conn`` and ``clock``
"""

from __future__ import annotations

import itertools
from datetime import datetime

import pytest

from rookie_guide.core.checklists import ChecklistProgressEngine
from rookie_guide.core.connection import create_connection
from rookie_guide.core.models import Template, TemplateStep
from rookie_guide.core.repositories import ChecklistRepository, TemplateRepository
from rookie_guide.core.retry import ExponentialBackoff

from tests._support import EPOCH, FakeClock


@pytest.fixture()
def conn():
    """In-memory SQLite connection with all migrations applied."""
    c, _info = create_connection(":memory:", init_schema=True)
    yield c
    c.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def template_repo(conn) -> TemplateRepository:
    return TemplateRepository(conn)


@pytest.fixture()
def checklist_repo(conn) -> ChecklistRepository:
    return ChecklistRepository(conn)


@pytest.fixture()
def make_template(template_repo):
    """Factory storing a template with the given step titles."""
    counter = itertools.count(1)

    def _make(
        *step_titles: str,
        title: str = "Moving to Beijing",
        created_by: str = "author",
        location_tag: str = "CN-BJ",
        created_at: datetime = EPOCH,
    ) -> Template:
        n = next(counter)
        template = Template(
            id=f"tmpl-{n}",
            title=title,
            description="Everything a newcomer needs in the first month",
            location_tag=location_tag,
            steps=tuple(
                TemplateStep(title=t, description=f"about {t}", order=i)
                for i, t in enumerate(step_titles)
            ),
            created_by=created_by,
            created_at=created_at,
            updated_at=created_at,
        )
        template_repo.create(template)
        return template

    return _make


@pytest.fixture()
def engine(template_repo, checklist_repo, clock) -> ChecklistProgressEngine:
    ids = (f"cl-{n}" for n in itertools.count(1))
    return ChecklistProgressEngine(
        template_repo,
        checklist_repo,
        clock=clock,
        id_factory=lambda: next(ids),
        retry=ExponentialBackoff(base_delay=0.0, jitter=False),
    )
