"""
Shared fixtures for the checklist engine tests.

Catalog used throughout:
- ``tpl-fleet``: COMPLIANCE, one category, q1 (0.6, required) + q2 (0.4)
- ``tpl-cabin``: INSPECTION, two categories, one question allows INTERMEDIATE
- ``tpl-eighty`` / ``tpl-fifty``: members of ``grp-yard`` (weights 0.6 / 0.4)
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.checklists.models import Category, ChecklistType, Group, Question, Template
from app.checklists.orchestrator import ExecutionOrchestrator
from app.checklists.stores import InMemoryCatalogStore, InMemoryExecutionStore
from app.db.models import Base


# ===== Catalog =====

@pytest.fixture
def fleet_template() -> Template:
    return Template(
        id="tpl-fleet",
        name="Fleet compliance",
        type=ChecklistType.COMPLIANCE,
        performance_threshold=70.0,
        categories=[
            Category(
                id="cat-safety",
                title="Safety",
                questions=[
                    Question(id="q1", title="Brakes checked", weight=0.6, required=True),
                    Question(id="q2", title="Lights working", weight=0.4),
                ],
            )
        ],
    )


@pytest.fixture
def cabin_template() -> Template:
    return Template(
        id="tpl-cabin",
        name="Cabin inspection",
        type=ChecklistType.INSPECTION,
        performance_threshold=70.0,
        categories=[
            Category(
                id="cat-seats",
                title="Seats",
                sort_order=0,
                questions=[
                    Question(id="c1", title="Seat belts", weight=1.0, required=True),
                    Question(
                        id="c2",
                        title="Upholstery",
                        weight=0.5,
                        has_intermediate_approval=True,
                        intermediate_value=0.5,
                    ),
                ],
            ),
            Category(
                id="cat-dash",
                title="Dashboard",
                sort_order=1,
                questions=[
                    Question(id="c3", title="Warning lights off", weight=1.0),
                    Question(id="c4", title="Retired check", weight=1.0, is_active=False),
                ],
            ),
        ],
    )


@pytest.fixture
def eighty_template() -> Template:
    # Approving only t80-a scores 80%
    return Template(
        id="tpl-eighty",
        name="Loading bay",
        type=ChecklistType.INSPECTION,
        categories=[
            Category(
                id="cat-bay",
                title="Bay",
                questions=[
                    Question(id="t80-a", title="Dock clear", weight=0.8),
                    Question(id="t80-b", title="Ramp lubricated", weight=0.2),
                ],
            )
        ],
    )


@pytest.fixture
def fifty_template() -> Template:
    # Approving only t50-a scores 50%
    return Template(
        id="tpl-fifty",
        name="Storage racks",
        type=ChecklistType.INSPECTION,
        categories=[
            Category(
                id="cat-racks",
                title="Racks",
                questions=[
                    Question(id="t50-a", title="Labels legible", weight=0.5),
                    Question(id="t50-b", title="Beams undamaged", weight=0.5),
                ],
            )
        ],
    )


@pytest.fixture
def yard_group() -> Group:
    return Group(
        id="grp-yard",
        name="Yard compliance",
        performance_threshold=70.0,
        template_ids=["tpl-eighty", "tpl-fifty"],
        template_weights={"tpl-eighty": 0.6, "tpl-fifty": 0.4},
    )


@pytest.fixture
def catalog(fleet_template, cabin_template, eighty_template, fifty_template, yard_group) -> InMemoryCatalogStore:
    store = InMemoryCatalogStore()
    for template in (fleet_template, cabin_template, eighty_template, fifty_template):
        store.save_template(template)
    store.save_group(yard_group)
    return store


@pytest.fixture
def execution_store(catalog) -> InMemoryExecutionStore:
    return InMemoryExecutionStore(catalog)


@pytest.fixture
def orchestrator(catalog, execution_store) -> ExecutionOrchestrator:
    return ExecutionOrchestrator(catalog, execution_store)


# ===== Database =====

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
