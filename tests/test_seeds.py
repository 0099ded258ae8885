"""
Tests for catalog seeding from YAML.
"""
import pytest

from app.checklists.errors import ChecklistValidationError, ValidationErrorKind
from app.db.models import ChecklistGroup, ChecklistTemplate
from app.db.repository import SqlCatalogStore
from app.db.seeds import load_catalog_file, run_all_seeds, seed_catalog

CATALOG_YAML = """
templates:
  - id: tpl-daily
    name: Daily vehicle inspection
    type: COMPLIANCE
    performance_threshold: 75
    categories:
      - id: cat-brakes
        title: Brakes
        questions:
          - id: q-pads
            title: Brake pads within tolerance
            weight: 1.0
            required: true
          - id: q-fluid
            title: Brake fluid level
            weight: 0.5
            has_intermediate_approval: true
            intermediate_value: 0.5
  - id: tpl-weekly
    name: Weekly inspection
    categories:
      - id: cat-tyres
        title: Tyres
        questions:
          - id: q-tread
            title: Tread depth
groups:
  - id: grp-fleet
    name: Fleet compliance
    template_ids: [tpl-daily, tpl-weekly]
    template_weights:
      tpl-daily: 0.7
      tpl-weekly: 0.3
"""


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(CATALOG_YAML)
    return path


class TestSeedCatalog:

    def test_seed_creates_definitions(self, db_session, catalog_file):
        run_all_seeds(db_session, catalog_file)
        db_session.commit()

        catalog = SqlCatalogStore(db_session)
        template = catalog.get_template("tpl-daily")
        assert template.performance_threshold == 75
        assert [q.id for q in template.iter_questions()] == ["q-pads", "q-fluid"]
        assert catalog.get_group("grp-fleet").template_ids == ["tpl-daily", "tpl-weekly"]

    def test_seed_is_idempotent(self, db_session, catalog_file):
        data = load_catalog_file(catalog_file)
        first = seed_catalog(db_session, data)
        second = seed_catalog(db_session, data)

        assert first == {"templates": 2, "groups": 1}
        assert second == {"templates": 0, "groups": 0}
        assert db_session.query(ChecklistTemplate).count() == 2
        assert db_session.query(ChecklistGroup).count() == 1

    def test_invalid_weights_rejected(self, db_session):
        data = {
            "templates": [{
                "id": "tpl-bad",
                "name": "Bad weights",
                "categories": [{"title": "Only", "questions": [{"title": "Too light", "weight": 0.05}]}],
            }]
        }
        with pytest.raises(ChecklistValidationError) as exc_info:
            seed_catalog(db_session, data)
        assert exc_info.value.kind == ValidationErrorKind.MIN_WEIGHT_VIOLATION

    def test_unnormalized_group_rejected(self, db_session, catalog_file):
        data = load_catalog_file(catalog_file)
        data["groups"][0]["template_weights"] = {"tpl-daily": 0.5, "tpl-weekly": 0.6}
        with pytest.raises(ChecklistValidationError) as exc_info:
            seed_catalog(db_session, data)
        assert exc_info.value.kind == ValidationErrorKind.WEIGHTS_NOT_NORMALIZED

    def test_no_seed_path(self, db_session):
        run_all_seeds(db_session, None)
        assert db_session.query(ChecklistTemplate).count() == 0

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_catalog_file(path)
