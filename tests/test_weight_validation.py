"""
Tests for definition-time weight validation.

Verifies that:
- Question weights below 0.1 are rejected per category, 0.1 itself passes
- Group weights must cover the member templates exactly
- Group weights must each lie in [0, 1] and sum to 1.0 within 0.0001
- The definition service only saves definitions that pass
"""
import pytest

from app.checklists.definitions import DefinitionService
from app.checklists.errors import ChecklistValidationError, Err, ValidationErrorKind
from app.checklists.models import Category, Group, Question, Template
from app.checklists.stores import InMemoryCatalogStore
from app.checklists.weights import GroupWeightValidator, TemplateWeightValidator


def make_template(*weights, template_id="tpl-w") -> Template:
    return Template(
        id=template_id,
        name="Weights",
        categories=[
            Category(
                id="cat-w",
                title="Weighted",
                questions=[Question(id=f"w{i}", title=f"Question {i}", weight=w) for i, w in enumerate(weights)],
            )
        ],
    )


class TestTemplateWeights:
    """Tests for the per-question weight floor."""

    @pytest.fixture
    def validator(self):
        return TemplateWeightValidator()

    def test_valid_weights(self, validator, fleet_template):
        assert validator.validate(fleet_template).ok

    def test_floor_is_inclusive(self, validator):
        assert validator.validate(make_template(0.1, 5.0)).ok

    def test_weight_below_floor_rejected(self, validator):
        outcome = validator.validate(make_template(0.05, 1.0, 0.0))
        assert isinstance(outcome, Err)
        assert outcome.kind == ValidationErrorKind.MIN_WEIGHT_VIOLATION
        assert outcome.detail["category_id"] == "cat-w"
        assert outcome.detail["category_title"] == "Weighted"
        assert outcome.detail["question_ids"] == ["w0", "w2"]

    def test_negative_weight_rejected(self, validator):
        outcome = validator.validate(make_template(-1.0))
        assert outcome.kind == ValidationErrorKind.MIN_WEIGHT_VIOLATION

    @pytest.mark.parametrize("weight", [float("nan"), float("inf")])
    def test_non_finite_weight_rejected(self, validator, weight):
        outcome = validator.validate(make_template(1.0, weight))
        assert outcome.kind == ValidationErrorKind.MIN_WEIGHT_VIOLATION
        assert outcome.detail["question_ids"] == ["w1"]

    def test_empty_category_is_valid(self, validator):
        template = Template(id="tpl-e", name="Empty", categories=[Category(id="cat-e", title="Empty")])
        assert validator.validate(template).ok

    def test_weights_need_not_sum_to_one(self, validator):
        assert validator.validate(make_template(3.0, 7.5, 0.2)).ok

    def test_first_offending_category_reported(self, validator):
        template = Template(
            id="tpl-two",
            name="Two",
            categories=[
                Category(id="cat-ok", title="Fine", questions=[Question(id="a", title="A", weight=1.0)]),
                Category(id="cat-bad1", title="Bad", questions=[Question(id="b", title="B", weight=0.01)]),
                Category(id="cat-bad2", title="Worse", questions=[Question(id="c", title="C", weight=0.0)]),
            ],
        )
        outcome = validator.validate(template)
        assert outcome.detail["category_id"] == "cat-bad1"
        assert outcome.detail["question_ids"] == ["b"]


class TestGroupWeights:
    """Tests for group membership and normalization rules, in order."""

    @pytest.fixture
    def validator(self):
        return GroupWeightValidator()

    KNOWN = {"t1", "t2", "t3"}

    def test_no_templates_is_valid(self, validator):
        assert validator.validate([], None, self.KNOWN).ok

    def test_valid_weights(self, validator):
        assert validator.validate(["t1", "t2"], {"t1": 0.6, "t2": 0.4}, self.KNOWN).ok

    def test_single_template_full_weight(self, validator):
        assert validator.validate(["t1"], {"t1": 1.0}, self.KNOWN).ok

    def test_three_way_split_within_tolerance(self, validator):
        weights = {"t1": 0.3333, "t2": 0.3333, "t3": 0.3334}
        assert validator.validate(["t1", "t2", "t3"], weights, self.KNOWN).ok

    def test_unknown_templates(self, validator):
        outcome = validator.validate(["t1", "ghost"], {"t1": 0.5, "ghost": 0.5}, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.TEMPLATES_NOT_FOUND
        assert outcome.detail["missing_ids"] == ["ghost"]

    def test_weights_required(self, validator):
        outcome = validator.validate(["t1"], None, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.WEIGHTS_REQUIRED

    def test_missing_weights(self, validator):
        outcome = validator.validate(["t1", "t2"], {"t1": 1.0}, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.MISSING_WEIGHTS
        assert outcome.detail["ids"] == ["t2"]

    def test_extra_weights(self, validator):
        outcome = validator.validate(["t1"], {"t1": 0.5, "t3": 0.5}, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.EXTRA_WEIGHTS
        assert outcome.detail["ids"] == ["t3"]

    def test_weights_not_normalized(self, validator):
        """Scenario D: 0.5 + 0.6 is rejected."""
        outcome = validator.validate(["t1", "t2"], {"t1": 0.5, "t2": 0.6}, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.WEIGHTS_NOT_NORMALIZED
        assert outcome.detail["total"] == pytest.approx(1.1)

    def test_weight_out_of_range(self, validator):
        outcome = validator.validate(["t1", "t2"], {"t1": 1.5, "t2": -0.5}, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.WEIGHTS_NOT_NORMALIZED
        assert set(outcome.detail["out_of_range"]) == {"t1", "t2"}

    def test_sum_just_outside_tolerance(self, validator):
        outcome = validator.validate(["t1", "t2"], {"t1": 0.5, "t2": 0.5002}, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.WEIGHTS_NOT_NORMALIZED

    def test_membership_checked_before_weights(self, validator):
        # Unknown template wins over a missing weights map
        outcome = validator.validate(["ghost"], None, self.KNOWN)
        assert outcome.kind == ValidationErrorKind.TEMPLATES_NOT_FOUND


class TestDefinitionService:
    """Tests for the save gate."""

    @pytest.fixture
    def catalog(self, eighty_template, fifty_template):
        store = InMemoryCatalogStore()
        store.save_template(eighty_template)
        store.save_template(fifty_template)
        return store

    @pytest.fixture
    def service(self, catalog):
        return DefinitionService(catalog)

    def test_save_valid_template(self, service, catalog, fleet_template):
        service.save_template(fleet_template)
        assert catalog.get_template("tpl-fleet").name == "Fleet compliance"

    def test_invalid_template_not_saved(self, service, catalog):
        with pytest.raises(ChecklistValidationError) as exc_info:
            service.save_template(make_template(0.05))
        assert exc_info.value.kind == ValidationErrorKind.MIN_WEIGHT_VIOLATION
        assert catalog.find_template_ids(["tpl-w"]) == set()

    def test_save_valid_group(self, service, catalog, yard_group):
        service.save_group(yard_group)
        assert catalog.get_group("grp-yard").template_weights == {"tpl-eighty": 0.6, "tpl-fifty": 0.4}

    def test_group_with_unknown_template_rejected(self, service):
        group = Group(id="grp-bad", name="Bad", template_ids=["tpl-eighty", "tpl-missing"],
                      template_weights={"tpl-eighty": 0.5, "tpl-missing": 0.5})
        outcome = service.check_group(group)
        assert outcome.kind == ValidationErrorKind.TEMPLATES_NOT_FOUND

    def test_unnormalized_group_not_saved(self, service, catalog):
        group = Group(id="grp-d", name="Scenario D", template_ids=["tpl-eighty", "tpl-fifty"],
                      template_weights={"tpl-eighty": 0.5, "tpl-fifty": 0.6})
        with pytest.raises(ChecklistValidationError) as exc_info:
            service.save_group(group)
        assert exc_info.value.to_dict()["error"] == "WEIGHTS_NOT_NORMALIZED"
        assert "grp-d" not in catalog.groups
