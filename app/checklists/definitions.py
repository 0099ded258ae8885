"""
Definition acceptance - the gate template and group definitions pass before
they enter the catalog.
"""
from typing import Optional

from app.checklists.errors import ValidationOutcome
from app.checklists.models import Group, Template
from app.checklists.stores import CatalogStore
from app.checklists.weights import GroupWeightValidator, TemplateWeightValidator
from app.core.logging import get_logger

logger = get_logger("definitions")


class DefinitionService:
    """Validates definitions and saves them only when every rule holds."""

    def __init__(
        self,
        catalog: CatalogStore,
        weight_validator: Optional[TemplateWeightValidator] = None,
        group_weight_validator: Optional[GroupWeightValidator] = None,
    ):
        self.catalog = catalog
        self.weight_validator = weight_validator or TemplateWeightValidator()
        self.group_weight_validator = group_weight_validator or GroupWeightValidator()

    def check_template(self, template: Template) -> ValidationOutcome:
        return self.weight_validator.validate(template)

    def check_group(self, group: Group) -> ValidationOutcome:
        known = self.catalog.find_template_ids(group.template_ids) if group.template_ids else set()
        return self.group_weight_validator.validate(group.template_ids, group.template_weights, known)

    def save_template(self, template: Template) -> Template:
        self.check_template(template).raise_error()
        saved = self.catalog.save_template(template)
        logger.info(f"Accepted template '{template.name}' ({template.id})")
        return saved

    def save_group(self, group: Group) -> Group:
        self.check_group(group).raise_error()
        saved = self.catalog.save_group(group)
        logger.info(f"Accepted group '{group.name}' ({group.id}) with {len(group.template_ids)} template(s)")
        return saved
