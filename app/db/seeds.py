"""
Database seeds - load a checklist catalog from YAML.

The file holds two lists::

    templates:
      - id: ...
        name: Daily vehicle inspection
        type: INSPECTION
        categories:
          - title: Brakes
            questions:
              - title: Brake pads within tolerance
                weight: 1.0
                required: true
    groups:
      - id: ...
        name: Fleet compliance
        template_ids: [...]
        template_weights: {...}

Every definition goes through DefinitionService, so a seed file with bad
weights fails the same way an API caller would. Ids that already exist are
left untouched.
"""
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from sqlalchemy.orm import Session

from app.checklists.definitions import DefinitionService
from app.checklists.models import Group, Template
from app.db.models import ChecklistGroup
from app.db.repository import SqlCatalogStore
from app.core.logging import get_logger

logger = get_logger("db.seeds")


def load_catalog_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a catalog YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Catalog file {path} must contain a mapping")
    return data


def seed_catalog(session: Session, data: Dict[str, Any]) -> Dict[str, int]:
    """
    Seed templates then groups.

    Templates go first so group membership checks can see them.
    """
    catalog = SqlCatalogStore(session)
    service = DefinitionService(catalog)
    created = {"templates": 0, "groups": 0}

    for raw in data.get("templates") or []:
        template = Template.model_validate(raw)
        if catalog.find_template_ids([template.id]):
            logger.debug(f"Template '{template.id}' already present, skipping")
            continue
        service.save_template(template)
        created["templates"] += 1

    for raw in data.get("groups") or []:
        group = Group.model_validate(raw)
        if session.get(ChecklistGroup, group.id) is not None:
            logger.debug(f"Group '{group.id}' already present, skipping")
            continue
        service.save_group(group)
        created["groups"] += 1

    logger.info(f"Seeded {created['templates']} template(s) and {created['groups']} group(s)")
    return created


def run_all_seeds(session: Session, catalog_path: Union[str, Path, None] = None) -> None:
    """Run all database seeds."""
    if not catalog_path:
        logger.info("No catalog seed file configured")
        return
    seed_catalog(session, load_catalog_file(catalog_path))
