"""Load the content catalog (quizzes, badges, habits, tips) from bundled JSON files."""
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from app.core.errors import CatalogError
from app.schemas.catalog import CRITERIA_TYPES, ContentCatalog

logger = logging.getLogger(__name__)

# file name -> top-level key inside the file
CATALOG_FILES = {
    "quizzes": ("quizzes.json", "quizzes"),
    "badges": ("badges.json", "badges"),
    "habits": ("habits.json", "securityHabits"),
    "tips": ("tips.json", "tips"),
}


def _read_section(catalog_dir: Path, filename: str, key: str) -> list:
    path = catalog_dir / filename
    if not path.exists():
        if filename == "tips.json":
            return []
        raise CatalogError(f"Catalog file missing: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get(key), list):
        raise CatalogError(f"{path} must contain a list under {key!r}")
    return data[key]


def load_catalog(catalog_dir: Path | str) -> ContentCatalog:
    """Read and validate every catalog file in catalog_dir."""
    catalog_dir = Path(catalog_dir)
    raw = {
        section: _read_section(catalog_dir, filename, key)
        for section, (filename, key) in CATALOG_FILES.items()
    }
    try:
        catalog = ContentCatalog(**raw)
    except ValidationError as exc:
        raise CatalogError(f"Invalid catalog in {catalog_dir}: {exc}") from exc

    for badge in catalog.badges:
        if badge.criteria.type not in CRITERIA_TYPES:
            logger.warning(
                "Badge %s has unknown criteria type %r; it will never be awarded",
                badge.id, badge.criteria.type,
            )

    logger.info(
        "Loaded catalog: %d quizzes, %d badges, %d habits, %d tips",
        len(catalog.quizzes), len(catalog.badges), len(catalog.habits), len(catalog.tips),
    )
    return catalog
