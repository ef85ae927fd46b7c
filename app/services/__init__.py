from app.services.badges import evaluate
from app.services.catalog import load_catalog
from app.services.ledger import apply_points, compute_level
from app.services.rotation import select_for_period

__all__ = ["apply_points", "compute_level", "evaluate", "load_catalog", "select_for_period"]
