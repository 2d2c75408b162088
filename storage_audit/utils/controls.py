import json
from functools import lru_cache
from pathlib import Path

@lru_cache(maxsize=1)
def load_controls() -> dict:
    """Best-practice catalogue keyed by property id (column title, reference URL)."""
    p = Path(__file__).resolve().parents[1] / "data" / "best_practices.json"
    controls = json.loads(p.read_text(encoding="utf-8"))
    return {c["property_id"]: c for c in controls}
