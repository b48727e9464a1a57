# src/bm_matching/application/service.py
from src.bm_matching.engine.engine import MatchingEngine

_engine: MatchingEngine | None = None


def get_matching_engine() -> MatchingEngine:
    """Process-wide engine: its per-market locks must be shared by every caller."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = MatchingEngine()
    return _engine
