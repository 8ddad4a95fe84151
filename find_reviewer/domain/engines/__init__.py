"""Matching and authentication engines."""

from find_reviewer.domain.engines.authentication import Authentication
from find_reviewer.domain.engines.matching_engine import MatchingEngine, MatchingEngineConfig

__all__ = ["Authentication", "MatchingEngine", "MatchingEngineConfig"]
