"""Query orchestration."""

from toolbridge.orchestrator.engine import Orchestrator, QueryOutcome
from toolbridge.orchestrator.session import Session

__all__ = ["Orchestrator", "QueryOutcome", "Session"]
