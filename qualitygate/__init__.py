"""CI quality gate: incremental lint, type-check and type-coverage checks."""

from .config import GateConfig, load_config
from .models import AggregateReport, ChangeSet, ChangeSetRequest, CheckMode, CheckOutcome, ScopeRule
from .orchestrator import PrerequisiteError, RunOrchestrator

__all__ = [
    "AggregateReport",
    "ChangeSet",
    "ChangeSetRequest",
    "CheckMode",
    "CheckOutcome",
    "GateConfig",
    "PrerequisiteError",
    "RunOrchestrator",
    "ScopeRule",
    "load_config",
]

__version__ = "0.1.0"
