# types.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

class StepStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"

class ErrorCategory(Enum):
    UNDEFINED = "undefined"
    CONFIGURATION = "configuration"
    INFRASTRUCTURE = "infrastructure"
    TEST = "test"

@dataclass
class StepResult:
    status: StepStatus
    data: Dict[str, Any]
    error: Optional[str] = None

@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one Bruno run; error holds the cause of a downgraded failure."""
    success: bool
    error: Optional[str] = None

@dataclass
class StepReport:
    """Step data handed to the reporting sink."""
    fields: Dict[str, bool] = field(default_factory=lambda: {"bruno": False})
    category: ErrorCategory = ErrorCategory.UNDEFINED
    stages: Dict[str, StepStatus] = field(default_factory=dict)
