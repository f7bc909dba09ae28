"""
Scan Result Model - output of one duplicate detection run

Carries the violations, the per-file error side channel, run status and
aggregate metrics. The health score is derived from violation severities.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .violation import Severity, Violation
from ..constants import HealthScoreWeights


class SourceFile(BaseModel):
    """A file path plus its already-resolved text"""

    path: str
    content: str


class FileError(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file: str
    error: str


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ScanMetrics(BaseModel):
    """Aggregate counts for one run"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    files_skipped: int = Field(0, ge=0, description="Files with no registered adapter")
    files_excluded: int = Field(0, ge=0, description="Files dropped by excludePatterns")
    total_fragments: int = Field(0, ge=0)
    duplicate_groups: int = Field(0, ge=0)
    exact_duplicates: int = Field(0, ge=0)
    near_duplicates: int = Field(0, ge=0)
    duplicated_lines: int = Field(0, ge=0)
    timings: Dict[str, Any] = Field(default_factory=dict)


class AnalyzerResult(BaseModel):
    """
    Complete result of a detection run

    Serialized with camelCase keys: violations, filesProcessed,
    executionTime (ms), errors, status.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    analyzer_name: str = 'dry'
    violations: List[Violation] = Field(default_factory=list)
    files_processed: int = Field(0, ge=0)
    execution_time: float = Field(0.0, ge=0.0, description="Wall time in milliseconds")
    errors: List[FileError] = Field(default_factory=list)
    status: RunStatus = RunStatus.COMPLETED
    metrics: ScanMetrics = Field(default_factory=ScanMetrics)

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for violation in self.violations if violation.severity == severity.value)

    @computed_field(alias='healthScore')
    @property
    def health_score(self) -> int:
        """Bounded 0-100 score; each critical and warning violation costs points"""
        penalty = (
            self.count_by_severity(Severity.CRITICAL) * HealthScoreWeights.CRITICAL
            + self.count_by_severity(Severity.WARNING) * HealthScoreWeights.WARNING
            + self.count_by_severity(Severity.SUGGESTION) * HealthScoreWeights.SUGGESTION
        )
        score = HealthScoreWeights.MAX_SCORE - penalty
        return max(HealthScoreWeights.MIN_SCORE, min(HealthScoreWeights.MAX_SCORE, score))

    @property
    def cancelled(self) -> bool:
        return self.status == RunStatus.CANCELLED.value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the driver with camelCase keys."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
