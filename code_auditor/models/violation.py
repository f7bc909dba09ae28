"""
Violation Model - a single reported finding

Violations are the only output of a detection pass that outlives the run.
They serialize with camelCase keys for the driver and reporting collaborators.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Severity levels, most severe first"""
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class ViolationType(str, Enum):
    EXACT_DUPLICATE = "exact-duplicate"
    SIMILAR_LOGIC = "similar-logic"
    DUPLICATE_STRING = "duplicate-string-literal"
    DUPLICATE_IMPORT = "duplicate-import"
    DUPLICATE_IMPORT_SET = "duplicate-import-set"
    UNUSED_IMPORT = "unused-import"


class ViolationLocation(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file: str
    line: int = Field(..., ge=1)


class DuplicateMetrics(BaseModel):
    """Size figures attached to duplicate-group violations"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    occurrences: int = Field(..., ge=1)
    line_count: int = Field(..., ge=0)
    duplicated_lines: int = Field(0, ge=0)
    affected_files: int = Field(1, ge=1)


class Violation(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    type: ViolationType
    severity: Severity
    message: str
    file: str
    line: int = Field(..., ge=1)
    locations: List[ViolationLocation] = Field(default_factory=list)
    similarity: Optional[float] = Field(None, ge=0.0, le=1.0)
    recommendation: Optional[str] = None
    analyzer: str = 'dry'
    metrics: Optional[DuplicateMetrics] = None

    @property
    def sort_key(self):
        return (self.file, self.line, self.type, self.message)
