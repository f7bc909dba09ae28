"""
Fragment Model - a candidate unit for duplicate detection

Fragments are created per file during extraction and live only for one
detection pass. The fingerprint is derived from the normalized text so
fragments with equal normalized content always land in the same bucket.
"""

import hashlib
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .parse_tree import SourceLocation
from ..constants import FingerprintDefaults


class FragmentKind(str, Enum):
    BLOCK = "block"
    STRING_LITERAL = "string-literal"
    IMPORT_SET = "import-set"


class Fragment(BaseModel):
    """
    Candidate duplicate unit with its exact source span

    ``text`` is the original (re-indented) source, ``normalized_text`` is what
    the fingerprint and similarity comparisons see.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: FragmentKind
    file_path: str = Field(..., description="Path of the file the fragment came from")
    location: SourceLocation
    span: Tuple[int, int] = Field(..., description="Half-open character offsets")
    text: str = Field(..., description="Original source text of the fragment")
    normalized_text: str
    token_count: int = Field(..., ge=0)
    line_count: int = Field(..., ge=1, description="Original, non-normalized line count")
    node_kind: Optional[str] = Field(None, description="Adapter kind of the owning node")
    name: Optional[str] = Field(None, description="Owning function name, if any")
    complexity: int = Field(1, ge=1)

    @computed_field
    @property
    def fingerprint(self) -> str:
        """Fixed-width hash of the normalized text."""
        digest = hashlib.sha256(self.normalized_text.encode('utf-8')).hexdigest()
        return digest[:FingerprintDefaults.WIDTH]

    @property
    def line(self) -> int:
        return self.location.start.line

    @property
    def sort_key(self) -> Tuple[str, int, int, int]:
        return (self.file_path, self.location.start.line, self.location.start.column, -self.span[1])

    def overlaps(self, other: "Fragment") -> bool:
        """True when both fragments come from the same file and their spans intersect."""
        if self.file_path != other.file_path:
            return False
        return self.span[0] < other.span[1] and other.span[0] < self.span[1]

    def contains(self, other: "Fragment") -> bool:
        return (
            self.file_path == other.file_path
            and self.span[0] <= other.span[0]
            and other.span[1] <= self.span[1]
        )
