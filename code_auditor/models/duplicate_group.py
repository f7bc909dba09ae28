"""
DuplicateGroup Model - a clique of mutually similar fragments

Every member is at least ``similarity`` similar to every other member;
``similarity`` is the minimum pairwise score inside the group.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, computed_field, field_validator

from .fragment import Fragment, FragmentKind


class SimilarityMethod(str, Enum):
    """Method used to determine similarity"""
    EXACT_MATCH = "exact_match"  # Identical normalized text
    TOKEN_SEQUENCE = "token_sequence"  # Matching-block token ratio


class DuplicateGroup(BaseModel):
    """
    Group of fragments detected as duplicates

    Members are ordered by ascending (file path, line).
    """

    group_id: str = Field(..., description="Unique identifier for this duplicate group")
    kind: FragmentKind
    fragments: List[Fragment] = Field(
        ...,
        min_length=2,
        description="Members of the group"
    )
    similarity: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Minimum pairwise similarity (1.0 = identical)"
    )
    similarity_method: SimilarityMethod

    @field_validator('fragments')
    @classmethod
    def validate_member_order(cls, v: List[Fragment]) -> List[Fragment]:
        """Keep members in deterministic (file, line) order"""
        return sorted(v, key=lambda fragment: fragment.sort_key)

    @computed_field
    @property
    def occurrence_count(self) -> int:
        return len(self.fragments)

    @computed_field
    @property
    def line_count(self) -> int:
        """Smallest original line count among the members"""
        return min(fragment.line_count for fragment in self.fragments)

    @computed_field
    @property
    def total_lines(self) -> int:
        return sum(fragment.line_count for fragment in self.fragments)

    @computed_field
    @property
    def duplicated_lines(self) -> int:
        """Lines that would disappear if the group were consolidated into one copy"""
        average = self.total_lines / self.occurrence_count
        return int(average * (self.occurrence_count - 1))

    @computed_field
    @property
    def affected_files(self) -> List[str]:
        return sorted({fragment.file_path for fragment in self.fragments})

    @property
    def is_exact(self) -> bool:
        return self.similarity_method == SimilarityMethod.EXACT_MATCH

    def contains_group(self, other: "DuplicateGroup") -> bool:
        """True when every member of ``other`` lies inside some member of this group."""
        return all(
            any(outer.contains(inner) for outer in self.fragments)
            for inner in other.fragments
        )
