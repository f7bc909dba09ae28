"""
Run configuration for duplicate detection

Plain key/value settings supplied by the caller. Keys may be given in
camelCase (``minLineThreshold``) or snake_case (``min_line_threshold``).
Any invalid value fails the whole run with ConfigurationError before a
single file is processed.
"""

from typing import Any, List, Mapping, Optional, Pattern, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .constants import ExtractionDefaults
from .errors import ConfigurationError
from .similarity.config import SimilarityConfig
from .utils.globs import compile_glob, matches_any


class DRYConfig(BaseModel):
    """Settings for one duplicate detection run"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
    )

    min_line_threshold: int = Field(
        ExtractionDefaults.MIN_LINE_THRESHOLD,
        ge=1,
        description="Minimum original line count for a block duplicate group"
    )
    similarity_threshold: float = Field(
        1.0,
        gt=0.0,
        le=1.0,
        description="Minimum pairwise similarity to join a group"
    )
    near_duplicates: bool = False
    ignore_whitespace: bool = False
    ignore_comments: bool = False
    normalize_identifiers: bool = False
    check_strings: bool = False
    min_string_length: int = Field(
        ExtractionDefaults.MIN_STRING_LENGTH,
        ge=ExtractionDefaults.MIN_STRING_LENGTH_FLOOR,
    )
    min_string_occurrences: int = Field(ExtractionDefaults.MIN_STRING_OCCURRENCES, ge=2)
    check_imports: bool = False
    check_unused_imports: bool = False
    count_type_only_usage: bool = Field(
        True,
        description="Treat a reference in a type position as a use of the import"
    )
    exclude_patterns: List[str] = Field(default_factory=list)

    _compiled_excludes: List[Pattern[str]] = PrivateAttr(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def apply_near_duplicate_default(cls, data: Any) -> Any:
        """Near-duplicate mode lowers the default threshold unless one was given"""
        if not isinstance(data, Mapping):
            return data
        near = data.get('nearDuplicates', data.get('near_duplicates', False))
        explicit = 'similarityThreshold' in data or 'similarity_threshold' in data
        if near is True and not explicit:
            data = dict(data)
            data['similarityThreshold'] = SimilarityConfig.NEAR_DUPLICATE_THRESHOLD
        return data

    @field_validator('exclude_patterns')
    @classmethod
    def validate_exclude_patterns(cls, v: List[str]) -> List[str]:
        """Every pattern must compile"""
        for pattern in v:
            compile_glob(pattern)
        return v

    def model_post_init(self, __context: Any) -> None:
        compiled = []
        for pattern in self.exclude_patterns:
            compiled.extend(compile_glob(pattern))
        self._compiled_excludes = compiled

    @property
    def is_near_duplicate_mode(self) -> bool:
        return self.similarity_threshold < 1.0

    def is_excluded(self, file_path: str) -> bool:
        return matches_any(file_path, self._compiled_excludes)


def load_config(config: Union[DRYConfig, Mapping[str, Any], None] = None) -> DRYConfig:
    """Validate caller-supplied settings.

    Raises:
        ConfigurationError: If any key is unknown or any value is invalid
    """
    if config is None:
        return DRYConfig()
    if isinstance(config, DRYConfig):
        return config
    if not isinstance(config, Mapping):
        raise ConfigurationError(f"configuration must be a mapping, got {type(config).__name__}")
    try:
        return DRYConfig.model_validate(dict(config))
    except ValidationError as exc:
        details = '; '.join(
            f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {details}") from exc


def describe(config: Optional[DRYConfig]) -> dict:
    """camelCase view of the effective settings, for reports and logs."""
    return (config or DRYConfig()).model_dump(by_alias=True)
