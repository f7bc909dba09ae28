"""
Extracted summaries - the stable surface analyzers consume

Adapters map their language's tree shape onto these models so generic
analyzers never need to touch raw nodes.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .parse_tree import SourceLocation


class ParameterInfo(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    type: Optional[str] = None
    optional: bool = False
    default_value: Optional[str] = None


class FunctionInfo(BaseModel):
    """A function, method or named function expression."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    location: SourceLocation
    parameters: List[ParameterInfo] = Field(default_factory=list)
    return_type: Optional[str] = None
    is_async: bool = False
    is_exported: bool = False
    is_method: bool = False
    class_name: Optional[str] = None
    complexity: int = Field(1, ge=1)


class PropertyInfo(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    location: SourceLocation
    type: Optional[str] = None
    is_static: bool = False
    is_private: bool = False
    is_readonly: bool = False


class ClassInfo(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    location: SourceLocation
    methods: List[FunctionInfo] = Field(default_factory=list)
    properties: List[PropertyInfo] = Field(default_factory=list)
    extends: List[str] = Field(default_factory=list)
    implements: List[str] = Field(default_factory=list)
    is_exported: bool = False
    is_abstract: bool = False


class ImportSpecifier(BaseModel):
    """One name bound by an import statement."""

    name: str
    alias: Optional[str] = None
    is_default: bool = False
    is_namespace: bool = False

    @property
    def local_name(self) -> str:
        """The identifier this specifier binds in the importing file."""
        if self.alias:
            return self.alias
        if self.is_namespace and '.' in self.name:
            # `import a.b` binds `a`
            return self.name.split('.')[0]
        return self.name


class ImportInfo(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    module: str
    specifiers: List[ImportSpecifier] = Field(default_factory=list)
    location: SourceLocation
    is_type_only: bool = False


class ExportKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    TYPE = "type"


class ExportInfo(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    kind: ExportKind = ExportKind.VARIABLE
    location: SourceLocation
    is_default: bool = False
    source: Optional[str] = Field(None, description="Module re-exported from, if any")


class IdentifierUsage(BaseModel):
    """A reference to a name outside of import statements."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    location: SourceLocation
    is_type_position: bool = False
