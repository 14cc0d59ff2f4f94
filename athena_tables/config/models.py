"""Table definition models.

``TableConfig`` mirrors one entry of the ``custom.athenaTables`` section as
the host hands it over: every key is optional and presence is checked later
by the registry. ``TableDefinition`` is the validated, immutable record the
operator works with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TableConfig(BaseModel):
    """Raw Athena table entry, keyed the way service configs spell it."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    ddl: Optional[str] = Field(default=None, alias="DDL")
    ddl_file: Optional[str] = Field(default=None, alias="DDLFile")
    ddl_substitutions: Optional[Dict[str, Any]] = Field(
        default=None, alias="DDLSubstitutions"
    )
    substitute_all: bool = Field(default=False, alias="DDLSubstituteAll")
    output_location: Optional[str] = Field(default=None, alias="OutputLocation")
    table_name: Optional[str] = Field(default=None, alias="TableName")
    database_name: Optional[str] = Field(default=None, alias="DatabaseName")


@dataclass(frozen=True)
class InlineDDL:
    text: str


@dataclass(frozen=True)
class FileDDL:
    path: Path


DDLSource = Union[InlineDDL, FileDDL]


@dataclass(frozen=True)
class TableDefinition:
    """A validated table definition, immutable for one create/delete run."""

    name: str
    ddl_source: DDLSource
    output_location: str
    table_name: str
    database_name: Optional[str] = None
    substitutions: Mapping[str, str] = field(default_factory=dict)
    substitute_all: bool = False

    @property
    def query_context(self) -> Dict[str, Any]:
        """Location/database arguments shared by every query for this table."""
        return {
            "output_location": self.output_location,
            "database_name": self.database_name,
        }
