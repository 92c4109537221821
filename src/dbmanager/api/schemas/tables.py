"""
Request bodies of the table endpoints.

Names and types are only checked for shape here; the identifier grammar
and the type vocabulary are enforced by :mod:`dbmanager.core.validators`
so every transport reports the same errors.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ColumnSpec(BaseModel):
    """One column of a table definition."""

    name: str = Field(description="Column name")
    type: str = Field(description="Portable type: integer, string, text, boolean, ...")


class CreateTableBody(BaseModel):
    """Request body for creating a table.

    Example:
        {"columnList": [{"name": "title", "type": "string"}, {"name": "done", "type": "boolean"}]}
    """

    columnList: list[ColumnSpec] = Field(
        default_factory=list, description="Columns; an integer 'id' is added when absent"
    )

    def columns(self) -> list[dict[str, Any]]:
        return [c.model_dump() for c in self.columnList]


class ColumnChangeSpec(BaseModel):
    """One column change of a schema update."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(description="'add' | 'rename' | 'drop'")
    name: str = Field(description="Column to add, rename or drop")
    type: str | None = Field(default=None, description="Portable type (add only)")
    new_name: str | None = Field(default=None, alias="newName", description="New name (rename only)")


class UpdateTableBody(BaseModel):
    """Request body for altering a table.

    Example:
        {"changes": [{"action": "rename", "name": "title", "newName": "label"}]}
    """

    changes: list[ColumnChangeSpec] = Field(
        default_factory=list, description="Ordered column changes"
    )

    def change_list(self) -> list[dict[str, Any]]:
        return [c.model_dump(exclude_none=True) for c in self.changes]
