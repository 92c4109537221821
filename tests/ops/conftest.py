"""Shared fixtures for dbmanager.ops tests."""

from __future__ import annotations

import pytest

from dbmanager.ops import tables
from dbmanager.ops.context import OperationContext
from dbmanager.ops.requests import CreateTableRequest

BOOK_COLUMNS = [
    {"name": "title", "type": "string"},
    {"name": "author", "type": "string"},
    {"name": "price", "type": "float"},
]


@pytest.fixture
def books(ctx: OperationContext) -> str:
    """Create ``main.books`` (id, title, author, price) through the ops layer."""
    result = tables.create_table(
        ctx, CreateTableRequest(database="main", table="books", columns=BOOK_COLUMNS)
    )
    assert result.success, result.error
    return "books"
