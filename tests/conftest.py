"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • fake_supabase:         in-memory stand-in for the Supabase client's
                         table query builder
  • make_session(...):     build a SessionResponse with sensible defaults
"""

from __future__ import annotations

import copy
import os
import re
import sys
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Ensure the project root is on the path so all stack_api imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from stack_api.modules.sessions.schemas import SessionResponse  # noqa: E402


# ---------------------------------------------------------------------------
# Fake Supabase
# ---------------------------------------------------------------------------

def like_to_regex(pattern: str) -> str:
    """SQL LIKE to regex: % and _ are wildcards, a backslash escapes the next character"""
    parts = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


class FakeQuery:
    """Records a PostgREST-style chain and runs it against in-memory rows."""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List = []
        self.orders: List = []
        self.row_limit: Optional[int] = None
        self.row_offset = 0
        self.want_count = False

    # building

    def select(self, *columns, count=None):
        self.op = "select"
        self.want_count = count is not None
        return self

    def insert(self, data):
        self.op = "insert"
        self.payload = data
        return self

    def update(self, data):
        self.op = "update"
        self.payload = data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def _filter(self, fn):
        self.filters.append(fn)
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(lambda row: row.get(column) in values)

    def ilike(self, column, pattern):
        regex = re.compile(like_to_regex(pattern), re.IGNORECASE | re.DOTALL)
        return self._filter(lambda row: regex.fullmatch(row.get(column) or "") is not None)

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) < value)

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def range(self, start, end):
        self.row_offset = start
        self.row_limit = end - start + 1
        return self

    # running

    def _matches(self, row):
        return all(fn(row) for fn in self.filters)

    def execute(self):
        self.client.calls.append((self.table_name, self.op))
        if self.client.fail_with is not None:
            raise self.client.fail_with
        rows = self.client.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = copy.deepcopy(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return SimpleNamespace(data=inserted, count=None)

        matched = [row for row in rows if self._matches(row)]

        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=[copy.deepcopy(r) for r in matched], count=None)

        if self.op == "delete":
            self.client.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=[copy.deepcopy(r) for r in matched], count=None)

        for column, desc in reversed(self.orders):
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        total = len(matched)
        matched = matched[self.row_offset:]
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        return SimpleNamespace(data=[copy.deepcopy(r) for r in matched], count=total if self.want_count else None)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.calls: List = []
        self.fail_with: Optional[Exception] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: dict) -> List[dict]:
        stored = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", str(uuid.uuid4()))
            self.tables.setdefault(table, []).append(row)
            stored.append(row)
        return stored

    def rows(self, table: str) -> List[dict]:
        return self.tables.get(table, [])


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------

def iso(*args) -> str:
    return datetime(*args, tzinfo=timezone.utc).isoformat()


def _session(
    id: Optional[str] = None,
    user_id: str = "u1",
    game_type: str = "Cash Game",
    game_name: str = "Bellagio $2/$5",
    stakes: str = "$2/$5",
    start: datetime = datetime(2024, 3, 4, 20, 0, tzinfo=timezone.utc),
    hours: float = 4.0,
    buy_in: float = 500.0,
    cashout: float = 700.0,
    profit: Optional[float] = None,
    adjusted_profit: Optional[float] = None,
    **extra,
) -> SessionResponse:
    return SessionResponse(
        id=id or str(uuid.uuid4()),
        user_id=user_id,
        game_type=game_type,
        game_name=game_name,
        stakes=stakes,
        start_date=start,
        start_time=start,
        end_time=start,
        hours_played=hours,
        buy_in=buy_in,
        cashout=cashout,
        profit=cashout - buy_in if profit is None else profit,
        adjusted_profit=adjusted_profit,
        **extra,
    )


@pytest.fixture
def make_session():
    return _session
