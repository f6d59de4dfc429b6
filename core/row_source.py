"""
Row source interface.

The dashboard only ever asks a row source for one slice of rows, already
sorted by date ascending on the server side. Two implementations exist:
`core.ads_client.AdsApiClient` (the HTTP backend) and `StaticRowSource`
(an in-memory snapshot for scripts and tests).
"""
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Protocol, Union, runtime_checkable

from core.models import AdEventRow
from core.validators import validate_ad_row


@runtime_checkable
class RowSource(Protocol):
    """Anything that can hand out a page of ad rows."""

    async def fetch_rows(self, limit: int, offset: int = 0) -> List[AdEventRow]:
        ...


class StaticRowSource:
    """
    Row source backed by an in-memory list.

    Accepts AdEventRow instances or raw backend dicts; dicts go through
    AdEventRow.from_api so they get the same coercion as fetched rows.
    """

    def __init__(self, rows: Iterable[Union[AdEventRow, Dict[str, Any]]] = ()):
        self._rows: List[AdEventRow] = [
            row if isinstance(row, AdEventRow) else AdEventRow.from_api(row)
            for row in rows
        ]

    async def fetch_rows(self, limit: int, offset: int = 0) -> List[AdEventRow]:
        return self._rows[offset:offset + limit]

    async def count_rows(self) -> int:
        return len(self._rows)

    async def insert_row(self, row: Union[AdEventRow, Dict[str, Any]]) -> AdEventRow:
        """
        Append a row, assigning the next id when it has none.

        Raises:
            ValidationError: If a dict payload is invalid
        """
        if not isinstance(row, AdEventRow):
            row = AdEventRow.from_api(validate_ad_row(row))
        if row.id is None:
            next_id = max((r.id for r in self._rows if r.id is not None), default=0) + 1
            row = replace(row, id=next_id)
        self._rows.append(row)
        return row
