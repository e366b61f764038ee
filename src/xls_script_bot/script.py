"""SQL report script generation."""

from __future__ import annotations

from typing import Iterable, List

CONTRACT_PREFIX = "EP-"
SCRIPT_FILE_NAME = "script.txt"

_HEADER = """SELECT
    sort_order.number AS 'Номер договору',
    dbo.getCagentFullName(c.id_acquisitor) AS 'Аквізитор',
    dbo.getCagentFullName(c.id_responsible) AS 'Відповідальна особа',
    sc.name AS 'Канал продажів',
    ssc.name AS 'Підканал продажів',
    div.name AS 'Обліковий підрозділ',
    parent_div.name AS 'Вищестоящий підрозділ'
FROM (VALUES
"""

_FOOTER = """
) AS sort_order(number, sort_seq)
LEFT JOIN contract c ON c.number = sort_order.number
LEFT JOIN sales_channel sc ON sc.id = c.id_sales_channel
LEFT JOIN sales_channel ssc ON ssc.id = c.id_sales_subchannel
LEFT JOIN division div ON div.id = c.id_division
LEFT JOIN helement h_div ON h_div.id = div.id
LEFT JOIN division parent_div ON parent_div.id = h_div.id_parent
ORDER BY sort_order.sort_seq;"""


def value_row(record: str, index: int) -> str:
    """Inline VALUES tuple for one record. Record text is inserted verbatim."""
    return f"    ('{CONTRACT_PREFIX}{record}', {index})"


def generate_sql_script(records: Iterable[str]) -> str:
    """
    Render the contract report query for *records*, keeping their order.

    Each record becomes a ``('EP-<record>', <position>)`` row of the inline
    ``sort_order`` table and the result is ordered by that position. An empty
    input still produces the full statement with an empty VALUES list.
    """
    rows: List[str] = [value_row(record, index) for index, record in enumerate(records)]
    return _HEADER + ",\n".join(rows) + _FOOTER


__all__ = ["CONTRACT_PREFIX", "SCRIPT_FILE_NAME", "generate_sql_script", "value_row"]
