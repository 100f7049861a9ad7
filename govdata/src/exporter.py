"""
Exporter Module
Renders contract records as JSON or CSV text.
"""

import json
import logging
from typing import Any, Iterable, List, Mapping, Union

from .models import ContractRecord

logger = logging.getLogger(__name__)

RecordLike = Union[ContractRecord, Mapping[str, Any]]


def _as_dict(record: RecordLike) -> dict:
    if isinstance(record, ContractRecord):
        return record.to_dict()
    return dict(record)


def _csv_cell(value: Any) -> str:
    """
    Render one CSV cell.

    Only strings containing a comma or a double quote are quoted, with
    inner quotes doubled.
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        value = json.dumps(value, ensure_ascii=False, default=str)
    elif not isinstance(value, str):
        return str(value)

    if ',' in value or '"' in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def convert_to_csv(records: Iterable[RecordLike]) -> str:
    """
    Convert records to CSV text.

    The header is the first record's keys followed by any keys that
    only later records carry; a record missing a column gets an empty
    cell. Rows are joined with ``\\n``; an empty input gives an empty
    string.

    Args:
        records: ContractRecord objects or plain mappings

    Returns:
        CSV text
    """
    rows: List[dict] = [_as_dict(record) for record in records]
    if not rows:
        return ''

    headers = list(rows[0].keys())
    for row in rows[1:]:
        for key in row:
            if key not in headers:
                headers.append(key)

    lines = [','.join(headers)]

    for row in rows:
        lines.append(','.join(_csv_cell(row.get(header)) for header in headers))

    logger.debug(f"Rendered {len(rows)} records as CSV")
    return '\n'.join(lines)


def format_as_json(records: Iterable[RecordLike]) -> str:
    """Pretty-printed JSON array of records, fields in output order."""
    return json.dumps([_as_dict(record) for record in records], indent=2, ensure_ascii=False, default=str)
