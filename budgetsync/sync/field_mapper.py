"""BudgetSync — Field Mapper.

Fixed 1:1 key renaming between the application request shape (camelCase)
and the persisted ``requests`` row (snake_case). Partial records map to
partial rows: only keys present on the input appear in the output.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel

from budgetsync.core.errors import ValidationError
from budgetsync.models.request_models import MarketingRequest

# application key -> persisted column
FIELD_MAP: Dict[str, str] = {
    "id": "id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "rtmId": "rtm_id",
    "rtmName": "rtm_name",
    "regionId": "region_id",
    "branches": "branches",
    "status": "status",
    "approvedAmount": "approved_amount",
    "tmComment": "tm_comment",
}

COLUMN_MAP: Dict[str, str] = {column: key for key, column in FIELD_MAP.items()}

OPTIONAL_COLUMNS = frozenset({"approved_amount", "tm_comment"})


def _plain(value: Any) -> Any:
    """Render enums and nested models as the JSON values they stand for."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_persisted(record: Union[MarketingRequest, Mapping[str, Any]]) -> Dict[str, Any]:
    """Map an application record (full or partial) to a persisted row."""
    if isinstance(record, MarketingRequest):
        record = record.model_dump(by_alias=True, exclude_none=True)

    row: Dict[str, Any] = {}
    for key, value in record.items():
        if key not in FIELD_MAP:
            raise ValidationError(f"Unknown request field '{key}'")
        if value is None:
            continue
        row[FIELD_MAP[key]] = _plain(value)
    return row


def to_domain(row: Mapping[str, Any]) -> MarketingRequest:
    """Map a persisted row to a MarketingRequest.

    Required columns must be present; absent or null optional columns become
    unset optionals. Columns outside the schema are ignored.
    """
    data: Dict[str, Any] = {}
    for column, key in COLUMN_MAP.items():
        if column not in row:
            if column in OPTIONAL_COLUMNS:
                continue
            raise ValidationError(f"Persisted row missing column '{column}'")
        data[key] = row[column]
    return MarketingRequest.model_validate(data)
