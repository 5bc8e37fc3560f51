"""Field mapper: key renaming between application and persisted shapes."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from budgetsync.core.errors import ValidationError
from budgetsync.models.request_models import RequestStatus
from budgetsync.sync.field_mapper import FIELD_MAP, to_domain, to_persisted
from tests.conftest import make_request


def test_round_trip_fully_populated_request():
    request = make_request(
        status=RequestStatus.PARTIAL_TM,
        updated_at="2026-03-04T08:00:00.000000Z",
        approved_amount=900.0,
        tm_comment="Trimmed outdoor",
    )

    assert to_domain(to_persisted(request)) == request


def test_full_record_uses_snake_case_columns():
    row = to_persisted(make_request(approved_amount=10.0, tm_comment="ok"))

    assert set(row) == set(FIELD_MAP.values())
    assert row["status"] == "PENDING_TM"
    assert row["branches"][0] == {
        "branchId": "b-101",
        "amount": 500.0,
        "promoTypeId": "p-flyers",
        "comment": "Spring",
    }


def test_partial_record_maps_only_present_keys():
    row = to_persisted({"status": RequestStatus.REJECTED, "tmComment": "Over budget"})

    assert row == {"status": "REJECTED", "tm_comment": "Over budget"}


def test_unset_optionals_are_not_invented():
    row = to_persisted(make_request())

    assert "approved_amount" not in row
    assert "tm_comment" not in row


def test_none_values_are_dropped_from_partials():
    assert to_persisted({"status": "SIGNED", "approvedAmount": None}) == {"status": "SIGNED"}


def test_unknown_key_is_rejected():
    with pytest.raises(ValidationError):
        to_persisted({"status": "SIGNED", "approved": 5})


def test_to_domain_treats_null_and_absent_optionals_as_unset():
    row = to_persisted(make_request())
    with_nulls = dict(row, approved_amount=None, tm_comment=None)

    assert to_domain(row).approved_amount is None
    assert to_domain(with_nulls).tm_comment is None


def test_to_domain_requires_schema_columns():
    row = to_persisted(make_request())
    del row["rtm_id"]

    with pytest.raises(ValidationError):
        to_domain(row)


def test_to_domain_ignores_extra_columns():
    row = dict(to_persisted(make_request()), inserted_by="trigger")

    assert to_domain(row).id == "req-1"


def test_request_rejects_non_iso_timestamps():
    with pytest.raises(PydanticValidationError, match="ISO-8601"):
        make_request("req-new", created_at="yesterday")


def test_persisted_row_with_bad_updated_at_is_rejected():
    row = to_persisted(make_request())
    row["updated_at"] = "soon"

    with pytest.raises(PydanticValidationError):
        to_domain(row)
