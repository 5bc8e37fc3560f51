"""Status workflow: legal edges, roles, required and cleaned extras."""

import pytest

from budgetsync.core.errors import ValidationError
from budgetsync.models.reference_models import User, UserRole
from budgetsync.models.request_models import RequestStatus
from budgetsync.sync import workflow
from tests.conftest import make_request

TM = User(id="u-tm", name="TM", role=UserRole.TM)
RTM = User(id="u-rtm", name="RTM", role=UserRole.RTM)
FINANCE = User(id="u-fin", name="Finance", role=UserRole.FINANCE)
ASSISTANT = User(id="u-asst", name="Assistant", role=UserRole.ASSISTANT)


def test_allowed_targets_from_pending():
    assert set(workflow.allowed_targets(RequestStatus.PENDING_TM)) == {
        RequestStatus.APPROVED_TM,
        RequestStatus.PARTIAL_TM,
        RequestStatus.REJECTED,
    }


@pytest.mark.parametrize("status", sorted(workflow.TERMINAL_STATUSES))
def test_terminal_states_have_no_exits(status):
    assert workflow.allowed_targets(status) == []


def test_allowed_targets_respects_role():
    assert workflow.allowed_targets(RequestStatus.SIGNED, ASSISTANT) == []
    assert workflow.allowed_targets(RequestStatus.SIGNED, FINANCE) == [RequestStatus.PAID]


def test_partial_requires_amount_and_comment():
    request = make_request()

    with pytest.raises(ValidationError, match="requires"):
        workflow.check_transition(request, RequestStatus.PARTIAL_TM, {"approvedAmount": 100})


def test_partial_amount_is_capped_by_requested_total():
    request = make_request()

    with pytest.raises(ValidationError, match="outside"):
        workflow.check_transition(
            request, RequestStatus.PARTIAL_TM, {"approvedAmount": 5000, "tmComment": "x"}
        )


def test_reject_requires_non_blank_comment():
    with pytest.raises(ValidationError):
        workflow.check_transition(make_request(), RequestStatus.REJECTED, {"tmComment": "   "})


def test_reject_does_not_accept_an_amount():
    with pytest.raises(ValidationError, match="not allowed"):
        workflow.check_transition(
            make_request(), RequestStatus.REJECTED, {"tmComment": "no", "approvedAmount": 1}
        )


def test_sign_accepts_no_extra_fields():
    request = make_request(status=RequestStatus.APPROVED_TM)

    with pytest.raises(ValidationError):
        workflow.check_transition(request, RequestStatus.SIGNED, {"tmComment": "late"})


def test_approve_cleans_optional_extras():
    fields = workflow.check_transition(
        make_request(), RequestStatus.APPROVED_TM, {"approvedAmount": 1000, "tmComment": ""}
    )

    assert fields == {"approvedAmount": 1000.0}


def test_role_gate_blocks_wrong_actor():
    with pytest.raises(ValidationError, match="Role RTM"):
        workflow.check_transition(make_request(), RequestStatus.APPROVED_TM, actor=RTM)

    assert workflow.check_transition(make_request(), RequestStatus.APPROVED_TM, actor=TM) == {}


def test_check_create_requires_initial_status():
    with pytest.raises(ValidationError):
        workflow.check_create(make_request(status=RequestStatus.APPROVED_TM))


def test_check_create_rejects_finance_submitter():
    with pytest.raises(ValidationError):
        workflow.check_create(make_request(), actor=FINANCE)

    workflow.check_create(make_request(), actor=RTM)


def test_effective_approved_amount_defaults_to_requested_total():
    assert make_request().effective_approved_amount == 0.0
    assert make_request(status=RequestStatus.APPROVED_TM).effective_approved_amount == 1250.0
    partial = make_request(status=RequestStatus.PARTIAL_TM, approved_amount=400.0)
    assert partial.effective_approved_amount == 400.0


@pytest.mark.parametrize("amount", [float("nan"), float("-inf"), True, "100"])
def test_partial_rejects_non_numeric_or_non_finite_amounts(amount):
    with pytest.raises(ValidationError, match="approvedAmount"):
        workflow.check_transition(
            make_request(),
            RequestStatus.PARTIAL_TM,
            {"approvedAmount": amount, "tmComment": "Trim"},
        )


def test_partial_accepts_integer_amount():
    fields = workflow.check_transition(
        make_request(), RequestStatus.PARTIAL_TM, {"approvedAmount": 600, "tmComment": "Trim"}
    )

    assert fields["approvedAmount"] == 600.0
