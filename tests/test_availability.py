from datetime import date

from hr201.core.dates import DateSet
from hr201.models.request_status import RequestKind
from hr201.services.availability import AvailabilityResolver


def test_no_approved_requests_means_everyone_available(db_session, employee_a, employee_b):
    resolver = AvailabilityResolver(db_session)
    assert resolver.find_unavailable([employee_a.id, employee_b.id], DateSet.from_raw(["2025-03-10"])) == set()


def test_approved_leave_blocks_only_that_employee(db_session, employee_a, employee_b, approved_leave):
    approved_leave(employee_a, ["2025-03-10", "2025-03-11"])
    resolver = AvailabilityResolver(db_session)

    conflicts = resolver.find_conflicts([employee_a.id, employee_b.id], DateSet.from_raw(["2025-03-11", "2025-03-12"]))

    assert conflicts == {employee_a.id: [date(2025, 3, 11)]}
    assert resolver.find_unavailable([employee_a.id, employee_b.id], DateSet.from_raw(["2025-03-11"])) == {employee_a.id}


def test_approved_travel_blocks_every_participant(db_session, employee_a, employee_b, approved_travel):
    approved_travel([employee_a, employee_b], ["2025-05-02"])
    resolver = AvailabilityResolver(db_session)

    assert resolver.find_unavailable([employee_a.id, employee_b.id], DateSet.from_raw(["2025-05-02"])) == {
        employee_a.id, employee_b.id,
    }


def test_pending_returned_and_cancelled_requests_do_not_count(
    db_session, lifecycle, admin_user, portal_user, employee_a, leave_types
):
    pending = lifecycle.submit_leave(admin_user, employee_a.id, leave_types["VL"].id, ["2025-03-10"]).unwrap()
    cancelled = lifecycle.submit_leave(admin_user, employee_a.id, leave_types["VL"].id, ["2025-03-11"]).unwrap()
    lifecycle.change_status(RequestKind.LEAVE, cancelled.id, "Cancelled", admin_user, remarks="duplicate").unwrap()
    returned = lifecycle.submit_leave(portal_user, employee_a.id, leave_types["SL"].id, ["2025-03-12"]).unwrap()
    lifecycle.change_status(RequestKind.LEAVE, returned.id, "Returned", admin_user, remarks="attach certificate").unwrap()

    resolver = AvailabilityResolver(db_session)
    dates = DateSet.from_raw(["2025-03-10", "2025-03-11", "2025-03-12"])
    assert resolver.find_unavailable([employee_a.id], dates) == set()
    assert pending.status == "For Approval"


def test_excluded_request_does_not_conflict_with_itself(db_session, employee_a, approved_leave):
    request = approved_leave(employee_a, ["2025-03-10"])
    resolver = AvailabilityResolver(db_session)
    dates = DateSet.from_raw(["2025-03-10"])

    assert resolver.find_unavailable([employee_a.id], dates) == {employee_a.id}
    assert resolver.find_unavailable([employee_a.id], dates, exclude_request_id=request.id) == set()


def test_leave_and_travel_conflicts_are_merged(db_session, employee_a, approved_leave, approved_travel):
    approved_leave(employee_a, ["2025-03-10"])
    approved_travel([employee_a], ["2025-03-12"])
    resolver = AvailabilityResolver(db_session)

    conflicts = resolver.find_conflicts([employee_a.id], DateSet.from_raw(["2025-03-10", "2025-03-11", "2025-03-12"]))
    assert conflicts == {employee_a.id: [date(2025, 3, 10), date(2025, 3, 12)]}


def test_empty_inputs(db_session, employee_a):
    resolver = AvailabilityResolver(db_session)
    assert resolver.find_conflicts([], DateSet.from_raw(["2025-03-10"])) == {}
    assert resolver.find_conflicts([employee_a.id], DateSet()) == {}
