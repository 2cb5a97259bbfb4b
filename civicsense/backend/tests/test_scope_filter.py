import datetime as dt

from auth import AdminPrincipal, CitizenPrincipal, DepartmentPrincipal, MandalAdminPrincipal
from services.repositories import TimeWindow
from services.scope_filter import filter_reports

from conftest import NOW, make_report


def test_admin_sees_everything(scenario_reports):
    assert filter_reports(AdminPrincipal(id="a"), scenario_reports) == tuple(scenario_reports)


def test_department_sees_only_its_department(scenario_reports):
    principal = DepartmentPrincipal(id="d", department="Public Works")
    subset = filter_reports(principal, scenario_reports)
    assert subset == tuple(r for r in scenario_reports if r.department == "Public Works")
    assert len(subset) == 2


def test_mandal_admin_sees_only_its_area(scenario_reports):
    principal = MandalAdminPrincipal(id="m", mandal_area="North Zone")
    subset = filter_reports(principal, scenario_reports)
    assert [r.id for r in subset] == ["report-002"]


def test_mandal_area_match_is_exact(scenario_reports):
    # "All Zones" is a stored value like any other, not a wildcard.
    principal = MandalAdminPrincipal(id="m", mandal_area="All Zones")
    assert filter_reports(principal, scenario_reports) == ()


def test_citizen_sees_own_reports(scenario_reports):
    subset = filter_reports(CitizenPrincipal(id="user-005"), scenario_reports)
    assert [r.id for r in subset] == ["report-001"]


def test_citizen_never_matches_unattributed_reports():
    reports = [make_report(1, reported_by=None)]
    assert filter_reports(CitizenPrincipal(id=""), reports) == ()


def test_unknown_principal_fails_closed(scenario_reports):
    class Auditor:
        id = "x"
        role = "auditor"

    assert filter_reports(Auditor(), scenario_reports) == ()


def test_window_is_half_open():
    start = NOW - dt.timedelta(days=2)
    window = TimeWindow(start=start, end=NOW)
    reports = [
        make_report(1, created_at=start),
        make_report(2, created_at=NOW - dt.timedelta(seconds=1)),
        make_report(3, created_at=NOW),
        make_report(4, created_at=start - dt.timedelta(seconds=1)),
    ]
    subset = filter_reports(AdminPrincipal(id="a"), reports, window)
    assert [r.id for r in subset] == ["report-001", "report-002"]


def test_window_and_role_compose(scenario_reports):
    window = TimeWindow(start=dt.datetime(2024, 1, 13, tzinfo=dt.timezone.utc), end=NOW)
    principal = DepartmentPrincipal(id="d", department="Public Works")
    subset = filter_reports(principal, scenario_reports, window)
    assert {r.id for r in subset} == {"report-001", "report-003"}

    narrow = TimeWindow(start=dt.datetime(2024, 1, 14, tzinfo=dt.timezone.utc), end=NOW)
    assert [r.id for r in filter_reports(principal, scenario_reports, narrow)] == ["report-001"]


def test_inputs_are_not_mutated(scenario_reports):
    before = list(scenario_reports)
    filter_reports(DepartmentPrincipal(id="d", department="Public Works"), scenario_reports)
    assert scenario_reports == before
