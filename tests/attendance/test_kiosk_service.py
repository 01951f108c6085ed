from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import make_principal
from youth_admin.attendance.service import AttendanceService
from youth_admin.core.exceptions import AuthorizationError, ValidationError

MORNING = datetime(2026, 3, 10, 9, 0, 0)


@pytest.fixture
def service(attendance_repo):
    return AttendanceService(attendance_repo)


@pytest.fixture
def kiosk():
    return make_principal("kiosk_edit")


def test_check_in_skips_teens_already_in(service, attendance_repo, kiosk):
    assert service.check_in(principal=kiosk, teen_ids=[1, "2", 2, None, "x"], now=MORNING) == 2
    assert service.check_in(principal=kiosk, teen_ids=[2, 3], now=MORNING + timedelta(hours=1)) == 1

    assert sorted(r.teen_id for r in attendance_repo.records) == [1, 2, 3]


def test_check_out_then_in_again(service, attendance_repo, kiosk):
    service.check_in(principal=kiosk, teen_ids=[1], now=MORNING)

    assert service.check_out(principal=kiosk, teen_ids=[1], now=MORNING + timedelta(hours=2)) == 1
    assert service.check_out(principal=kiosk, teen_ids=[1], now=MORNING + timedelta(hours=3)) == 0
    assert service.check_in(principal=kiosk, teen_ids=[1], now=MORNING + timedelta(hours=4)) == 1
    assert len(attendance_repo.records) == 2


def test_yesterdays_open_visit_does_not_block_today(service, kiosk):
    service.check_in(principal=kiosk, teen_ids=[1], now=MORNING - timedelta(days=1))

    assert service.check_in(principal=kiosk, teen_ids=[1], now=MORNING) == 1


def test_today_lists_only_todays_records(service, kiosk):
    service.check_in(principal=kiosk, teen_ids=[1], now=MORNING - timedelta(days=1))
    service.check_in(principal=kiosk, teen_ids=[2], now=MORNING)

    records = service.today(principal=make_principal("kiosk_view"), now=MORNING + timedelta(hours=1))

    assert [r.teen_id for r in records] == [2]


def test_empty_selection_is_rejected(service, kiosk):
    with pytest.raises(ValidationError, match="No teens selected."):
        service.check_in(principal=kiosk, teen_ids=[], now=MORNING)
    with pytest.raises(ValidationError):
        service.check_out(principal=kiosk, teen_ids="1", now=MORNING)


def test_viewers_cannot_check_in(service):
    with pytest.raises(AuthorizationError):
        service.check_in(principal=make_principal("kiosk_view"), teen_ids=[1], now=MORNING)
