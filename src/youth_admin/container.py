from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .database.connection import DBConfig, DatabaseConnection
from .forms.mysql_assignment_repository import MySQLAssignmentRepository
from .forms.mysql_form_repository import MySQLFormRepository
from .forms.repository import AssignmentRepository, FormRepository
from .forms.service import AssignmentService, FormService
from .staff.mysql_staff_repository import MySQLStaffRepository
from .staff.repository import StaffRepository
from .staff.service import AuthService, StaffService
from .teens.mysql_teen_repository import MySQLTeenRepository
from .teens.repository import TeenRepository
from .teens.service import TeenService


@dataclass(frozen=True)
class Container:
    conn: object

    staff_repo: StaffRepository
    audit_repo: AuditRepository
    teens_repo: TeenRepository
    attendance_repo: AttendanceRepository
    forms_repo: FormRepository
    assignments_repo: AssignmentRepository

    auth_service: AuthService
    staff_service: StaffService
    teen_service: TeenService
    attendance_service: AttendanceService
    form_service: FormService
    assignment_service: AssignmentService


def wire_services(
    *,
    conn: object,
    staff_repo: StaffRepository,
    audit_repo: AuditRepository,
    teens_repo: TeenRepository,
    attendance_repo: AttendanceRepository,
    forms_repo: FormRepository,
    assignments_repo: AssignmentRepository,
) -> Container:
    """Build the services on top of any set of repositories (MySQL or in-memory)."""

    return Container(
        conn=conn,
        staff_repo=staff_repo,
        audit_repo=audit_repo,
        teens_repo=teens_repo,
        attendance_repo=attendance_repo,
        forms_repo=forms_repo,
        assignments_repo=assignments_repo,
        auth_service=AuthService(staff_repo),
        staff_service=StaffService(staff_repo, audit_repo),
        teen_service=TeenService(teens_repo, audit_repo),
        attendance_service=AttendanceService(attendance_repo),
        form_service=FormService(forms_repo),
        assignment_service=AssignmentService(forms_repo, assignments_repo, teens_repo),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        conn=conn,
        staff_repo=MySQLStaffRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        teens_repo=MySQLTeenRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        forms_repo=MySQLFormRepository(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
    )
