from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .access.mysql_role_repository import MySQLRoleRepository
from .core.constants import DEFAULT_PLANNING_MONTHS
from .database.connection import DBConfig, DatabaseConnection
from .notifications.notifier import LogOnlyNotifier, Notifier
from .planning.service import VacationPlanningService
from .shifts.mysql_shift_repository import MySQLShiftRecordRepository
from .shifts.service import ScheduleViewService
from .teams.mysql_team_repository import MySQLTeamRepository
from .vacations.mysql_vacation_repository import MySQLVacationRequestRepository
from .vacations.service import VacationRequestService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    teams_repo: MySQLTeamRepository
    roles_repo: MySQLRoleRepository
    shifts_repo: MySQLShiftRecordRepository
    vacations_repo: MySQLVacationRequestRepository
    notifier: Notifier

    vacation_service: VacationRequestService
    planning_service: VacationPlanningService
    schedule_service: ScheduleViewService


def build_container(
    *,
    db_config: dict,
    notifier: Optional[Notifier] = None,
    planning_months: int = DEFAULT_PLANNING_MONTHS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    teams_repo = MySQLTeamRepository(conn)
    roles_repo = MySQLRoleRepository(conn)
    shifts_repo = MySQLShiftRecordRepository(conn)
    vacations_repo = MySQLVacationRequestRepository(conn)
    notifier = notifier or LogOnlyNotifier()

    vacation_service = VacationRequestService(vacations_repo, teams_repo, notifier)
    planning_service = VacationPlanningService(teams_repo, vacations_repo, planning_months=planning_months)
    schedule_service = ScheduleViewService(teams_repo, shifts_repo)

    return Container(
        conn=conn,
        teams_repo=teams_repo,
        roles_repo=roles_repo,
        shifts_repo=shifts_repo,
        vacations_repo=vacations_repo,
        notifier=notifier,
        vacation_service=vacation_service,
        planning_service=planning_service,
        schedule_service=schedule_service,
    )
