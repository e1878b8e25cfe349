from .user import UserGroup, SystemUser, SchedulePermission
from .staff import Department, Staff
from .schedule import WorkSchedule, WorkType
from .meeting import MeetingRoom, MeetingSchedule, MeetingRoomReservation, ReservationStatus
from .holiday import Holiday
from .system_config import SystemConfig

__all__ = [
    "UserGroup", "SystemUser", "SchedulePermission",
    "Department", "Staff",
    "WorkSchedule", "WorkType",
    "MeetingRoom", "MeetingSchedule", "MeetingRoomReservation", "ReservationStatus",
    "Holiday",
    "SystemConfig",
]
