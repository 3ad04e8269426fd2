from .customers import Customer, MOTORCYCLE_TYPES
from .operators import Operator
from .transactions import WashTransaction, CommissionRecord
from .attendance import AttendanceRecord, ATTENDANCE_STATUSES
from .activity import ActivityEvent

__all__ = [
    'Customer', 'MOTORCYCLE_TYPES',
    'Operator',
    'WashTransaction', 'CommissionRecord',
    'AttendanceRecord', 'ATTENDANCE_STATUSES',
    'ActivityEvent',
]
