from .db import db
from .user import User
from .event import Event
from .time_slot import TimeSlot
from .meeting import Meeting
from .notification import Notification
from .session import Session
from .login_attempt import LoginAttempt
from .audit_log import AuditLog
