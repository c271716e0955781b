from .approval import ApprovalProcess, ApprovalState
from .credentials import UserCredentials
from .notification import Notification, NotificationType
from .subscription import Subscription
from .user import User

__all__ = [
    "ApprovalProcess",
    "ApprovalState",
    "Notification",
    "NotificationType",
    "Subscription",
    "User",
    "UserCredentials",
]
