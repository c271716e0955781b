from .approval import ApprovalOut, ResolveRequest
from .auth import Token, UserResponse
from .notification import NotificationListResponse, NotificationOut
from .push import FailedPushOut, MessageHeader, PushRequest
from .subscription import SubscriptionDelete, SubscriptionUpsert, is_valid_fingerprint

__all__ = [
    "ApprovalOut",
    "FailedPushOut",
    "MessageHeader",
    "NotificationListResponse",
    "NotificationOut",
    "PushRequest",
    "ResolveRequest",
    "SubscriptionDelete",
    "SubscriptionUpsert",
    "Token",
    "UserResponse",
    "is_valid_fingerprint",
]
