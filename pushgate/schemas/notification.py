from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NotificationOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    content: str
    title: str | None = None
    category: str | None = None
    group: str | None = None
    user_email: str
    type: str
    icon_url: str | None = None
    extra: dict | None = None
    created_at: datetime
    updated_at: datetime
    approval_state: str | None = None
    approval_id: str | None = None


class NotificationListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    notifications: list[NotificationOut]
    total_count: int
    total_pages: int
