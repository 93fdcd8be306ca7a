from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

NotificationKind = Literal['EVENT_REMINDER', 'EVENT_UPDATE', 'SYSTEM']


class BroadcastRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=191)
    content: str = Field(..., min_length=1)
    kind: NotificationKind = 'SYSTEM'
    user_ids: Optional[List[int]] = Field(None, alias='userIds')
    role: Optional[Literal['USER', 'STAFF', 'ADMIN']] = None
    send_email: bool = Field(True, alias='sendEmail')


class RoleUpdate(BaseModel):
    role: Literal['USER', 'STAFF', 'ADMIN']
