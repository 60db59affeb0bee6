from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # scheduler/cron callers expect camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StatusChangeItem(CamelModel):
    code: str
    old_status: str
    new_status: str


class PendingUpdateItem(CamelModel):
    id: int
    code: str
    current_status: str
    computed_status: str
    start_date: str
    end_date: str


class RecordErrorItem(CamelModel):
    code: str
    error: str


class StatusUpdateResponse(CamelModel):
    success: bool = True
    message: str
    updated_count: int
    updated_coupons: List[StatusChangeItem]
    errors: List[RecordErrorItem] = []
    timestamp: str


class StatusPreviewResponse(CamelModel):
    success: bool = True
    message: str
    coupons_needing_update: List[PendingUpdateItem]
    errors: List[RecordErrorItem] = []


class StatusFailureResponse(CamelModel):
    success: bool = False
    error: Optional[str] = None
    timestamp: str


class SchedulerHealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str
