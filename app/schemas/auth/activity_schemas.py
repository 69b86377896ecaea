# app/schemas/auth/activity_schemas.py

from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Literal
from fastapi import Query
from datetime import datetime, date

from app.constants.activity_codes import ActivityCode


class UserActivityFilters(BaseModel):
    user_id: Optional[int] = Query(None)
    username: Optional[str] = Query(None)
    code: Optional[ActivityCode] = Query(None)
    start_date: Optional[date] = Query(None)
    end_date: Optional[date] = Query(None)

    page: int = Query(1, ge=1)
    page_size: int = Query(20, ge=1, le=100)

    sort_by: Literal["created_at", "username", "code"] = Query("created_at")
    sort_order: Literal["asc", "desc"] = Query("desc")


class UserActivityOut(BaseModel):
    id: int
    user_id: Optional[int]
    username_snapshot: str
    code: str
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserActivityListData(BaseModel):
    total: int
    total_pages: int
    items: List[UserActivityOut]
