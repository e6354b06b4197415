from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    template_text: str = Field(..., min_length=1)
    sort_order: Optional[int] = Field(None, ge=0)


class TemplateUpdate(TemplateCreate):
    is_active: Optional[bool] = None


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    template_text: str
    is_active: bool
    sort_order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
