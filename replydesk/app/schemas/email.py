from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class EmailSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    subject: str = ''
    sender: str = Field('', alias='from')
    date: Optional[str] = None
    message_id: Optional[str] = None


class EmailDetail(EmailSummary):
    to: str = ''
    body: str = ''
    html: Optional[str] = None
