from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal

Tone = Literal['professional', 'friendly', 'casual', 'formal', 'warm', 'direct']
Length = Literal['concise', 'medium', 'detailed']
Urgency = Literal['low', 'normal', 'high']
Role = Literal['system', 'user', 'assistant']


class ChatMessage(BaseModel):
    role: Role
    content: str


class RefinementOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tone: Optional[Tone] = None
    length: Optional[Length] = None
    formality: Optional[int] = Field(None, ge=1, le=5)
    urgency: Optional[Urgency] = None
    custom_instruction: Optional[str] = Field(None, alias='customInstruction')

    def is_empty(self) -> bool:
        return not any([self.tone, self.length, self.formality is not None, self.urgency, self.custom_instruction])


class GenerateReplyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instruction: Optional[str] = None
    template_id: Optional[int] = Field(None, alias='templateId')
    refinement_options: Optional[RefinementOptions] = Field(None, alias='refinementOptions')


class SendReplyRequest(BaseModel):
    reply: str = Field(..., min_length=1)
    signature: Optional[str] = None


class EmailReplyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email_id: str
    account: str
    status: str
    status_label: str
    status_color: str
    recipient_email: Optional[str] = None
    subject: Optional[str] = None
    sent_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    updated_at: Optional[datetime] = None


class ActivityStats(BaseModel):
    total_sent: int
    sent_today: int
    sent_this_week: int
    failed_count: int


class AccountStats(BaseModel):
    sent: int = 0
    failed: int = 0


class ActivityDashboard(BaseModel):
    recent_activity: List[EmailReplyOut]
    stats: ActivityStats
    account_stats: dict[str, AccountStats]
    current_account: Optional[str] = None
