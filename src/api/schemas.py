"""
Request and response models for the agent HTTP API.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


class ChatRequest(BaseModel):
    message: str

    @field_validator('message')
    @classmethod
    def message_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('message cannot be empty')
        return v


class ApprovalRequestPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "approval_request"
    command_id: str = Field(alias="commandId")
    command: str
    description: str
    message: str


class ChatResponse(BaseModel):
    response: str
    tool_name: Optional[str] = None
    reasoning: str = ""
    error: bool = False
    approval_request: Optional[ApprovalRequestPayload] = None


class CommandDecisionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    command_id: str = Field(alias="commandId")

    @field_validator('command_id')
    @classmethod
    def command_id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('commandId cannot be empty')
        return v.strip()


class CommandResultPayload(BaseModel):
    type: str = "command_result"
    success: bool
    command: str
    output: Optional[str] = None
    warnings: Optional[str] = None
    error: Optional[str] = None


class CommandRejectedPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "command_rejected"
    command_id: str = Field(alias="commandId")
    command: str


class ApproveResponse(BaseModel):
    result: CommandResultPayload


class RejectResponse(BaseModel):
    result: CommandRejectedPayload


class PendingCommandResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    command: str
    description: str
    created_at: datetime = Field(alias="createdAt")


class PendingListResponse(BaseModel):
    pending: List[PendingCommandResponse]


class HealthResponse(BaseModel):
    status: str
    version: str
    llm_enabled: bool
    pending_commands: int
    config_issues: List[str] = []


class ErrorResponse(BaseModel):
    error_type: str
    message: str
    timestamp: datetime = None
    details: Optional[Dict[str, Any]] = None

    def __init__(self, **data):
        data.setdefault("timestamp", datetime.now())
        super().__init__(**data)
