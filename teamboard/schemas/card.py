"""
Card schemas
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from teamboard.models.card import PRIORITIES


class CardCreate(BaseModel):
    column_id: UUID
    title: str
    description: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    priority: str = "P2"
    task_type: Optional[str] = None
    subsystem: Optional[str] = None  # Deprecated, use team_id
    team_id: Optional[UUID] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[UUID] = None
    is_onboarding: bool = False

    @validator('title')
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Card title cannot be empty')
        return v.strip()

    @validator('priority')
    def validate_priority(cls, v):
        if v is not None and v not in PRIORITIES:
            raise ValueError('Priority must be P0, P1, P2, or P3')
        return v


class CardFromTemplate(BaseModel):
    column_id: UUID
    template_id: str
    title: Optional[str] = None
    team_id: Optional[UUID] = None
    due_date: Optional[datetime] = None


class CardUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    priority: Optional[str] = None
    task_type: Optional[str] = None
    subsystem: Optional[str] = None
    team_id: Optional[UUID] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[UUID] = None
    is_onboarding: Optional[bool] = None
    is_blocked: Optional[bool] = None
    blocked_reason: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Card title cannot be empty')
        return v.strip() if v else v

    @validator('priority')
    def validate_priority(cls, v):
        if v is not None and v not in PRIORITIES:
            raise ValueError('Priority must be P0, P1, P2, or P3')
        return v


class CardMove(BaseModel):
    target_column_id: UUID
    target_index: int = Field(..., ge=0)


class CardClaim(BaseModel):
    board_id: UUID


class PositionResponse(BaseModel):
    id: str
    column_id: str
    position: int


class CardMoveResponse(BaseModel):
    id: str
    board_id: str
    column_id: str
    position: int
    assignee_id: Optional[str]
    auto_assigned: bool
    source_positions: List[PositionResponse]
    target_positions: List[PositionResponse]


class CardApprovalResponse(BaseModel):
    id: str
    column_id: str
    is_approved: bool
    reviewer_id: str


class CardResponse(BaseModel):
    id: str
    column_id: str
    team_id: Optional[str]
    assignee_id: Optional[str]
    reviewer_id: Optional[str]
    title: str
    description: Optional[str]
    acceptance_criteria: Optional[str]
    priority: str
    task_type: Optional[str]
    due_date: Optional[str]
    is_onboarding: bool
    is_blocked: bool
    blocked_reason: Optional[str]
    is_approved: bool
    position: int


class ColumnSnapshot(BaseModel):
    id: str
    name: str
    position: int
    wip_limit: Optional[int]
    stage: Optional[str]
    cards: List[CardResponse]


class BoardSnapshot(BaseModel):
    id: str
    name: str
    owner_id: str
    columns: List[ColumnSnapshot]
