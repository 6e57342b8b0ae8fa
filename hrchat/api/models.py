"""
Pydantic models for HR Chat API requests and responses.
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class ChatQueryRequest(BaseModel):
    """Request model for the chat query endpoint."""
    query: Optional[str] = Field(default=None, description="Free-text HR request")


class EmployeeRef(BaseModel):
    """Employee record as visible to the requester."""
    id: str
    name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    salary: Optional[float] = None
    createdBy: Optional[str] = None


class ChatQueryResponse(BaseModel):
    """Response model for the chat query endpoint."""
    results: List[EmployeeRef] = Field(default_factory=list, description="Matching records (reads only)")
    message: str = Field(description="Assistant reply")


class HistoryMessage(BaseModel):
    id: str
    text: str
    sender: str = Field(description="'user' or 'bot'")


class HistoryResponse(BaseModel):
    messages: List[HistoryMessage] = Field(default_factory=list)


class NotificationsClearedResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Response model for health check."""
    service: str
    database: str
    cache: str
