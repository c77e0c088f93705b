"""Request and response models for the HTTP API"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class BookingRequestBody(BaseModel):
    """POST /v1/bookings body"""

    first_name: str
    last_name: str
    gender: str
    birthday: date
    launchpad_id: str
    destination_id: UUID
    launch_date: datetime


class DestinationData(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class FlightData(BaseModel):
    id: Optional[str] = None
    launchpad_id: Optional[str] = None
    destination: DestinationData
    launch_date: Optional[str] = None


class UserData(BaseModel):
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    birthday: Optional[str] = None


class BookingData(BaseModel):
    id: Optional[str] = None
    user: UserData
    flight: FlightData
    status: Optional[str] = None
    created_at: Optional[str] = None


class BookingListResponse(BaseModel):
    bookings: List[BookingData]
    limit: int
    cursor: str


class ErrorResponse(BaseModel):
    error: str
    code: str


class MemoryStats(BaseModel):
    max_rss_bytes: int
    gc_collections: int
    gc_pending: int


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    uptime: str
    python_version: str
    database: str
    memory: MemoryStats
