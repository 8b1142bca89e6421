from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

class VenueCreate(BaseModel):
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    city: str = Field(..., min_length=1)
    capacity: Optional[int] = Field(None, ge=0)
    seating_map: Optional[Dict[str, Any]] = None

class VenueUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    city: Optional[str] = Field(None, min_length=1)
    capacity: Optional[int] = Field(None, ge=0)
    seating_map: Optional[Dict[str, Any]] = None
