"""Dining table schemas"""

from pydantic import BaseModel, Field


class TableCreate(BaseModel):
    """Create table request"""
    restaurant_id: int
    table_number: str = Field(min_length=1, max_length=20)
    capacity: int = Field(ge=1, le=20)


class TableUpdate(BaseModel):
    """Update table request"""
    table_number: str = Field(min_length=1, max_length=20)
    capacity: int = Field(ge=1, le=20)


class TableResponse(BaseModel):
    """Table response"""
    id: int
    restaurant_id: int
    table_number: str
    capacity: int

    class Config:
        from_attributes = True
