from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


class CamelModel(BaseModel):
    """snake_case attributes, camelCase JSON"""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class ReturnUser(CamelModel):
    # Public projection, never carries the password hash
    id: int
    name: str
    email: str
    role: str
    created_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
