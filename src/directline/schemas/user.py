"""Pydantic schemas for users.

Learn: Pydantic v2 models validate request/response data. Separate
"Create" schemas (input) from "Read" schemas (output) for clean APIs.
Keys go over the wire in camelCase; inputs also accept snake_case.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    handle: str = Field(..., min_length=1, max_length=20)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRead(BaseModel):
    id: int
    name: str
    handle: str
    created_at: Optional[datetime]

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )
