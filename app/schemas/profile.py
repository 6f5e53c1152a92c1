from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None

class ProfileUpdate(BaseModel):
    # Email is immutable once set, so only the display name is accepted
    full_name: str = Field(..., min_length=1, max_length=200)
