"""
Client & Prompt Schemas
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from geotracker.models.database import NicheLevel
from geotracker.schemas.common import UTCDateTime
from geotracker.clock import utcnow


class Client(BaseModel):
    """A tracked brand with its mention-matching configuration"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    brand_name: str
    slug: str
    brand_tags: List[str] = Field(default_factory=list)
    competitors: List[str] = Field(default_factory=list)
    target_region: str = "United States"
    location_code: int = 2840
    industry: str = "Custom"
    primary_color: Optional[str] = None
    created_at: UTCDateTime = Field(default_factory=utcnow)


class ClientCreate(BaseModel):
    """Client creation request"""
    name: str = Field(..., min_length=1, max_length=255)
    brand_name: Optional[str] = None
    brand_tags: Optional[List[str]] = None
    competitors: Optional[List[str]] = None
    target_region: Optional[str] = None
    location_code: Optional[int] = None
    industry: Optional[str] = None
    primary_color: Optional[str] = None


class ClientUpdate(BaseModel):
    """Partial client update"""
    name: Optional[str] = None
    brand_name: Optional[str] = None
    brand_tags: Optional[List[str]] = None
    competitors: Optional[List[str]] = None
    target_region: Optional[str] = None
    location_code: Optional[int] = None
    industry: Optional[str] = None
    primary_color: Optional[str] = None


class Prompt(BaseModel):
    """A search prompt owned by one client"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    prompt_text: str
    category: str = "custom"
    niche_level: NicheLevel = NicheLevel.BROAD
    is_custom: bool = True
    is_active: bool = True
    created_at: UTCDateTime = Field(default_factory=utcnow)


class PromptCreate(BaseModel):
    prompt_text: str = Field(..., min_length=1)
    category: Optional[str] = None


class PromptBulkCreate(BaseModel):
    prompts: List[str] = Field(..., min_length=1)
    category: Optional[str] = None


class PromptImport(BaseModel):
    """Raw JSON or newline-separated prompt data"""
    data: str
