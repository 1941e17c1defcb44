"""
API request and response schemas.
What it defines:
- The authenticated technician
- Capability/status payload
- Guide generation and session responses

And, the main purpose:
Ensure structured communication between client and server.
"""


from typing import List, Optional

from pydantic import BaseModel, Field

from repairall.llm.schemas import RepairGuide

class Technician(BaseModel):
    email: str = Field(..., description="Identity forwarded by the front-end after login")
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Technician"

class StatusResponse(BaseModel):
    model_ready: bool
    image_search_ready: bool
    generative_images: bool
    auth_configured: bool
    guidance: str

class GenerateGuideResponse(BaseModel):
    technician: str
    state: str
    progress: List[str] = []
    guide: RepairGuide

class SessionResponse(BaseModel):
    state: str
    status: str
    error: Optional[str] = None
    is_generating: bool = False
    guide: Optional[RepairGuide] = None
