from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class PlanStep(BaseModel):
    title: str = Field(..., description="One actionable repair step")
    description: str
    tools: Optional[List[str]] = Field(None, description="Tools in the order the model listed them")
    caution: Optional[str] = None

class RepairPlan(BaseModel):
    title: str
    safety: Optional[str] = None
    steps: List[PlanStep]

class IllustratedStep(PlanStep):
    image: Optional[str] = Field(None, description="data: URI or remote URL")

class RepairGuide(BaseModel):
    title: str
    safety: Optional[str] = None
    steps: List[IllustratedStep]

class DamageReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    photo: Optional[bytes] = None
    photo_mime: str = "image/jpeg"
