"""
Draft load schemas.

Drafts come from the email extraction pipeline; a dispatcher reviews and
approves them into real loads.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from freight_dispatch.app.models.load_enums import RateType
from freight_dispatch.app.schemas.load import LoadResponse, StopCreate


class DraftLoadApproval(BaseModel):
    """
    Load-shaped draft plus extraction provenance.

    `status` is accepted for compatibility with the extractor output but
    ignored: approved drafts always start OPEN.
    """
    reference_number: Optional[str] = Field(None, max_length=100)
    customer_id: Optional[int] = None
    broker_name: Optional[str] = Field(None, max_length=255)
    broker_mc_number: Optional[str] = Field(None, max_length=20)

    rate_amount: float = Field(0, ge=0)
    rate_type: RateType = RateType.FLAT
    loaded_miles: float = Field(0, ge=0)
    commodity: Optional[str] = Field(None, max_length=255)
    weight: Optional[float] = Field(None, ge=0)
    equipment_type: Optional[str] = Field(None, max_length=50)
    stops: List[StopCreate] = Field(..., min_length=2)

    email_import_id: Optional[int] = None
    confidence_score: Optional[float] = Field(None, ge=0, le=1)
    provenance: Optional[Dict[str, Any]] = None
    status: Optional[str] = None


class DraftApprovalResponse(BaseModel):
    load: LoadResponse
    customer_match: str  # explicit, name or mc_number
