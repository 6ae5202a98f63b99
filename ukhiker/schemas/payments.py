from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ukhiker.schemas.treks import TrekSummary


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    trek_id: Optional[str] = Field(None, alias="trekId")
    quantity: int = 1


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    success: bool = True
    session_id: str = Field(..., alias="sessionId")
    url: Optional[str] = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    user_id: str = Field(..., alias="userId")
    trek_id: str = Field(..., alias="trekId")
    stripe_session_id: str = Field(..., alias="stripeSessionId")
    amount: float
    currency: str
    status: str
    quantity: int
    created_at: datetime = Field(..., alias="createdAt")
    paid_at: Optional[datetime] = Field(None, alias="paidAt")
    trek: Optional[TrekSummary] = None


class PaymentHistoryResponse(BaseModel):
    success: bool = True
    data: List[PaymentResponse]


class SessionSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    status: Optional[str] = None
    payment_status: Optional[str] = Field(None, alias="paymentStatus")


class VerifyResponse(BaseModel):
    success: bool = True
    verified: bool
    payment: Optional[PaymentResponse] = None
    session: Optional[SessionSummary] = None
