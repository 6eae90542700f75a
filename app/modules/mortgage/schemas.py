from pydantic import BaseModel, Field
from typing import List, Literal


class MortgageSimulationRequest(BaseModel):
    property_value: float = Field(200000, gt=0)
    down_payment_percent: float = Field(20, ge=0, le=100)
    loan_term_years: int = Field(30, ge=1, le=50)
    rate_type: Literal["variable", "fixed"] = "variable"
    interest_rate: float = Field(3.5, ge=0)
    euribor: float = 2.5
    spread: float = Field(1.0, ge=0)
    purpose: Literal["hpp", "secondary"] = "hpp"
    under_35: bool = False


class AmortizationRowResponse(BaseModel):
    month: int
    payment: float
    principal: float
    interest: float
    balance: float


class PurchaseTaxes(BaseModel):
    imt: float
    stamp_duty_property: float
    stamp_duty_mortgage: float
    total: float


class MortgageSimulationResponse(BaseModel):
    loan_amount: float
    effective_rate: float
    monthly_payment: float
    total_payment: float
    total_interest: float
    taxes: PurchaseTaxes
    upfront_cash: float
    amortization: List[AmortizationRowResponse]
