from fastapi import APIRouter
from app.modules.mortgage import calculator
from app.modules.mortgage.schemas import (
    MortgageSimulationRequest, MortgageSimulationResponse, PurchaseTaxes, AmortizationRowResponse,
)

router = APIRouter(prefix="/mortgage", tags=["mortgage"])


def simulate(body: MortgageSimulationRequest) -> MortgageSimulationResponse:
    loan_amount = body.property_value * (1 - body.down_payment_percent / 100)
    rate = calculator.effective_rate(body.rate_type, body.interest_rate, body.euribor, body.spread)
    payment = calculator.monthly_payment(loan_amount, rate, body.loan_term_years)
    total_payment = payment * body.loan_term_years * 12

    imt = calculator.calculate_imt(body.property_value, body.purpose, body.under_35)
    stamp_property = calculator.stamp_duty_property(body.property_value)
    stamp_mortgage = calculator.stamp_duty_mortgage(loan_amount)
    taxes_total = imt + stamp_property + stamp_mortgage

    return MortgageSimulationResponse(
        loan_amount=loan_amount,
        effective_rate=rate,
        monthly_payment=payment,
        total_payment=total_payment,
        total_interest=total_payment - loan_amount,
        taxes=PurchaseTaxes(
            imt=imt,
            stamp_duty_property=stamp_property,
            stamp_duty_mortgage=stamp_mortgage,
            total=taxes_total,
        ),
        upfront_cash=body.property_value - loan_amount + taxes_total,
        amortization=[
            AmortizationRowResponse(**row.__dict__)
            for row in calculator.amortization_table(loan_amount, rate, body.loan_term_years)
        ],
    )


@router.post("/simulate", response_model=MortgageSimulationResponse)
async def simulate_mortgage(body: MortgageSimulationRequest):
    """Monthly payment, purchase taxes and the first year of amortization"""
    return simulate(body)
