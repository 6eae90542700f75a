"""
Mortgage and purchase-tax estimates for Portuguese residential property.

IMT brackets follow the 2024 Autoridade Tributária tables. Within the
progressive brackets the tax is ``value * rate - deduction``; the top
brackets apply a single rate to the whole value.
"""

from dataclasses import dataclass
from typing import List

STAMP_DUTY_RATE = 0.8
STAMP_DUTY_MORTGAGE_RATE = 0.6
AMORTIZATION_PREVIEW_MONTHS = 12


@dataclass(frozen=True)
class ImtBracket:
    min: float
    max: float
    rate: float
    deduction: float
    single_rate: bool = False


IMT_RATES_HPP = [
    ImtBracket(0, 101917, 0, 0),
    ImtBracket(101917, 139412, 2, 2038.34),
    ImtBracket(139412, 190086, 5, 6220.70),
    ImtBracket(190086, 316772, 7, 10022.42),
    ImtBracket(316772, 633453, 8, 13190.14),
    ImtBracket(633453, 1102920, 6, 0, single_rate=True),
    ImtBracket(1102920, float("inf"), 7.5, 0, single_rate=True),
]

# First-home buyers up to 35 are exempt up to 150% of the first bracket
IMT_RATES_HPP_UNDER35 = [
    ImtBracket(0, 101917, 0, 0),
    ImtBracket(101917, 152904, 0, 0),
    ImtBracket(152904, 190086, 5, 7645.20),
    ImtBracket(190086, 316772, 7, 11449.92),
    ImtBracket(316772, 633453, 8, 14617.64),
    ImtBracket(633453, 1102920, 6, 0, single_rate=True),
    ImtBracket(1102920, float("inf"), 7.5, 0, single_rate=True),
]

IMT_RATES_SECONDARY = [
    ImtBracket(0, 101917, 1, 0),
    ImtBracket(101917, 139412, 2, 1019.17),
    ImtBracket(139412, 190086, 5, 5201.53),
    ImtBracket(190086, 316772, 7, 9003.25),
    ImtBracket(316772, 607528, 8, 12170.97),
    ImtBracket(607528, 1050400, 6, 0, single_rate=True),
    ImtBracket(1050400, float("inf"), 7.5, 0, single_rate=True),
]


@dataclass
class AmortizationRow:
    month: int
    payment: float
    principal: float
    interest: float
    balance: float


def effective_rate(rate_type: str, interest_rate: float, euribor: float, spread: float) -> float:
    """Annual rate in percent: Euribor plus spread for variable loans."""
    if rate_type == "variable":
        return euribor + spread
    return interest_rate


def monthly_payment(principal: float, annual_rate: float, years: int) -> float:
    n = years * 12
    if n <= 0:
        return 0.0
    r = annual_rate / 100 / 12
    if r == 0:
        return principal / n
    growth = (1 + r) ** n
    return principal * r * growth / (growth - 1)


def imt_brackets(purpose: str, under_35: bool) -> List[ImtBracket]:
    if purpose == "hpp":
        return IMT_RATES_HPP_UNDER35 if under_35 else IMT_RATES_HPP
    return IMT_RATES_SECONDARY


def calculate_imt(value: float, purpose: str = "hpp", under_35: bool = False) -> float:
    brackets = imt_brackets(purpose, under_35)
    bracket = next((b for b in brackets if b.min < value <= b.max), brackets[0] if value <= 0 else brackets[-1])
    if bracket.single_rate:
        return value * bracket.rate / 100
    return max(0.0, value * bracket.rate / 100 - bracket.deduction)


def stamp_duty_property(value: float) -> float:
    return value * STAMP_DUTY_RATE / 100


def stamp_duty_mortgage(loan_amount: float) -> float:
    return loan_amount * STAMP_DUTY_MORTGAGE_RATE / 100


def amortization_table(
    principal: float,
    annual_rate: float,
    years: int,
    months: int = AMORTIZATION_PREVIEW_MONTHS,
) -> List[AmortizationRow]:
    payment = monthly_payment(principal, annual_rate, years)
    r = annual_rate / 100 / 12
    balance = principal
    rows = []
    for month in range(1, min(years * 12, months) + 1):
        interest = balance * r
        principal_part = payment - interest
        balance -= principal_part
        rows.append(AmortizationRow(
            month=month,
            payment=payment,
            principal=principal_part,
            interest=interest,
            balance=max(0.0, balance),
        ))
    return rows
