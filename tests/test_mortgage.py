import pytest

from app.modules.mortgage import calculator


def test_annuity_payment():
    assert calculator.monthly_payment(160000, 3.5, 30) == pytest.approx(718.47, abs=0.01)


def test_zero_rate_divides_evenly():
    assert calculator.monthly_payment(120000, 0, 10) == pytest.approx(1000)


def test_variable_rate_is_euribor_plus_spread():
    assert calculator.effective_rate("variable", 4.0, 2.5, 1.0) == pytest.approx(3.5)
    assert calculator.effective_rate("fixed", 4.0, 2.5, 1.0) == pytest.approx(4.0)


@pytest.mark.parametrize("value, purpose, under_35, expected", [
    (100000, "hpp", False, 0),
    (200000, "hpp", False, 3977.58),
    (700000, "hpp", False, 42000),
    (1200000, "hpp", False, 90000),
    (150000, "hpp", True, 0),
    (100000, "secondary", False, 1000),
    (200000, "secondary", False, 4996.75),
])
def test_imt(value, purpose, under_35, expected):
    assert calculator.calculate_imt(value, purpose, under_35) == pytest.approx(expected, abs=0.01)


def test_stamp_duty():
    assert calculator.stamp_duty_property(200000) == pytest.approx(1600)
    assert calculator.stamp_duty_mortgage(160000) == pytest.approx(960)


def test_amortization_preview():
    rows = calculator.amortization_table(160000, 3.5, 30)

    assert len(rows) == 12
    assert rows[0].interest == pytest.approx(160000 * 0.035 / 12)
    assert rows[0].principal + rows[0].interest == pytest.approx(rows[0].payment)
    assert rows[-1].balance < rows[0].balance < 160000


def test_short_loan_has_fewer_rows():
    assert len(calculator.amortization_table(10000, 0, 1, months=24)) == 12


def test_simulate_endpoint(client):
    response = client.post("/api/mortgage/simulate", json={
        "property_value": 200000, "down_payment_percent": 20, "loan_term_years": 30,
        "rate_type": "variable", "euribor": 2.5, "spread": 1.0,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["loan_amount"] == pytest.approx(160000)
    assert body["monthly_payment"] == pytest.approx(718.47, abs=0.01)
    assert body["taxes"]["imt"] == pytest.approx(3977.58, abs=0.01)
    assert body["taxes"]["total"] == pytest.approx(3977.58 + 1600 + 960, abs=0.01)
    assert body["upfront_cash"] == pytest.approx(40000 + body["taxes"]["total"])


def test_simulate_rejects_invalid_input(client):
    assert client.post("/api/mortgage/simulate", json={"property_value": -1}).status_code == 422
