# tests/test_api.py
from datetime import date, datetime, time, timedelta

from sales_analytics.fetcher import FetchError
from sales_analytics.main import app, get_fetcher
from sales_analytics.windows import WEEKDAY_LABELS

HEADERS = {"X-User-Id": "u1"}

def _today_at(hour=0, minute=0):
    return datetime.combine(date.today(), time(hour, minute))

# --- Tests ---
def test_read_root(client):
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Merchant Sales Analytics API"}

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.text == "OK"

def test_requires_authenticated_user(client):
    response = client.get("/analytics/sales?filter=week")
    assert response.status_code == 401

def test_sales_without_data_is_well_formed(client):
    response = client.get("/analytics/sales?filter=month", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert len(data["currentPeriod"]) == 12
    assert all(item["value"] == 0 for item in data["currentPeriod"])
    assert data["totalRevenue"] == 0
    assert data["percentageChange"] == 0
    assert data["isPositive"] is True

def test_sales_week(client, seed_sale):
    """
    Today's sales land in the last bucket; last week's in the comparison.
    """
    seed_sale("u1", _today_at(0, 1), 150.0)
    seed_sale("u1", _today_at(0, 2), 50.0)
    seed_sale("u1", _today_at() - timedelta(days=10), 100.0)
    seed_sale("u2", _today_at(0, 1), 5000.0)

    response = client.get("/analytics/sales?filter=week", headers=HEADERS)

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["currentPeriod"]) == 7
    assert data["currentPeriod"][-1]["value"] == 200.0
    assert data["currentPeriod"][-1]["label"] == WEEKDAY_LABELS[date.today().weekday()]
    assert data["totalRevenue"] == 200.0
    assert data["percentageChange"] == 100.0
    assert data["isPositive"] is True

def test_sales_unknown_filter_defaults_to_year(client):
    response = client.get("/analytics/sales?filter=fortnight", headers=HEADERS)
    data = response.json()["data"]
    assert [item["label"] for item in data["currentPeriod"]] == [
        str(date.today().year - i) for i in range(4, -1, -1)
    ]

def test_general_analytics(client, seed_sale, seed_product):
    seed_product("u1", "p1", "Rice Bag")
    seed_product("u1", "p2", "Tea")
    recent = datetime.now() - timedelta(days=1)
    seed_sale("u1", recent, 20.0, items=[("p1", 5), ("p2", 2)])

    response = client.get("/analytics/general?filter=week", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {
            "topProduct": {"name": "Rice Bag", "unitsSold": 5},
            "lowProduct": {"name": "Tea", "unitsSold": 2},
        },
    }

def test_general_analytics_without_sales(client):
    response = client.get("/analytics/general", headers=HEADERS)
    assert response.json()["data"] == {"topProduct": None, "lowProduct": None}

def test_top_and_low_selling(client, seed_sale, seed_product):
    seed_product("u1", "p1", "Rice Bag")
    recent = datetime.now() - timedelta(days=1)
    seed_sale("u1", recent, 20.0, items=[("p1", 5), ("p2", 2), ("p3", 9)])

    top = client.get("/analytics/top-selling?filter=week&limit=2", headers=HEADERS).json()["data"]
    low = client.get("/analytics/low-selling?filter=week&limit=1", headers=HEADERS).json()["data"]

    assert top["count"] == 2
    assert top["products"] == [{"name": None, "unitsSold": 9}, {"name": "Rice Bag", "unitsSold": 5}]
    assert low["products"] == [{"name": None, "unitsSold": 2}]

def test_top_selling_rejects_bad_limit(client):
    response = client.get("/analytics/top-selling?limit=0", headers=HEADERS)
    assert response.status_code == 422

def test_payment_breakdown(client, seed_sale):
    recent = datetime.now() - timedelta(days=2)
    seed_sale("u1", recent, 40.0, method="card")
    seed_sale("u1", recent, 10.0, method="cash")

    response = client.get("/analytics/payment-breakdown?days=7", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["data"] == {
        "days": 7,
        "breakdown": [
            {"method": "card", "totalAmount": 40.0, "transactionCount": 1},
            {"method": "cash", "totalAmount": 10.0, "transactionCount": 1},
        ],
    }

def test_fetch_failure_returns_generic_error(client, fake_fetcher):
    """
    A datastore failure yields the failure envelope and no partial data.
    """
    fake_fetcher.error = FetchError("database unreachable")

    def get_failing_fetcher():
        yield fake_fetcher

    app.dependency_overrides[get_fetcher] = get_failing_fetcher

    for path in ("/analytics/sales?filter=week", "/analytics/general?filter=week"):
        response = client.get(path, headers=HEADERS)
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal Server Error"}
