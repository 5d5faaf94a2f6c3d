"""Tests for the HTTP boundary in chart_api.main."""

from fastapi.testclient import TestClient

from chart_api.credentials import HeaderCredentialProvider, StaticCredentialProvider
from chart_api.main import create_app
from chart_core.datasets import DatasetStore


def _post_chart(client, **body):
    return client.post("/api/charts/data", json={"datasetId": 1, **body})


class TestChartData:
    def test_sum_by_region(self, client):
        resp = _post_chart(client, xAxis="region", yAxis="sales", aggregation="sum", groupBy=[])
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "data": [{"region": "east", "sales": 30}, {"region": "west", "sales": 5}],
        }

    def test_filter_with_numeric_value(self, client):
        resp = _post_chart(
            client,
            xAxis="region",
            yAxis="sales",
            aggregation="count",
            filters=[{"column": "sales", "operator": "gt", "value": 8}],
        )
        assert resp.json()["data"] == [{"region": "east", "sales": 2}]

    def test_raw_rows(self, client, orders_rows):
        resp = client.post("/api/charts/data", json={"datasetId": 2})
        assert resp.status_code == 200
        assert resp.json()["data"] == orders_rows

    def test_unknown_dataset(self, client):
        resp = _post_chart(client, datasetId=99)
        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["message"].startswith("Failed to load chart data")

    def test_private_dataset_is_not_found_for_anonymous(self, client):
        assert _post_chart(client, datasetId=3).status_code == 404

    def test_unknown_aggregation(self, client):
        resp = _post_chart(client, xAxis="region", yAxis="sales", aggregation="median")
        assert resp.status_code == 400
        assert resp.json()["field"] == "aggregation"

    def test_group_by_without_aggregation(self, client):
        resp = _post_chart(client, groupBy=["region"])
        assert resp.status_code == 400
        assert resp.json()["field"] == "groupBy"

    def test_unknown_operator(self, client):
        resp = _post_chart(client, filters=[{"column": "sales", "operator": "between", "value": "1"}])
        assert resp.status_code == 400
        assert resp.json()["field"] == "filters[0].operator"

    def test_missing_dataset_id(self, client):
        resp = client.post("/api/charts/data", json={"xAxis": "region"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Validation failed"
        assert "datasetId" in resp.json()["errors"]


def test_export_csv(client):
    resp = client.post(
        "/api/charts/export",
        json={"datasetId": 1, "xAxis": "region", "yAxis": "sales", "aggregation": "sum"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "sum_sales_by_region.csv" in resp.headers["content-disposition"]
    assert resp.text.splitlines() == ["region,sales", "east,30.0", "west,5.0"]


class TestDatasets:
    def test_list_hides_rows_and_private(self, client):
        resp = client.get("/api/datasets")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert [d["name"] for d in data] == ["orders", "sales"]
        assert all("data" not in d for d in data)
        assert data[1]["rowCount"] == 3
        assert data[1]["owner"] is None

    def test_get_includes_rows(self, client, sales_rows):
        resp = client.get("/api/datasets/1")
        assert resp.json()["data"]["data"] == sales_rows
        assert resp.json()["data"]["columns"] == ["region", "sales"]

    def test_get_unknown(self, client):
        resp = client.get("/api/datasets/99")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_create_then_chart(self, client):
        resp = client.post(
            "/api/datasets",
            json={"name": "kpis", "data": [{"team": "a", "score": "3"}, {"team": "a", "score": 4}]},
        )
        assert resp.status_code == 201
        created = resp.json()["data"]
        assert created["columns"] == ["team", "score"]
        chart = _post_chart(client, datasetId=created["id"], xAxis="team", yAxis="score", aggregation="max")
        assert chart.json()["data"] == [{"team": "a", "score": 4}]

    def test_create_duplicate(self, client):
        resp = client.post("/api/datasets", json={"name": "sales", "data": [{"a": 1}]})
        assert resp.status_code == 409

    def test_create_without_rows(self, client):
        resp = client.post("/api/datasets", json={"name": "empty", "data": []})
        assert resp.status_code == 400
        assert resp.json()["field"] == "data"

    def test_delete(self, client):
        assert client.delete("/api/datasets/1").status_code == 200
        assert client.get("/api/datasets/1").status_code == 404


def test_header_credentials_scope_datasets(store):
    client = TestClient(create_app(store, HeaderCredentialProvider("X-User")))
    assert client.get("/api/datasets/3").status_code == 404
    assert client.get("/api/datasets/3", headers={"X-User": "alice"}).status_code == 200
    resp = client.post("/api/charts/data", json={"datasetId": 3}, headers={"X-User": "alice"})
    assert resp.json()["data"] == [{"k": "x", "v": 1}]


def test_created_datasets_belong_to_caller():
    client = TestClient(create_app(DatasetStore(), StaticCredentialProvider("bob")))
    resp = client.post("/api/datasets", json={"name": "mine", "data": [{"a": 1}]})
    assert resp.json()["data"]["owner"] == "bob"


def test_seed_path(tmp_path):
    seed = tmp_path / "seed.json"
    seed.write_text('[{"name": "seeded", "rows": [{"a": 1}]}]')
    client = TestClient(create_app(seed_path=seed))
    assert client.get("/health").json() == {"status": "ok", "datasets": 1}


def test_huge_integer_cell_does_not_fail_the_chart():
    store = DatasetStore()
    store.create("big", [{"k": "a", "v": 10**400}, {"k": "a", "v": 1}])
    client = TestClient(create_app(store, StaticCredentialProvider(None)))
    resp = client.post("/api/charts/data", json={"datasetId": 1, "xAxis": "k", "yAxis": "v", "aggregation": "sum"})
    assert resp.status_code == 200
    assert resp.json()["data"] == [{"k": "a", "v": 1.0}]


def test_export_failure_is_reported(client, monkeypatch):
    def broken(rows):
        raise RuntimeError("disk full")

    monkeypatch.setattr("chart_api.main.rows_to_csv", broken)
    resp = client.post("/api/charts/export", json={"datasetId": 1})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Failed to export chart data"}
