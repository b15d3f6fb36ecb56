from collections.abc import Generator
from decimal import Decimal
from functools import partial
from typing import Any

import pytest
from fastapi.testclient import TestClient

from finance_ledger.core import settings
from finance_ledger.domain.csv_codec import CSV_HEADER
from finance_ledger.ledger import Ledger
from finance_ledger.main import app
from finance_ledger.services.importer import CsvImporter
from finance_ledger.storage.blobs import TRANSACTIONS_KEY, load_transactions, save_transactions
from finance_ledger.storage.file_store import FileBlobStore

client = TestClient(app)

_STATE_KEYS = ("store", "ledger", "importer")


@pytest.fixture
def store(tmp_path) -> FileBlobStore:
    return FileBlobStore(data_dir=str(tmp_path))


@pytest.fixture
def ledger(store: FileBlobStore) -> Generator[Ledger, None, None]:
    originals = {key: getattr(app.state, key, None) for key in _STATE_KEYS}
    present = {key for key in _STATE_KEYS if hasattr(app.state, key)}

    ledger = Ledger(on_commit=partial(save_transactions, store))
    app.state.store = store
    app.state.ledger = ledger
    app.state.importer = CsvImporter(ledger, max_bytes=1024)
    yield ledger

    for key in _STATE_KEYS:
        if key in present:
            setattr(app.state, key, originals[key])
        else:
            delattr(app.state, key)


def _payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "type": "expense",
        "amount": "12.50",
        "description": "Lunch",
        "date": "2023-01-15",
        "category": "Food",
    }
    payload.update(overrides)
    return payload


def test_add_transaction_persists(ledger: Ledger, store: FileBlobStore) -> None:
    response = client.post("/api/transactions", json=_payload())
    assert response.status_code == 201
    data = response.json()
    assert data["description"] == "Lunch"
    assert Decimal(str(data["amount"])) == Decimal("12.50")

    [stored] = load_transactions(store)
    assert stored.id == data["id"]


def test_add_transaction_validation_error(ledger: Ledger, store: FileBlobStore) -> None:
    response = client.post("/api/transactions", json=_payload(description="   "))
    assert response.status_code == 422
    assert response.json()["detail"] == "Description is required"
    assert len(ledger) == 0
    assert store.get(TRANSACTIONS_KEY) is None


def test_update_and_delete_transaction(ledger: Ledger) -> None:
    created = client.post("/api/transactions", json=_payload()).json()

    response = client.put(f"/api/transactions/{created['id']}", json=_payload(amount=30, category=""))
    assert response.status_code == 200
    assert response.json()["category"] == "General"
    assert ledger.get(created["id"]).amount == Decimal("30")

    response = client.delete(f"/api/transactions/{created['id']}")
    assert response.status_code == 200
    assert len(ledger) == 0

    assert client.delete(f"/api/transactions/{created['id']}").status_code == 404
    assert client.put("/api/transactions/999", json=_payload()).status_code == 404


def test_records_view_offers_empty_month(ledger: Ledger) -> None:
    client.post("/api/transactions", json=_payload())

    response = client.get("/api/records?month=2024-06")
    assert response.status_code == 200
    data = response.json()
    values = [option["value"] for option in data["months"]]
    assert "2024-06" in values
    assert "2023-01" in values
    assert values == sorted(values, reverse=True)
    assert data["transactions"] == []
    assert data["summary"] == {"income": "0.00", "expense": "0.00", "balance": "0.00"}


def test_records_view_defaults_to_latest_month(ledger: Ledger) -> None:
    client.post("/api/transactions", json=_payload(type="income", amount="100", date="2023-01-02"))
    client.post("/api/transactions", json=_payload(amount="0.333", date="2023-01-20"))

    data = client.get("/api/records").json()
    assert data["month"] == "2023-01"
    assert data["month_label"] == "January 2023"
    assert data["summary"] == {"income": "100.00", "expense": "0.33", "balance": "99.67"}
    assert [row["date"] for row in data["transactions"]] == ["2023-01-20", "2023-01-02"]


def test_string_id_is_reachable_after_add(ledger: Ledger) -> None:
    response = client.post("/api/transactions", json=_payload(id="123"))
    assert response.status_code == 201
    assert response.json()["id"] == 123

    assert client.put("/api/transactions/123", json=_payload(description="Dinner")).status_code == 200
    result = ledger.import_csv(ledger.export_csv())
    assert result.added == 0
    assert client.delete("/api/transactions/123").status_code == 200
    assert len(ledger) == 0


def test_oversized_amount_is_rejected(ledger: Ledger) -> None:
    assert client.post("/api/transactions", json=_payload(amount="1e30")).status_code == 422

    client.post("/api/transactions", json=_payload(type="income", amount="999999999999999.99"))
    data = client.get("/api/records?month=2023-01").json()
    assert data["summary"]["income"] == "999999999999999.99"


def test_records_view_rejects_bad_month(ledger: Ledger) -> None:
    assert client.get("/api/records?month=2024-13").status_code == 422


def test_charts_view(ledger: Ledger) -> None:
    client.post("/api/transactions", json=_payload(date="2023-02-01", category="Rent", amount="500"))
    client.post("/api/transactions", json=_payload(type="income", amount="900", date="2023-01-01"))

    data = client.get("/api/charts").json()
    assert data["month"] == "2023-02"
    assert data["bar"]["months"] == ["2023-01", "2023-02"]
    assert [option["value"] for option in data["months"]] == ["2023-01", "2023-02"]
    assert data["pie"]["labels"] == ["Rent"]


def test_charts_view_offers_selected_month(ledger: Ledger) -> None:
    data = client.get("/api/charts?month=2024-06").json()
    assert data["month"] == "2024-06"
    assert [option["value"] for option in data["months"]] == ["2024-06"]
    assert data["pie"]["labels"] == []


def test_export_csv(ledger: Ledger) -> None:
    client.post("/api/transactions", json=_payload(description='Lunch "deal"'))

    response = client.get("/api/export?month=2023-01")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="transactions_2023-01.csv"' in response.headers["content-disposition"]
    lines = response.text.split("\n")
    assert lines[0] == CSV_HEADER
    assert '"Lunch ""deal"""' in lines[1]


def test_import_csv(ledger: Ledger, store: FileBlobStore) -> None:
    text = CSV_HEADER + '\n1,income,10,"Refund",2023-03-01,"Misc"'
    response = client.post("/api/import", files={"file": ("t.csv", text, "text/csv")})
    assert response.status_code == 200
    assert response.json() == {"status": "CSV import complete.", "added": 1, "replaced": 0, "total": 1}
    assert [t.id for t in load_transactions(store)] == [1]


def test_import_bad_header_leaves_ledger_untouched(ledger: Ledger, store: FileBlobStore) -> None:
    response = client.post("/api/import", files={"file": ("t.csv", "id,type,amount\n1,income,5", "text/csv")})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Import failed:")
    assert len(ledger) == 0
    assert store.get(TRANSACTIONS_KEY) is None


def test_import_too_large(ledger: Ledger) -> None:
    text = CSV_HEADER + "\n" + "\n".join(f'{i},income,1,"x",2023-01-01,"y"' for i in range(1, 200))
    response = client.post("/api/import", files={"file": ("t.csv", text, "text/csv")})
    assert response.status_code == 413


def test_profile_round_trip(ledger: Ledger) -> None:
    assert client.get("/api/profile").json() == {"name": "", "email": "", "photo": ""}

    response = client.put("/api/profile", json={"name": " Ada ", "email": "ada@example.com", "photo": ""})
    assert response.status_code == 200
    assert client.get("/api/profile").json()["name"] == "Ada"


def test_config_updates(ledger: Ledger, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.yaml"
    monkeypatch.setattr(settings, "_CONFIG_FILE_PATH", str(config_path))
    monkeypatch.setattr(settings, "_EXTERNAL_ENV_KEYS", set())
    monkeypatch.setenv("MAX_IMPORT_BYTES", "1024")

    response = client.post("/api/config", json={"MAX_IMPORT_BYTES": "2048"})
    assert response.status_code == 200
    assert response.json()["updated"] == ["MAX_IMPORT_BYTES"]
    assert app.state.importer.max_bytes == 2048
    assert "MAX_IMPORT_BYTES: 2048" in config_path.read_text()

    response = client.post("/api/config", json={"LOG_LEVEL": "chatty"})
    assert response.status_code == 422
    assert "LOG_LEVEL" in response.json()["detail"]


def test_missing_services_return_500() -> None:
    had_ledger = hasattr(app.state, "ledger")
    original = getattr(app.state, "ledger", None)
    if had_ledger:
        delattr(app.state, "ledger")
    try:
        assert client.get("/api/transactions").status_code == 500
    finally:
        if had_ledger:
            app.state.ledger = original
