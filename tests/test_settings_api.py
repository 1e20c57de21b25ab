from sqlalchemy import func, select

from db.model import AppSettings


def test_settings_defaults_to_empty_strings(client):
    response = client.get("/api/settings")
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 1
    assert body["prepared_by"] == ""
    assert body["prepared_title"] == ""
    assert body["checked_by"] == ""
    assert body["checked_title"] == ""
    assert "updated_at" in body


def test_save_settings_overwrites_all_fields(client):
    response = client.post("/api/settings", json={
        "preparedBy": "A. Clerk",
        "preparedTitle": "Accountant",
        "checkedBy": "B. Boss",
        "checkedTitle": "Director",
    })
    assert response.json() == {"success": True}

    body = client.get("/api/settings").json()
    assert body["prepared_by"] == "A. Clerk"
    assert body["prepared_title"] == "Accountant"
    assert body["checked_by"] == "B. Boss"
    assert body["checked_title"] == "Director"


def test_missing_fields_reset_to_empty(client):
    client.post("/api/settings", json={
        "preparedBy": "A. Clerk",
        "preparedTitle": "Accountant",
        "checkedBy": "B. Boss",
        "checkedTitle": "Director",
    })
    client.post("/api/settings", json={"checkedBy": "C. Auditor", "preparedTitle": None})

    body = client.get("/api/settings").json()
    assert body["prepared_by"] == ""
    assert body["prepared_title"] == ""
    assert body["checked_by"] == "C. Auditor"
    assert body["checked_title"] == ""


def test_saving_never_adds_rows(client, engine):
    for name in ("one", "two", "three"):
        client.post("/api/settings", json={"preparedBy": name})
    with engine.connect() as conn:
        count = conn.execute(select(func.count()).select_from(AppSettings.__table__)).scalar_one()
    assert count == 1


def test_missing_singleton_reads_as_empty_object(client, engine):
    with engine.begin() as conn:
        conn.execute(AppSettings.__table__.delete())
    assert client.get("/api/settings").json() == {}


def test_falsy_values_are_saved_as_empty(client):
    client.post("/api/settings", json={
        "preparedBy": False,
        "preparedTitle": 0,
        "checkedBy": "",
        "checkedTitle": 42,
    })
    body = client.get("/api/settings").json()
    assert body["prepared_by"] == ""
    assert body["prepared_title"] == ""
    assert body["checked_by"] == ""
    assert body["checked_title"] == "42"
