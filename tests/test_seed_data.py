import pandas as pd
import pytest

from db import repository
from db.seed_data import load_rows, seed_from_csv


def test_seed_from_csv_inserts_rows(tmp_path, engine):
    csv_path = tmp_path / "entries.csv"
    csv_path.write_text(
        "category,year,month,department,amount,data\n"
        'utilities,2024,3,IT,150.5,"{""note"": ""x""}"\n'
        "utilities,2024,3,HR,abc,\n"
        "rent,2024,1,Ops,20,\n"
    )

    assert seed_from_csv(str(csv_path), engine) == 3

    rows = repository.get_entries(engine, "utilities", 2024, 3)
    assert [(r["department"], r["amount"], r["data"]) for r in rows] == [
        ("HR", 0, {}),
        ("IT", 150.5, {"note": "x"}),
    ]
    assert repository.get_yearly_totals(engine, 2024) == {"utilities": 150.5, "rent": 20}


def test_load_rows_without_data_column():
    df = pd.DataFrame([{"Category": "rent", "Year": 2024, "Month": 2, "Department": "Ops", "Amount": "12.346"}])
    rows = load_rows(df)
    assert rows == [{
        "category": "rent",
        "year": 2024,
        "month": 2,
        "department": "Ops",
        "amount": 12.35,
        "data": {},
    }]


def test_load_rows_rejects_missing_columns():
    df = pd.DataFrame([{"category": "rent", "year": 2024}])
    with pytest.raises(ValueError, match="month, department, amount"):
        load_rows(df)


def test_seeded_half_cents_round_up(tmp_path, engine):
    csv_path = tmp_path / "entries.csv"
    csv_path.write_text("category,year,month,department,amount\nrent,2023,1,Ops,2.675\n")
    seed_from_csv(str(csv_path), engine)
    assert repository.get_yearly_totals(engine, 2023) == {"rent": 2.68}
