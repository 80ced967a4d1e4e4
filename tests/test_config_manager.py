import json
from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from payroll_ie.core.exceptions import InvalidInput
from payroll_ie.tax.bands import PAYE_BANDS_2025, USC_BANDS_2025, InMemoryBandProvider, TaxKind
from payroll_ie.tax.calculator import compute_usc
from payroll_ie.tax.config_manager import BAND_COLUMNS, TaxBandConfigManager

def test_template_holds_2025_tables():
    df = TaxBandConfigManager().get_template()
    assert list(df.columns) == BAND_COLUMNS
    assert len(df) == 6
    assert set(df["tax_kind"]) == {"PAYE", "USC"}

def test_load_bands_from_csv(tmp_path):
    df = pd.DataFrame([
        {"tax_year": 2026, "tax_kind": " usc ", "band_name": "Band 1", "income_lower": 0, "income_upper": 12012, "rate": 0.005},
        {"tax_year": 2026, "tax_kind": "USC", "band_name": "Band 2", "income_lower": 12012, "income_upper": None, "rate": 0.02},
    ])
    path = tmp_path / "bands.csv"
    df.to_csv(path, index=False)

    bands = TaxBandConfigManager().load_bands(path)
    assert [b.kind for b in bands] == [TaxKind.USC, TaxKind.USC]
    assert bands[0].rate == Decimal("0.005")
    assert bands[1].upper is None
    assert all(b.is_active for b in bands)

    provider = InMemoryBandProvider(bands)
    assert compute_usc(Decimal("20000"), provider.get_bands(2026, TaxKind.USC)) == Decimal("219.82")

def test_load_bands_from_json_with_mappings(tmp_path):
    path = tmp_path / "bands.json"
    path.write_text(json.dumps([
        {"year": 2026, "kind": "PAYE", "from": 0, "to": 44000, "pct": 0.2, "effective_from": "2026-01-01"},
        {"year": 2026, "kind": "PAYE", "from": 44000, "to": None, "pct": 0.4, "effective_from": "2026-01-01"},
    ]))
    mappings = [
        {"source": "year", "target": "tax_year"},
        {"source": "kind", "target": "tax_kind"},
        {"source": "from", "target": "income_lower"},
        {"source": "to", "target": "income_upper"},
        {"source": "pct", "target": "rate"},
    ]
    bands = TaxBandConfigManager().load_bands(path, mappings)
    assert bands[0].upper == Decimal("44000")
    assert bands[1].effective_from == date(2026, 1, 1)

def test_invalid_rows_are_listed(tmp_path):
    df = pd.DataFrame([
        {"tax_year": 2026, "tax_kind": "PAYE", "income_lower": 0, "income_upper": 44000, "rate": 0.2},
        {"tax_year": 2026, "tax_kind": "VAT", "income_lower": 0, "income_upper": None, "rate": 0.2},
        {"tax_year": 2026, "tax_kind": "PAYE", "income_lower": 44000, "income_upper": None, "rate": 40},
    ])
    path = tmp_path / "bad.csv"
    df.to_csv(path, index=False)
    with pytest.raises(InvalidInput) as exc:
        TaxBandConfigManager().load_bands(path)
    message = str(exc.value)
    assert "row 2" in message and "tax_kind" in message
    assert "row 3" in message and "rate" in message
    assert "row 1" not in message

def test_unsupported_format(tmp_path):
    path = tmp_path / "bands.txt"
    path.write_text("nope")
    with pytest.raises(InvalidInput):
        TaxBandConfigManager().load_bands(path)

def test_export_and_reload_excel(tmp_path):
    manager = TaxBandConfigManager()
    out = manager.export_bands(PAYE_BANDS_2025 + USC_BANDS_2025, tmp_path / "out" / "bands.xlsx")
    assert out.exists()
    reloaded = manager.load_bands(out)
    assert [(b.kind, b.lower, b.upper, b.rate) for b in reloaded] == \
        [(b.kind, b.lower, b.upper, b.rate) for b in PAYE_BANDS_2025 + USC_BANDS_2025]
    assert manager.get_config_stats(reloaded)["by_year_kind"] == {"2025:PAYE": 2, "2025:USC": 4}
