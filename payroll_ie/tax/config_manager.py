"""
Tax band configuration management: band tables are uploaded as data files,
validated and turned into TaxBand objects ready for a band store.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from payroll_ie.core.upload_manager import ColumnMapping, UploadManager
from payroll_ie.core.utils import to_decimal
from payroll_ie.tax.bands import PAYE_BANDS_2025, USC_BANDS_2025, TaxBand

logger = logging.getLogger(__name__)

BAND_COLUMNS = [
    'tax_year', 'tax_kind', 'band_name', 'income_lower', 'income_upper',
    'rate', 'effective_from', 'effective_to', 'is_active',
]

def _optional(value: Any) -> Optional[Any]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, str) and value.strip() == '':
        return None
    return value

def _as_date(value: Any):
    value = _optional(value)
    return None if value is None else pd.to_datetime(value).date()

def _as_bool(value: Any) -> bool:
    value = _optional(value)
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)

class TaxBandConfigManager:
    """Tax band tables as versioned, effective-dated configuration data."""

    def __init__(self):
        self.upload_manager = UploadManager('tax_bands')

    def get_template(self) -> pd.DataFrame:
        """Band upload template pre-filled with the 2025 Irish tables."""
        return self.bands_to_dataframe(PAYE_BANDS_2025 + USC_BANDS_2025)

    def load_bands(self, file_path: Union[str, Path],
                   column_mappings: Optional[List[Dict[str, str]]] = None) -> List[TaxBand]:
        """
        Load a band table from CSV/Excel/JSON.

        Args:
            file_path: Path to the band file
            column_mappings: Optional list of {'source': 'col_name', 'target': 'band_field'}
        """
        mappings = [
            ColumnMapping(source_column=m['source'], target_field=m['target'], transform=m.get('transform'))
            for m in (column_mappings or [])
        ]

        def transform_band_data(df: pd.DataFrame) -> pd.DataFrame:
            if 'tax_kind' in df.columns:
                df['tax_kind'] = df['tax_kind'].map(lambda v: v if pd.isna(v) else str(v).strip().upper())
            return df

        df = self.upload_manager.load_validated(file_path, mappings, transform_band_data)

        bands = []
        for record in df.to_dict(orient='records'):
            upper = _optional(record.get('income_upper'))
            bands.append(TaxBand(
                tax_year=int(record['tax_year']),
                kind=record['tax_kind'],
                name=_optional(record.get('band_name')),
                lower=to_decimal(record['income_lower'], 'income_lower'),
                upper=None if upper is None else to_decimal(upper, 'income_upper'),
                rate=to_decimal(record['rate'], 'rate'),
                is_active=_as_bool(record.get('is_active')),
                effective_from=_as_date(record.get('effective_from')),
                effective_to=_as_date(record.get('effective_to')),
            ))

        logger.info("Loaded %d tax bands from %s", len(bands), Path(file_path).name)
        return bands

    @staticmethod
    def bands_to_dataframe(bands: Iterable[TaxBand]) -> pd.DataFrame:
        rows = [
            {
                'tax_year': b.tax_year,
                'tax_kind': b.kind.value,
                'band_name': b.name,
                'income_lower': float(b.lower),
                'income_upper': None if b.upper is None else float(b.upper),
                'rate': float(b.rate),
                'effective_from': b.effective_from.isoformat() if b.effective_from else None,
                'effective_to': b.effective_to.isoformat() if b.effective_to else None,
                'is_active': b.is_active,
            }
            for b in bands
        ]
        return pd.DataFrame(rows, columns=BAND_COLUMNS)

    def export_bands(self, bands: Iterable[TaxBand], file_path: Union[str, Path]) -> Path:
        """Export bands to an Excel workbook, or CSV when the path ends in .csv."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        df = self.bands_to_dataframe(bands)
        if file_path.suffix.lower() == '.csv':
            df.to_csv(file_path, index=False)
        else:
            df.to_excel(file_path, index=False, sheet_name='Tax Bands', engine='openpyxl')
        return file_path

    def get_config_stats(self, bands: Iterable[TaxBand]) -> Dict[str, Any]:
        """Count bands per (year, kind)."""
        by_key: Dict[str, int] = {}
        for b in bands:
            key = f"{b.tax_year}:{b.kind.value}"
            by_key[key] = by_key.get(key, 0) + 1
        return {'total_bands': sum(by_key.values()), 'by_year_kind': by_key}
