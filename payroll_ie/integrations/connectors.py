import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from payroll_ie.core.config import settings
from payroll_ie.core.exceptions import ConfigurationStoreError, PayrollError
from payroll_ie.tax.bands import TaxBand, TaxKind, select_active_bands

logger = logging.getLogger(__name__)

class HttpBandProvider:
    """Band store behind an HTTP API: GET {base_url}/tax-bands?year=&kind= returns a JSON list of bands."""

    def __init__(self, base_url: str, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = settings.BAND_STORE_TIMEOUT if timeout is None else timeout

    def test_connection(self) -> bool:
        try:
            r = requests.get(f"{self.base_url}/health", timeout=self.timeout)
            return r.ok
        except requests.RequestException:
            return False

    def fetch_rows(self, tax_year: int, kind: TaxKind) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/tax-bands"
        try:
            r = requests.get(url, params={"year": tax_year, "kind": TaxKind.parse(kind).value}, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ConfigurationStoreError(f"Band store fetch failed: {e}") from e
        if not isinstance(data, list):
            raise ConfigurationStoreError(f"Band store returned {type(data).__name__}, expected a list")
        return data

    @staticmethod
    def _to_band(row: Dict[str, Any], tax_year: int, kind: TaxKind) -> TaxBand:
        def _date(key):
            value = row.get(key)
            return date.fromisoformat(value) if value else None

        return TaxBand(
            tax_year=int(row.get("tax_year", tax_year)),
            kind=row.get("tax_kind", kind),
            name=row.get("band_name"),
            lower=row["income_lower"],
            upper=row.get("income_upper"),
            rate=row["rate"],
            is_active=row.get("is_active", True),
            effective_from=_date("effective_from"),
            effective_to=_date("effective_to"),
        )

    def get_bands(self, tax_year: int, kind: TaxKind, as_of: Optional[date] = None) -> List[TaxBand]:
        kind = TaxKind.parse(kind)
        rows = self.fetch_rows(tax_year, kind)
        try:
            bands = [self._to_band(row, tax_year, kind) for row in rows]
        except (KeyError, TypeError, ValueError, PayrollError) as e:
            raise ConfigurationStoreError(f"Band store returned a malformed band: {e}") from e
        logger.debug("Fetched %d %s bands for %s from %s", len(bands), kind.value, tax_year, self.base_url)
        return select_active_bands(bands, tax_year, kind, as_of)
