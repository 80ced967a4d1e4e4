"""
Tax band table: effective-dated marginal bands per (tax year, tax kind).

Bands are configuration data. Calculators read them through a BandProvider
and trust the ordering they are given; overlap and gap checks belong to the
owner of the configuration.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from payroll_ie.core.exceptions import InvalidInput
from payroll_ie.core.utils import to_decimal

RATE_PLACES = Decimal("0.000001")

class TaxKind(str, Enum):
    PAYE = "PAYE"   # Pay As You Earn, graduated income tax
    PRSI = "PRSI"   # Pay Related Social Insurance, flat rate above threshold
    USC = "USC"     # Universal Social Charge

    @classmethod
    def parse(cls, value) -> "TaxKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidInput(f"kind: expected one of PAYE, PRSI, USC, got {value!r}") from None

@dataclass(frozen=True)
class TaxBand:
    tax_year: int
    kind: TaxKind
    lower: Decimal
    upper: Optional[Decimal]
    rate: Decimal
    is_active: bool = True
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", TaxKind.parse(self.kind))
        lower = to_decimal(self.lower, "lower")
        upper = None if self.upper is None else to_decimal(self.upper, "upper")
        rate = to_decimal(self.rate, "rate")
        if lower < 0:
            raise InvalidInput(f"lower: must not be negative, got {lower}")
        if upper is not None and upper.is_infinite():
            upper = None
        if upper is not None and upper <= lower:
            raise InvalidInput(f"upper: must exceed lower bound {lower}, got {upper}")
        if not (Decimal("0") <= rate <= Decimal("1")):
            raise InvalidInput(f"rate: must be a fraction between 0 and 1, got {rate}")
        if rate.quantize(RATE_PLACES) != rate:
            raise InvalidInput(f"rate: at most six decimal places, got {rate}")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)
        object.__setattr__(self, "rate", rate)

    @property
    def width(self) -> Optional[Decimal]:
        """Income covered by this band, or None when the band is unbounded."""
        if self.upper is None:
            return None
        return self.upper - self.lower

    def is_effective_on(self, as_of: date) -> bool:
        if self.effective_from and as_of < self.effective_from:
            return False
        if self.effective_to and as_of > self.effective_to:
            return False
        return True

@runtime_checkable
class BandProvider(Protocol):
    """Read-only source of tax bands, e.g. a database table or a config service."""

    def get_bands(self, tax_year: int, kind: TaxKind, as_of: Optional[date] = None) -> List[TaxBand]:
        """Active bands for (tax_year, kind) ordered by lower bound. Empty when none are configured."""
        ...

def select_active_bands(bands: Iterable[TaxBand], tax_year: int, kind: TaxKind,
                        as_of: Optional[date] = None) -> List[TaxBand]:
    """Filter to the active bands of one (year, kind) and order them by lower bound."""
    kind = TaxKind.parse(kind)
    selected = [
        b for b in bands
        if b.tax_year == tax_year and b.kind == kind and b.is_active
        and (as_of is None or b.is_effective_on(as_of))
    ]
    return sorted(selected, key=lambda b: b.lower)

class InMemoryBandProvider:
    def __init__(self, bands: Iterable[TaxBand] = ()):
        self._bands: Tuple[TaxBand, ...] = tuple(bands)

    @property
    def bands(self) -> Tuple[TaxBand, ...]:
        return self._bands

    def get_bands(self, tax_year: int, kind: TaxKind, as_of: Optional[date] = None) -> List[TaxBand]:
        return select_active_bands(self._bands, tax_year, kind, as_of)

class BandSnapshot:
    """
    Bands read once for a payroll run and frozen for its lifetime.

    Loaded on the calling thread before workers start, so worker threads only
    ever read the dict.
    """

    def __init__(self, tax_year: int, bands_by_kind: Dict[TaxKind, Tuple[TaxBand, ...]]):
        self.tax_year = tax_year
        self._bands_by_kind = dict(bands_by_kind)

    @classmethod
    def load(cls, provider: BandProvider, tax_year: int,
             kinds: Sequence[TaxKind] = (TaxKind.PAYE, TaxKind.USC),
             as_of: Optional[date] = None) -> "BandSnapshot":
        return cls(tax_year, {
            TaxKind.parse(kind): tuple(provider.get_bands(tax_year, TaxKind.parse(kind), as_of))
            for kind in kinds
        })

    def get_bands(self, tax_year: int, kind: TaxKind, as_of: Optional[date] = None) -> List[TaxBand]:
        if tax_year != self.tax_year:
            return []
        return list(self._bands_by_kind.get(TaxKind.parse(kind), ()))

def _seed(tax_year: int, kind: TaxKind, rows: Sequence[Tuple[str, str, Optional[str], str]]) -> List[TaxBand]:
    return [
        TaxBand(
            tax_year=tax_year,
            kind=kind,
            name=name,
            lower=Decimal(lower),
            upper=None if upper is None else Decimal(upper),
            rate=Decimal(rate),
            effective_from=date(tax_year, 1, 1),
            effective_to=date(tax_year, 12, 31),
        )
        for name, lower, upper, rate in rows
    ]

# PAYE (2025): 20% on the first 42,000, 40% on the balance
PAYE_BANDS_2025 = _seed(2025, TaxKind.PAYE, [
    ("Standard Rate", "0", "42000", "0.20"),
    ("Higher Rate", "42000", None, "0.40"),
])

# USC (2025)
USC_BANDS_2025 = _seed(2025, TaxKind.USC, [
    ("Band 1", "0", "12012", "0.005"),
    ("Band 2", "12012", "25760", "0.02"),
    ("Band 3", "25760", "70044", "0.04"),
    ("Band 4", "70044", None, "0.08"),
])

def default_band_provider() -> InMemoryBandProvider:
    return InMemoryBandProvider(PAYE_BANDS_2025 + USC_BANDS_2025)
