"""
Irish statutory deductions: PAYE, PRSI and USC.

The band calculators and the PRSI calculator are pure functions over the
values they are given. TaxCalculator composes them for one employee and one
pay period, reading bands through an injected BandProvider.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from payroll_ie.core.config import settings
from payroll_ie.core.exceptions import ConfigurationMissing, InvalidInput
from payroll_ie.core.models import EmployeeSnapshot, PayFrequency, TaxBreakdown
from payroll_ie.core.utils import ZERO, round_money, to_decimal
from payroll_ie.tax.bands import BandProvider, TaxBand, TaxKind

logger = logging.getLogger(__name__)

def compute_banded_tax(income: Decimal, bands: Sequence[TaxBand]) -> Decimal:
    """
    Distribute income across ascending bands and sum the tax per band.

    Each band's tax is rounded half-up to cents before it is added to the
    total; totals must match figures produced that way historically.
    """
    if income <= 0:
        return ZERO
    if not bands:
        raise ConfigurationMissing(message="No active tax bands supplied for a positive income")

    total = ZERO
    remaining = income
    for band in bands:
        if remaining <= 0:
            break
        width = band.width
        taxable = remaining if width is None else min(remaining, width)
        total += round_money(taxable * band.rate)
        remaining -= taxable
    return total

def compute_paye(gross_pay: Decimal, bands: Sequence[TaxBand], annual_credits: Optional[Decimal] = None) -> Decimal:
    if gross_pay <= 0:
        return ZERO
    tax = compute_banded_tax(gross_pay, bands)
    if annual_credits is not None and annual_credits > 0:
        tax -= annual_credits
    # Credits are not refundable
    return round_money(max(tax, ZERO))

def compute_usc(gross_pay: Decimal, bands: Sequence[TaxBand]) -> Decimal:
    return round_money(compute_banded_tax(gross_pay, bands))

def compute_prsi(gross_pay: Decimal, frequency: PayFrequency, *,
                 rate: Optional[Decimal] = None,
                 weekly_threshold: Optional[Decimal] = None,
                 monthly_threshold: Optional[Decimal] = None) -> Decimal:
    """
    Employee PRSI: a flat rate on the whole gross pay once it reaches the
    exemption threshold for the pay frequency. Pay exactly at the threshold
    is chargeable.
    """
    if gross_pay <= 0:
        return ZERO
    frequency = PayFrequency.parse(frequency)
    rate = settings.PRSI_EMPLOYEE_RATE if rate is None else rate
    if frequency == PayFrequency.WEEKLY:
        threshold = settings.PRSI_WEEKLY_THRESHOLD if weekly_threshold is None else weekly_threshold
    else:
        threshold = settings.PRSI_MONTHLY_THRESHOLD if monthly_threshold is None else monthly_threshold

    if gross_pay < threshold:
        return ZERO
    return round_money(gross_pay * rate)

class TaxCalculator:
    """Produces the full deduction breakdown for one employee and period."""

    def __init__(self, band_provider: BandProvider):
        self.band_provider = band_provider

    def _bands(self, tax_year: int, kind: TaxKind, as_of: Optional[date]):
        bands = self.band_provider.get_bands(tax_year, kind, as_of)
        if not bands:
            raise ConfigurationMissing(tax_year, kind)
        return bands

    def calculate(self, employee: EmployeeSnapshot, gross_pay, tax_year: int,
                  as_of: Optional[date] = None) -> TaxBreakdown:
        gross_pay = to_decimal(gross_pay, "gross_pay")
        if not gross_pay.is_finite():
            raise InvalidInput(f"gross_pay: must be finite for employee {employee.employee_id}, got {gross_pay}")
        if gross_pay < 0:
            raise InvalidInput(f"gross_pay: must not be negative for employee {employee.employee_id}, got {gross_pay}")
        if gross_pay == 0:
            return TaxBreakdown.zero()

        paye = compute_paye(gross_pay, self._bands(tax_year, TaxKind.PAYE, as_of), employee.tax_credits_annual)
        prsi = compute_prsi(gross_pay, employee.pay_frequency)
        usc = compute_usc(gross_pay, self._bands(tax_year, TaxKind.USC, as_of))

        net_pay = round_money(gross_pay - (paye + prsi + usc))
        logger.debug("Tax for %s (%s): paye=%s prsi=%s usc=%s net=%s",
                     employee.employee_id, tax_year, paye, prsi, usc, net_pay)
        return TaxBreakdown(
            gross_pay=round_money(gross_pay),
            paye=paye,
            prsi=prsi,
            usc=usc,
            tax_credits=round_money(employee.tax_credits_annual),
            net_pay=net_pay,
        )
