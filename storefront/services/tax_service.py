import logging
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from storefront.models.tax_rate import TaxRate
from storefront.utils.clock import utcnow

logger = logging.getLogger(__name__)


def _blank(column):
    return or_(column == "", column.is_(None))


def find_tax_rate(
    session: Session,
    country: Optional[str],
    region: Optional[str] = None,
    city: Optional[str] = None,
) -> Optional[TaxRate]:
    """Most specific match first: city > region > country > default."""

    attempts = []

    if country and region and city:
        attempts.append(
            (TaxRate.country == country, TaxRate.region == region, TaxRate.city == city)
        )

    if country and region:
        attempts.append(
            (TaxRate.country == country, TaxRate.region == region, _blank(TaxRate.city))
        )

    if country:
        attempts.append(
            (TaxRate.country == country, _blank(TaxRate.region), _blank(TaxRate.city))
        )

    attempts.append((TaxRate.is_default == True,))  # noqa: E712

    for conditions in attempts:
        match = session.exec(
            select(TaxRate).where(*conditions).order_by(TaxRate.id)
        ).first()
        if match:
            return match

    return None


def lookup_tax_rate(
    session: Session,
    country: Optional[str],
    region: Optional[str] = None,
    city: Optional[str] = None,
) -> Optional[TaxRate]:
    """Like find_tax_rate, but a store failure reads as no match."""
    try:
        return find_tax_rate(session, country, region, city)
    except SQLAlchemyError as e:
        logger.warning(f"Tax lookup failed for {country}/{region}/{city}: {e}")
        return None


def resolve_tax_rate(
    session: Session,
    country: Optional[str],
    region: Optional[str] = None,
    city: Optional[str] = None,
) -> float:
    """Tax percentage for an address. Never raises; falls back to 0."""
    match = lookup_tax_rate(session, country, region, city)
    return float(match.rate) if match else 0.0


def clear_other_defaults(session: Session, keep_id: Optional[int] = None):
    stmt = update(TaxRate).where(TaxRate.is_default == True)  # noqa: E712
    if keep_id is not None:
        stmt = stmt.where(TaxRate.id != keep_id)

    session.exec(stmt.values(is_default=False, updated_at=utcnow()))


def save_tax_rate(session: Session, tax_rate: TaxRate) -> TaxRate:
    """Insert or update a row; a default row unseats the previous default.

    The caller owns the transaction so the clear and the set commit together.
    """
    tax_rate.updated_at = utcnow()
    session.add(tax_rate)
    session.flush()

    if tax_rate.is_default:
        clear_other_defaults(session, keep_id=tax_rate.id)
        logger.info(f"Tax rate {tax_rate.id} is now the default ({tax_rate.rate}%)")

    return tax_rate


def set_default_tax_rate(session: Session, tax_rate_id: int) -> Optional[TaxRate]:
    tax_rate = session.get(TaxRate, tax_rate_id)
    if not tax_rate:
        return None

    tax_rate.is_default = True
    return save_tax_rate(session, tax_rate)
