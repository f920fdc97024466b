# accounting/balance.py
"""
Line model and balance calculator.

Pure computation over a list of candidate lines. Nothing here fails:
malformed amounts count as zero so a half-filled form can be totalled
live. Correctness is enforced later by accounting.validation.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

ZERO = Decimal("0")

# Amounts are integral currency units; this only absorbs float noise.
BALANCE_TOLERANCE = Decimal("0.0001")


def parse_amount(raw) -> Decimal:
    """
    Parse a user-supplied amount.

    Accepts Decimal, int, float or str (" 250.5 "). Anything empty or
    unparseable is zero, including NaN, infinities and comma text such
    as "1,000" or "1,5".
    """
    if raw is None or isinstance(raw, bool):
        return ZERO
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return ZERO
        try:
            value = Decimal(text)
        except InvalidOperation:
            return ZERO
    if not value.is_finite():
        return ZERO
    return value


@dataclass(frozen=True)
class LineInput:
    """One candidate debit/credit line as typed by the user."""

    account_id: Any = None
    debit: Any = None
    credit: Any = None
    description: str = ""

    @classmethod
    def from_raw(cls, raw) -> "LineInput":
        if isinstance(raw, LineInput):
            return raw
        if isinstance(raw, dict):
            return cls(
                account_id=raw.get("account_id", raw.get("account")),
                debit=raw.get("debit"),
                credit=raw.get("credit"),
                description=raw.get("description") or "",
            )
        return cls(
            account_id=getattr(raw, "account_id", None),
            debit=getattr(raw, "debit", None),
            credit=getattr(raw, "credit", None),
            description=getattr(raw, "description", "") or "",
        )

    @property
    def debit_amount(self) -> Decimal:
        return parse_amount(self.debit)

    @property
    def credit_amount(self) -> Decimal:
        return parse_amount(self.credit)


@dataclass(frozen=True)
class NormalizedLine:
    line_no: int
    account_id: Any
    debit: Decimal
    credit: Decimal
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "line_no": self.line_no,
            "account_id": self.account_id,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "description": self.description,
        }


@dataclass(frozen=True)
class Totals:
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal


def _side(line, name: str) -> Decimal:
    if isinstance(line, dict):
        return parse_amount(line.get(name))
    return parse_amount(getattr(line, name, None))


def compute_totals(lines: Iterable) -> Totals:
    total_debit = ZERO
    total_credit = ZERO
    for line in lines or []:
        total_debit += _side(line, "debit")
        total_credit += _side(line, "credit")
    return Totals(
        total_debit=total_debit,
        total_credit=total_credit,
        difference=total_debit - total_credit,
    )


def is_balanced(totals: Totals) -> bool:
    return abs(totals.difference) < BALANCE_TOLERANCE


def _normalize_account_id(account_id) -> Optional[Any]:
    if isinstance(account_id, str):
        account_id = account_id.strip()
        return account_id or None
    return account_id


def normalize_lines(lines: Iterable) -> List[NormalizedLine]:
    """
    Renumber lines 1..n in their given order and normalize their fields.

    Caller-supplied line numbers are ignored. Running this on its own
    output returns an equal list.
    """
    normalized = []
    for line_no, raw in enumerate(lines or [], start=1):
        line = LineInput.from_raw(raw)
        normalized.append(NormalizedLine(
            line_no=line_no,
            account_id=_normalize_account_id(line.account_id),
            debit=line.debit_amount,
            credit=line.credit_amount,
            description=(line.description or "").strip(),
        ))
    return normalized
