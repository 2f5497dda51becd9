"""
Boundary parsing of structured records (OCR output, bank exports) into the
certificate and transaction types the matcher works on.
"""
import json
import pandas as pd
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Dict, Any, Optional, Union

from ..core.exceptions import InvalidInput
from ..core.money import parse_kobo, parse_ngn_to_kobo, to_rate
from ..reconcile.scorer import TransactionForMatch, WHTCertificate

DATE_FORMATS = ["%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d-%b-%Y", "%d %b %Y", "%d %B %Y"]


def _missing(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, float) and pd.isna(val):
        return True
    return isinstance(val, str) and not val.strip()


def normalize_date(val: Any) -> Optional[date]:
    """Parse Nigerian-style (day first) dates; Excel serials are accepted. None when unparseable."""
    if _missing(val):
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return pd.to_datetime(val, origin="1899-12-30", unit="D").date()
    s = str(val).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    parsed = pd.to_datetime(s, dayfirst=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def normalize_rate(val: Any) -> Optional[Decimal]:
    """WHT rate as a fraction; "10", "10%" and 0.1 all give Decimal("0.1")."""
    if _missing(val):
        return None
    text = str(val).strip().rstrip('%').strip()
    rate = to_rate(text)
    if rate > 1:
        rate = rate / 100
    return rate


def _text(val: Any) -> Optional[str]:
    return None if _missing(val) else str(val).strip()


def _amount_kobo(record: Dict[str, Any], field: str) -> int:
    """`<field>_kobo` (whole kobo) wins over the naira value `<field>`."""
    kobo = record.get(f"{field}_kobo")
    if not _missing(kobo):
        return parse_kobo(kobo, f"{field}_kobo")
    naira = record.get(field)
    if _missing(naira):
        raise InvalidInput(field, "amount required")
    return parse_ngn_to_kobo(naira)


def certificate_from_record(record: Dict[str, Any]) -> WHTCertificate:
    """
    Fields: id, issuer_name, issuer_tin, amount or amount_kobo, wht_rate,
    issue_date, tax_year, certificate_number. The tax year falls back to the
    issue date's year.
    """
    cert_id = _text(record.get("id")) or _text(record.get("certificate_number"))
    if not cert_id:
        raise InvalidInput("id", "certificate needs an id or certificate_number")
    issue_date = normalize_date(record.get("issue_date"))
    tax_year = record.get("tax_year")
    if _missing(tax_year):
        if issue_date is None:
            raise InvalidInput("tax_year", "missing and no issue date to derive it from")
        tax_year = issue_date.year
    try:
        tax_year = int(tax_year)
    except (TypeError, ValueError):
        raise InvalidInput("tax_year", f"not a year: {tax_year!r}") from None
    return WHTCertificate(
        id=cert_id,
        issuer_name=_text(record.get("issuer_name")) or "",
        issuer_tin=_text(record.get("issuer_tin")),
        amount_kobo=_amount_kobo(record, "amount"),
        wht_rate=normalize_rate(record.get("wht_rate")),
        issue_date=issue_date,
        tax_year=tax_year,
        certificate_number=_text(record.get("certificate_number")),
    )


def transaction_from_record(record: Dict[str, Any]) -> TransactionForMatch:
    txn_id = _text(record.get("id")) or _text(record.get("reference"))
    if not txn_id:
        raise InvalidInput("id", "transaction needs an id or reference")
    return TransactionForMatch(
        id=txn_id,
        description=_text(record.get("description")) or _text(record.get("narration")) or "",
        amount_kobo=_amount_kobo(record, "amount"),
        date=normalize_date(record.get("date")),
        contact_name=_text(record.get("contact_name")),
        contact_tin=_text(record.get("contact_tin")),
    )


def load_records(file_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read CSV, Excel or JSON rows as dicts with lower-cased, trimmed keys."""
    ext = Path(file_path).suffix.lower()
    if ext == ".csv":
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    elif ext in [".xls", ".xlsx"]:
        df = pd.read_excel(file_path, dtype=str, keep_default_na=False)
    elif ext == ".json":
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        rows = data if isinstance(data, list) else [data]
        return [{str(k).strip().lower(): v for k, v in r.items()} for r in rows]
    else:
        raise ValueError(f"Unsupported file type: {ext}")
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df.to_dict(orient="records")
