"""Helper utilities for draw ingestion and small numeric chores."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

import pandas as pd

from config.settings import settings
from models.draw_models import Draw, DrawValidationError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r'[\s\-,./]+')


@dataclass
class ValidationResult:
    """Result of draw record validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    cleaned_data: Optional[Draw] = None


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers, returning default on division by zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value between min and max."""
    return max(min_val, min(max_val, value))


def format_number_with_leading_zeros(number: int, digits: int = 3) -> str:
    """Format number with leading zeros, e.g. 7 -> '007'."""
    return str(number).zfill(digits)


def parse_digits(raw: Union[str, int, Sequence[int]], width: Optional[int] = None) -> Tuple[int, ...]:
    """Turn '123', '1-2-3', 7 or [1, 2, 3] into a digit tuple of the given width."""
    width = width or settings.digit_width

    if isinstance(raw, bool):
        raise DrawValidationError(f"Draw digits cannot be a boolean: {raw!r}")

    if isinstance(raw, int):
        if raw < 0 or raw >= 10 ** width:
            raise DrawValidationError(f"Draw number {raw} does not fit {width} digits")
        text = format_number_with_leading_zeros(raw, width)
    elif isinstance(raw, str):
        text = _SEPARATORS.sub('', raw.strip())
    else:
        try:
            values = [int(d) for d in raw]
        except (TypeError, ValueError):
            raise DrawValidationError(f"Draw digits must be integers: {raw!r}")
        if any(not 0 <= d <= 9 for d in values):
            raise DrawValidationError(f"Draw digits must be in 0-9: {raw!r}")
        text = ''.join(str(d) for d in values)

    if not text.isdigit():
        raise DrawValidationError(f"Draw digits must be numeric: {raw!r}")
    if len(text) != width:
        raise DrawValidationError(f"Expected {width} digits, got {len(text)} in {raw!r}")

    return tuple(int(c) for c in text)


def parse_draw_date(value: Any) -> date:
    """Accept date, datetime, pandas Timestamp or ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise DrawValidationError(f"Unrecognized draw date: {value!r}")
    raise DrawValidationError(f"Unrecognized draw date: {value!r}")


def parse_draw(raw_digits: Union[str, int, Sequence[int]], draw_date: Any,
               session: str = "", width: Optional[int] = None) -> Draw:
    """Build a Draw from raw input, raising DrawValidationError when it is malformed."""
    return Draw(
        draw_date=parse_draw_date(draw_date),
        digits=parse_digits(raw_digits, width),
        session=(session or "").strip().lower()
    )


def validate_draw_record(record: Dict[str, Any], width: Optional[int] = None) -> ValidationResult:
    """Validate a {'date', 'digits', 'session'} record without raising."""
    result = ValidationResult(is_valid=True)

    for required in ('date', 'digits'):
        value = record.get(required)
        if value is None or value is pd.NaT or (isinstance(value, float) and pd.isna(value)):
            result.errors.append(f"Missing required field: {required}")
    if result.errors:
        result.is_valid = False
        return result

    session = record.get('session') or ""
    if not isinstance(session, str):
        session = str(session)

    try:
        draw = parse_draw(record['digits'], record['date'], session, width)
    except DrawValidationError as e:
        result.errors.append(str(e))
        result.is_valid = False
        return result

    if draw.draw_date > date.today():
        result.warnings.append(f"Draw date {draw.draw_date} is in the future")
    if len(set(draw.digits)) == 1:
        result.warnings.append(f"Triple draw: {draw.straight}")

    result.cleaned_data = draw
    return result


def draws_from_frame(frame: pd.DataFrame, width: Optional[int] = None,
                     date_column: str = 'date', digits_column: str = 'digits',
                     session_column: str = 'session') -> Tuple[List[Draw], List[str]]:
    """Convert a DataFrame of draw rows, skipping and reporting invalid ones."""
    missing = [c for c in (date_column, digits_column) if c not in frame.columns]
    if missing:
        raise KeyError(f"DataFrame is missing columns: {missing}")

    draws: List[Draw] = []
    errors: List[str] = []

    for row_number, row in enumerate(frame.to_dict('records')):
        draw_date = row.get(date_column)
        if isinstance(draw_date, pd.Timestamp):
            draw_date = draw_date.to_pydatetime()

        digits = row.get(digits_column)
        # Numeric columns lose leading zeros; ints are re-padded by parse_digits
        if isinstance(digits, float) and not pd.isna(digits) and digits.is_integer():
            digits = int(digits)

        session = row.get(session_column) if session_column in frame.columns else ""
        if isinstance(session, float) and pd.isna(session):
            session = ""

        result = validate_draw_record(
            {'date': draw_date, 'digits': digits, 'session': session}, width
        )
        if result.is_valid:
            draws.append(result.cleaned_data)
        else:
            errors.append(f"Row {row_number}: {'; '.join(result.errors)}")

    if errors:
        logger.warning(f"Skipped {len(errors)} invalid draw rows out of {len(frame)}")

    return draws, errors
