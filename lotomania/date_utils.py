"""
Date Utilities
==============

Centralized date handling for Lotomania draws. All calculations run in the
Brasilia timezone, where draws happen on Monday, Wednesday and Friday at
20:00.
"""

import pytz
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union
from loguru import logger


class DateManager:
    """
    Centralized manager for all draw-date operations.
    """

    LOTTERY_TIMEZONE = pytz.timezone('America/Sao_Paulo')

    # Drawing days (Monday=0, Wednesday=2, Friday=4)
    DRAWING_DAYS = [0, 2, 4]

    # Drawing hour (8 PM BRT)
    DRAWING_HOUR = 20

    # Result dates are published as dd/mm/yyyy
    RESULT_DATE_FORMAT = '%d/%m/%Y'

    @classmethod
    def get_current_brt_time(cls) -> datetime:
        """Current date and time in the Brasilia timezone."""
        return datetime.now(pytz.UTC).astimezone(cls.LOTTERY_TIMEZONE)

    @classmethod
    def convert_to_brt(cls, dt: Union[datetime, str]) -> datetime:
        """
        Converts a datetime or date string to the Brasilia timezone.

        Strings may be ISO ("2025-08-13T20:00:00", "2025-08-13") or the
        published result format ("13/08/2025"). Naive values are assumed to
        already be Brasilia local time.
        """
        if isinstance(dt, str):
            parsed_dt = cls.parse_date(dt)
            if parsed_dt is None:
                raise ValueError(f"Unrecognized date string: '{dt}'")
        else:
            parsed_dt = dt

        if parsed_dt.tzinfo is None:
            return cls.LOTTERY_TIMEZONE.localize(parsed_dt)
        return parsed_dt.astimezone(cls.LOTTERY_TIMEZONE)

    @classmethod
    def parse_date(cls, date_str: str) -> Optional[datetime]:
        """Parses dd/mm/yyyy or ISO date strings. Returns None if neither matches."""
        text = date_str.strip()
        try:
            return datetime.strptime(text, cls.RESULT_DATE_FORMAT)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            logger.warning(f"Failed to parse date string '{date_str}'")
            return None

    @classmethod
    def calculate_next_drawing_date(cls, reference_date: Optional[datetime] = None) -> str:
        """
        Calculates the next drawing date from a reference date.

        Args:
            reference_date: Reference date (optional, defaults to now)

        Returns:
            str: Next drawing date in YYYY-MM-DD format
        """
        if reference_date is None:
            reference_date = cls.get_current_brt_time()
        else:
            reference_date = cls.convert_to_brt(reference_date)

        # On a drawing day before the drawing hour, the draw is today
        if reference_date.weekday() in cls.DRAWING_DAYS and reference_date.hour < cls.DRAWING_HOUR:
            next_draw_date = reference_date.strftime('%Y-%m-%d')
            logger.debug(f"Drawing day before cutoff time - next drawing today: {next_draw_date}")
            return next_draw_date

        for i in range(1, 8):
            next_date = reference_date + timedelta(days=i)
            if next_date.weekday() in cls.DRAWING_DAYS:
                next_draw_date = next_date.strftime('%Y-%m-%d')
                logger.debug(f"Next drawing date found: {next_draw_date} (in {i} days)")
                return next_draw_date

        raise RuntimeError("No drawing day within a week")

    @classmethod
    def is_valid_drawing_date(cls, date_str: str) -> bool:
        """True if the date (YYYY-MM-DD or dd/mm/yyyy) falls on a drawing day."""
        date_obj = cls.parse_date(date_str)
        if date_obj is None:
            logger.error(f"Invalid date format for drawing validation: {date_str}")
            return False
        is_valid = date_obj.weekday() in cls.DRAWING_DAYS
        if not is_valid:
            logger.warning(f"Invalid drawing date: {date_str} ({date_obj.strftime('%A')}) - not a drawing day")
        return is_valid

    @classmethod
    def to_result_format(cls, date_str: str) -> str:
        """Converts YYYY-MM-DD to the published dd/mm/yyyy format."""
        return datetime.strptime(date_str, '%Y-%m-%d').strftime(cls.RESULT_DATE_FORMAT)

    @classmethod
    def days_until_next_drawing(cls, reference_date: Optional[datetime] = None) -> int:
        if reference_date is None:
            reference_date = cls.get_current_brt_time()
        else:
            reference_date = cls.convert_to_brt(reference_date)
        next_drawing = datetime.strptime(cls.calculate_next_drawing_date(reference_date), '%Y-%m-%d')
        return (next_drawing.date() - reference_date.date()).days

    @classmethod
    def get_next_drawing_info(cls, reference_date: Optional[datetime] = None) -> Dict[str, Any]:
        next_date = cls.calculate_next_drawing_date(reference_date)
        return {
            'next_drawing_date': next_date,
            'next_drawing_date_br': cls.to_result_format(next_date),
            'drawing_hour': cls.DRAWING_HOUR,
            'timezone': str(cls.LOTTERY_TIMEZONE),
            'days_until': cls.days_until_next_drawing(reference_date),
        }


def get_current_brt_time() -> datetime:
    return DateManager.get_current_brt_time()


def calculate_next_drawing_date(reference_date: Optional[datetime] = None) -> str:
    return DateManager.calculate_next_drawing_date(reference_date)


def is_valid_drawing_date(date_str: str) -> bool:
    return DateManager.is_valid_drawing_date(date_str)
