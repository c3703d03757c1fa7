from .logger import setup_logger, get_logger
from .intervals import DateInterval, overlaps, quarters_covered, hour_range, parse_time, format_time

__all__ = [
    'setup_logger', 'get_logger',
    'DateInterval', 'overlaps', 'quarters_covered', 'hour_range', 'parse_time', 'format_time'
]
