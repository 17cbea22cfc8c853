"""Pre-compiled regex patterns for the transaction reporting service.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import LEADING_FLOAT, LEADING_INT

    match = LEADING_FLOAT.match(text)
"""

import re

# Leading decimal number, as accepted by JavaScript's parseFloat():
# "12.5abc" -> "12.5", "  -3e2" -> "-3e2", ".5" -> ".5"
LEADING_FLOAT = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

# Leading integer, as accepted by JavaScript's parseInt(): "3rd" -> "3"
LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
