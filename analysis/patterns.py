"""Digit and draw-wide pattern classification used by the column analyzer."""

from itertools import product
from typing import Callable, Dict, List, Sequence
import logging

from models.draw_models import Combination, ComboType

logger = logging.getLogger(__name__)

PRIME_DIGITS = frozenset({2, 3, 5, 7})

DIGIT_PATTERNS: Dict[str, Callable[[int], bool]] = {
    'even': lambda d: d % 2 == 0,
    'odd': lambda d: d % 2 == 1,
    'high': lambda d: d >= 5,
    'low': lambda d: d <= 4,
    'prime': lambda d: d in PRIME_DIGITS,
    'non-prime': lambda d: d not in PRIME_DIGITS,
}

DRAW_PATTERN_KINDS = ('parity', 'high_low', 'combo_type', 'root_sum')


def resolve_digit_patterns(names: Sequence[str]) -> Dict[str, Callable[[int], bool]]:
    """Select digit pattern predicates by name, rejecting unknown names."""
    unknown = [name for name in names if name not in DIGIT_PATTERNS]
    if unknown:
        raise ValueError(f"Unknown digit patterns: {unknown}")
    return {name: DIGIT_PATTERNS[name] for name in names}


def parity_signature(digits: Sequence[int]) -> str:
    """E/O per position, e.g. 1-2-3 -> 'OEO'."""
    return ''.join('E' if d % 2 == 0 else 'O' for d in digits)


def high_low_signature(digits: Sequence[int]) -> str:
    """H/L per position with 5-9 high, e.g. 1-7-3 -> 'LHL'."""
    return ''.join('H' if d >= 5 else 'L' for d in digits)


def draw_pattern(kind: str, combo: Combination) -> str:
    """Composite pattern string of one draw for a pattern kind."""
    if kind == 'parity':
        return parity_signature(combo.digits)
    if kind == 'high_low':
        return high_low_signature(combo.digits)
    if kind == 'combo_type':
        return combo.combo_type.value
    if kind == 'root_sum':
        return f"root-{combo.root_sum}"
    raise ValueError(f"Unknown draw pattern kind: {kind}")


def pattern_values(kind: str, width: int) -> List[str]:
    """Every pattern string a kind can produce for a digit width."""
    if kind == 'parity':
        return [''.join(p) for p in product('EO', repeat=width)]
    if kind == 'high_low':
        return [''.join(p) for p in product('HL', repeat=width)]
    if kind == 'combo_type':
        return [t.value for t in ComboType]
    if kind == 'root_sum':
        return [f"root-{r}" for r in range(10)]
    raise ValueError(f"Unknown draw pattern kind: {kind}")
