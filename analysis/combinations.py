"""Combinatorial universe generation and classification for fixed-width digit games."""

from collections import Counter, OrderedDict
from functools import lru_cache
from itertools import product
from math import factorial
from typing import Dict, List, Optional, Sequence, Tuple, Union
import logging

from models.draw_models import BetOdds, BetType, Combination, ComboType, GroupSummary

logger = logging.getLogger(__name__)

VTRAC_LEGACY = "legacy"
VTRAC_STANDARD = "standard"

GROUP_ATTRIBUTES = ('sum', 'root_sum', 'vtrac', 'sum_last_digit')


def digital_root(value: int) -> int:
    """Reduce a non-negative sum to one digit; 0 stays 0, multiples of 9 give 9."""
    if value == 0:
        return 0
    return 1 + (value - 1) % 9


def vtrac_digit(digit: int, mode: str = VTRAC_LEGACY) -> int:
    """Map one digit to its VTrac group."""
    if mode == VTRAC_STANDARD:
        return digit % 5 + 1
    if mode != VTRAC_LEGACY:
        raise ValueError(f"Unknown VTrac mode: {mode}")
    return 5 if digit == 0 else digit


def mirror_digit(digit: int) -> int:
    return (digit + 5) % 10


def classify_digits(digits: Sequence[int]) -> ComboType:
    """Classify digits by the number of distinct values."""
    distinct = len(set(digits))
    if distinct == 1:
        return ComboType.TRIPLE
    if distinct == len(digits):
        return ComboType.SINGLE
    return ComboType.DOUBLE


def permutation_count(digits: Sequence[int]) -> int:
    """Number of distinct orderings of the digits (6/3/1 for width 3)."""
    total = factorial(len(digits))
    for count in Counter(digits).values():
        total //= factorial(count)
    return total


def build_combination(digits: Sequence[int], vtrac_mode: str = VTRAC_LEGACY) -> Combination:
    """Derive every attribute of one combination."""
    digits = tuple(int(d) for d in digits)
    total = sum(digits)
    return Combination(
        straight=''.join(str(d) for d in digits),
        digits=digits,
        box=''.join(str(d) for d in sorted(digits)),
        sum=total,
        root_sum=digital_root(total),
        sum_last_digit=total % 10,
        vtrac=''.join(str(vtrac_digit(d, vtrac_mode)) for d in digits),
        mirror=''.join(str(mirror_digit(d)) for d in digits),
        combo_type=classify_digits(digits)
    )


@lru_cache(maxsize=None)
def generate_all(width: int = 3, vtrac_mode: str = VTRAC_LEGACY) -> Tuple[Combination, ...]:
    """Generate every combination for a digit width, lexicographic by straight."""
    if width < 1:
        raise ValueError(f"Digit width must be positive, got {width}")

    combos = tuple(
        build_combination(digits, vtrac_mode)
        for digits in product(range(10), repeat=width)
    )
    logger.debug(f"Generated {len(combos)} combinations for width {width}")
    return combos


def _as_digits(combo: Union[Combination, str, Sequence[int]]) -> Tuple[int, ...]:
    if isinstance(combo, Combination):
        return combo.digits
    if isinstance(combo, str):
        if not combo.isdigit():
            raise ValueError(f"Combination must be numeric: {combo!r}")
        return tuple(int(c) for c in combo)
    return tuple(int(d) for d in combo)


def classify(combo: Union[Combination, str, Sequence[int]]) -> ComboType:
    """Classify a combination as single, double or triple."""
    return classify_digits(_as_digits(combo))


def box_of(combo: Union[Combination, str, Sequence[int]]) -> str:
    """Canonical sorted form of a combination."""
    return ''.join(str(d) for d in sorted(_as_digits(combo)))


def group_by(attribute: str, width: int = 3,
             vtrac_mode: str = VTRAC_LEGACY) -> Dict[object, GroupSummary]:
    """Group the universe by sum, root_sum, vtrac or sum_last_digit."""
    return CombinationUniverse(width, vtrac_mode).group_by(attribute)


def odds(combo: Union[Combination, str, Sequence[int]], bet_type: Union[BetType, str]) -> BetOdds:
    """Odds of a combination for a straight or box bet."""
    digits = _as_digits(combo)
    bet_type = BetType(bet_type)
    total = 10 ** len(digits)
    permutations = 1 if bet_type == BetType.STRAIGHT else permutation_count(digits)

    return BetOdds(
        straight=''.join(str(d) for d in digits),
        bet_type=bet_type,
        permutations=permutations,
        odds=(total - 1) // permutations,
        probability=permutations / total
    )


class CombinationUniverse:
    """All combinations of one width with grouping and lookup helpers."""

    def __init__(self, width: int = 3, vtrac_mode: str = VTRAC_LEGACY):
        self.width = width
        self.vtrac_mode = vtrac_mode
        self.combinations = generate_all(width, vtrac_mode)
        self._by_straight = {c.straight: c for c in self.combinations}
        self._groups: Dict[str, Dict[object, GroupSummary]] = {}

    def __len__(self) -> int:
        return len(self.combinations)

    def __iter__(self):
        return iter(self.combinations)

    @property
    def total(self) -> int:
        return len(self.combinations)

    def get(self, straight: str) -> Optional[Combination]:
        return self._by_straight.get(straight)

    def combination_for(self, digits: Sequence[int]) -> Combination:
        """Look up the combination for a drawn digit tuple."""
        straight = ''.join(str(d) for d in digits)
        combo = self._by_straight.get(straight)
        if combo is None:
            raise ValueError(f"{straight!r} is not a width-{self.width} combination")
        return combo

    def by_type(self, combo_type: Union[ComboType, str]) -> List[Combination]:
        combo_type = ComboType(combo_type)
        return [c for c in self.combinations if c.combo_type == combo_type]

    def type_counts(self) -> Dict[ComboType, int]:
        counts = Counter(c.combo_type for c in self.combinations)
        return {t: counts.get(t, 0) for t in ComboType}

    def unique_boxes(self, combo_type: Optional[Union[ComboType, str]] = None) -> List[str]:
        """Unique box forms, optionally restricted to one classification."""
        combos = self.by_type(combo_type) if combo_type else self.combinations
        return list(OrderedDict.fromkeys(c.box for c in combos))

    def find(self, attribute: str, value: object) -> List[Combination]:
        """All combinations whose attribute equals value."""
        self._check_attribute(attribute)
        return [c for c in self.combinations if getattr(c, attribute) == value]

    def group_by(self, attribute: str) -> Dict[object, GroupSummary]:
        """Group combinations by an attribute, keys in ascending order."""
        self._check_attribute(attribute)
        if attribute in self._groups:
            return self._groups[attribute]

        buckets: Dict[object, List[Combination]] = {}
        for combo in self.combinations:
            buckets.setdefault(getattr(combo, attribute), []).append(combo)

        total = self.total
        groups = {}
        for key in sorted(buckets):
            combos = buckets[key]
            groups[key] = GroupSummary(
                key=key,
                straights=[c.straight for c in combos],
                boxes=list(OrderedDict.fromkeys(c.box for c in combos)),
                count=len(combos),
                probability=len(combos) / total,
                odds=(total - 1) / len(combos)
            )

        self._groups[attribute] = groups
        return groups

    def odds(self, combo: Union[Combination, str, Sequence[int]],
             bet_type: Union[BetType, str]) -> BetOdds:
        return odds(combo, bet_type)

    @staticmethod
    def _check_attribute(attribute: str) -> None:
        if attribute not in GROUP_ATTRIBUTES:
            raise ValueError(
                f"Unknown grouping attribute {attribute!r}; expected one of {GROUP_ATTRIBUTES}"
            )
