"""AQI classification and PM2.5 concentration to index conversion.

All category, color and advisory lookups go through ``CATEGORY_TABLE`` so
every caller shares one palette (EPA classic colors).
"""

import math
from dataclasses import dataclass
from enum import Enum


class AqiCategory(Enum):
    GOOD = (0, "Good")
    MODERATE = (1, "Moderate")
    UNHEALTHY_FOR_SENSITIVE_GROUPS = (2, "Unhealthy for Sensitive Groups")
    UNHEALTHY = (3, "Unhealthy")
    VERY_UNHEALTHY = (4, "Very Unhealthy")
    HAZARDOUS = (5, "Hazardous")

    @property
    def rank(self) -> int:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]


@dataclass(frozen=True)
class Classification:
    category: AqiCategory
    color: str
    message: str

    @property
    def label(self) -> str:
        return self.category.label


# (inclusive upper bound, category, color, advisory); None bound = open-ended.
CATEGORY_TABLE: list[tuple[int | None, AqiCategory, str, str]] = [
    (
        50, AqiCategory.GOOD, "#00E400",
        "Air quality is considered satisfactory, and air pollution poses little or no risk.",
    ),
    (
        100, AqiCategory.MODERATE, "#FFFF00",
        "Air quality is acceptable; however, there may be some health concern for a very "
        "small number of people who are unusually sensitive to air pollution.",
    ),
    (
        150, AqiCategory.UNHEALTHY_FOR_SENSITIVE_GROUPS, "#FF7E00",
        "Members of sensitive groups may experience health effects. "
        "The general public is not likely to be affected.",
    ),
    (
        200, AqiCategory.UNHEALTHY, "#FF0000",
        "Everyone may begin to experience health effects; members of sensitive groups "
        "may experience more serious health effects.",
    ),
    (
        300, AqiCategory.VERY_UNHEALTHY, "#8F3F97",
        "Health warnings of emergency conditions. "
        "The entire population is more likely to be affected.",
    ),
    (
        None, AqiCategory.HAZARDOUS, "#7E0023",
        "Health alert: everyone may experience more serious health effects.",
    ),
]

# PM2.5 (µg/m³) breakpoints: (conc_low, conc_high, index_low, index_high)
PM25_BREAKPOINTS: list[tuple[float, float, int, int]] = [
    (0.0, 12.0, 0, 50),
    (12.1, 35.4, 51, 100),
    (35.5, 55.4, 101, 150),
    (55.5, 150.4, 151, 200),
    (150.5, 250.4, 201, 300),
    (250.5, 500.4, 301, 500),
]


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def classify_index(index: int) -> Classification:
    """Map an AQI value to its category, color and advisory. Never fails."""
    index = max(0, index)
    for upper, category, color, message in CATEGORY_TABLE:
        if upper is None or index <= upper:
            return Classification(category=category, color=color, message=message)
    raise AssertionError("CATEGORY_TABLE must end with an open-ended bucket")


def convert_concentration_to_index(concentration: float) -> int:
    """Convert a PM2.5 concentration to an AQI value by linear interpolation.

    The segment is the first whose upper concentration bound is >= the input.
    Above the table the last segment's slope is extrapolated. Negative and
    non-finite input is treated as 0.
    """
    if not math.isfinite(concentration) or concentration <= 0:
        return 0

    c_low, c_high, i_low, i_high = PM25_BREAKPOINTS[-1]
    for segment in PM25_BREAKPOINTS:
        if concentration <= segment[1]:
            c_low, c_high, i_low, i_high = segment
            break

    index = (i_high - i_low) / (c_high - c_low) * (concentration - c_low) + i_low
    return max(0, round_half_away(index))
