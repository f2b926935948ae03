from datetime import datetime
from typing import Optional

from recipe_manager.app.schemas.meal_assistant import SeasonContext

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_NORTHERN_SEASONS = {
    12: "Winter",
    1: "Winter",
    2: "Winter",
    3: "Spring",
    4: "Spring",
    5: "Spring",
    6: "Summer",
    7: "Summer",
    8: "Summer",
    9: "Autumn",
    10: "Autumn",
    11: "Autumn",
}

_OPPOSITE = {"Winter": "Summer", "Summer": "Winter", "Spring": "Autumn", "Autumn": "Spring"}


def resolve_season(latitude: Optional[float], now_utc: datetime) -> SeasonContext:
    month_name = MONTH_NAMES[now_utc.month - 1]
    if latitude is None:
        return SeasonContext(season="Unknown", hemisphere="Unknown", month=month_name, has_location=False)

    north = latitude >= 0
    season = _NORTHERN_SEASONS[now_utc.month]
    if not north:
        season = _OPPOSITE[season]
    return SeasonContext(
        season=season,
        hemisphere="Northern" if north else "Southern",
        month=month_name,
        has_location=True,
    )
