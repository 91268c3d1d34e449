"""City/region names accepted in commands and the catalog venue ids they map to."""

from __future__ import annotations

from typing import Dict, Optional

CITY_TO_ID: Dict[str, str] = {
    "台北": "101",
    "新北": "102",
    "基隆": "103",
    "桃園": "104",
    "新竹": "105",
    "宜蘭": "107",
    "苗栗": "201",
    "台中": "202",
    "彰化": "203",
    "南投": "204",
    "雲林": "205",
    "嘉義": "301",
    "台南": "303",
    "高雄": "304",
    "屏東": "305",
    "花蓮": "401",
    "台東": "402",
    "澎湖": "500",
    "金門": "500",
    "馬祖": "500",
}

# First name wins for shared ids (outlying islands all map to 500).
_ID_TO_CITY: Dict[str, str] = {}
for _name, _venue_id in CITY_TO_ID.items():
    _ID_TO_CITY.setdefault(_venue_id, _name)


def venue_id_for(name: Optional[str]) -> Optional[str]:
    """Return the venue id for ``name``; unknown names resolve to ``None``."""

    if not name:
        return None
    return CITY_TO_ID.get(name.strip())


def location_name_for(venue_id: str) -> str:
    return _ID_TO_CITY.get(venue_id, venue_id)


def same_location(stored: str, requested: str) -> bool:
    """Names sharing a venue id are the same place; unknown names must match exactly."""

    stored_id, requested_id = venue_id_for(stored), venue_id_for(requested)
    if stored_id is None or requested_id is None:
        return stored == requested
    return stored_id == requested_id


__all__ = ["CITY_TO_ID", "venue_id_for", "location_name_for", "same_location"]
