"""Built-in coefficient table for Edinburgh lettings.

These defaults let every calculator run with no network access. A
calibration run only ever replaces ``base_rate``.
"""

from __future__ import annotations

import enum
import re
from typing import Mapping

from .models import AreaScale, CoefficientTable

DEFAULT_BASE_RATE = 16.7  # £/m², median of the bundled dataset
DEFAULT_BEDROOM_BETA = 0.03
DEFAULT_BROADBAND_SLOPE = 0.00005  # per Mbps over the reference speed
DEFAULT_BROADBAND_REFERENCE = 80.0
DEFAULT_CALIBRATION_FACTOR = 1.0
DEFAULT_ADJUSTMENT_SCALE = 0.75

# Worst to best.
DEFAULT_CONDITION: dict[str, float] = {
    "Poor": -0.10,
    "Below-Avg": -0.05,
    "Average": 0.00,
    "Above-Avg": 0.08,
    "High": 0.15,
}

DEFAULT_EPC: dict[str, float] = {
    "A": 0.03,
    "B": 0.03,
    "C": 0.01,
    "D": 0.00,
    "E": -0.02,
    "F": -0.03,
    "G": -0.05,
}

DEFAULT_LOCATION_GROUPS: dict[str, dict[str, float]] = {
    "City Centre": {
        "New Town": 0.15,
        "Old Town": 0.12,
        "West End": 0.13,
        "Haymarket": 0.05,
        "Tollcross": 0.05,
        "The Meadows": 0.11,
        "Marchmont": 0.10,
        "Bruntsfield": 0.08,
        "Lauriston": 0.09,
        "Fountainbridge": 0.06,
        "Dean Village": 0.12,
        "Stockbridge": 0.12,
        "Comely Bank": 0.10,
        "Canonmills": 0.07,
        "Broughton": 0.08,
        "Leith Walk": 0.04,
    },
    "North Edinburgh": {
        "Inverleith": 0.11,
        "Trinity": 0.06,
        "Newhaven": 0.04,
        "Granton": -0.05,
        "Silverknowes": 0.04,
        "Blackhall": 0.06,
        "Davidson's Mains": 0.04,
        "Barnton": 0.05,
        "Cramond": 0.07,
        "Muirhouse": -0.04,
        "Pilton": -0.05,
        "Warriston": 0.04,
        "Goldenacre": 0.05,
        "Craigleith": 0.05,
        "Kimmerghame": 0.04,
        "Drylaw": -0.02,
        "West Pilton": -0.06,
        "Granton Harbour": 0.03,
        "Ferry Road": 0.02,
        "Granton Road": 0.01,
    },
    "West Edinburgh": {
        "Corstorphine": 0.03,
        "Murrayfield": 0.10,
        "Saughton": -0.01,
        "Stenhouse": -0.02,
        "Carrick Knowe": 0.01,
        "Clermiston": 0.00,
        "South Gyle": 0.00,
        "West Craigs": 0.01,
        "Ratho": 0.00,
        "Gogar": -0.02,
        "Ingliston": 0.01,
        "Cammo": 0.05,
        "Balerno": -0.02,
        "Currie": -0.01,
        "Juniper Green": 0.04,
        "Baberton": 0.02,
        "Wester Hailes": -0.05,
        "Sighthill": -0.03,
        "Broomhouse": -0.03,
        "Longstone": 0.00,
        "Slateford": 0.01,
        "Parkhead": -0.02,
        "Drumbrae": 0.00,
        "Barnton Park": 0.04,
        "East Craigs": 0.02,
        "Clermiston Park": 0.01,
        "Saughtonhall": 0.01,
        "Wester Broom": 0.01,
    },
    "South Edinburgh": {
        "Morningside": 0.10,
        "Grange": 0.13,
        "Blackford": 0.07,
        "Mayfield": 0.03,
        "Sciennes": 0.09,
        "Liberton": 0.02,
        "Liberton Mains": 0.01,
        "Gilmerton": -0.04,
        "Fernieside": -0.04,
        "Moredun": -0.03,
        "Craigmillar": -0.05,
        "Niddrie": -0.05,
        "Prestonfield": 0.03,
        "Newington": 0.08,
        "Southhouse": -0.04,
        "Kaimes": -0.02,
        "Oxgangs": -0.01,
        "Fairmilehead": 0.04,
        "Swanston": 0.03,
        "Buckstone": 0.02,
        "Comiston": 0.03,
        "Colinton": 0.05,
        "Colinton Mains": 0.01,
        "Craiglockhart": 0.08,
        "Craiglockhart Dell": 0.07,
        "Redhall": 0.00,
        "Woodhall": 0.00,
        "Alnwickhill": 0.01,
        "Liberton Brae": 0.01,
        "Burdiehouse": -0.04,
        "Viewforth": 0.03,
    },
    "East Edinburgh": {
        "Portobello": 0.05,
        "Joppa": 0.05,
        "Duddingston": 0.04,
        "Mountcastle": 0.02,
        "Willowbrae": 0.03,
        "Seafield": 0.01,
        "Restalrig": -0.01,
        "Lochend": -0.01,
        "Craigentinny": -0.02,
        "Meadowbank": 0.02,
        "Abbeyhill": 0.02,
        "Easter Road": 0.00,
        "Leith": 0.03,
        "Pilrig": 0.02,
        "Bonnington": 0.03,
        "The Shore": 0.07,
        "Gracemount": -0.04,
        "Northfield": 0.01,
    },
    "Southside & University": {
        "Southside": 0.08,
        "Marchmont Road": 0.09,
        "Morningside Park": 0.08,
    },
    "Outskirts/Greater Edinburgh": {
        "Cramond Bridge": 0.00,
        "Queensferry": 0.01,
        "South Queensferry": 0.02,
        "Dalmeny": 0.02,
        "Kirkliston": -0.01,
        "Newcraighall": -0.02,
        "Musselburgh": -0.03,
        "Dalkeith": -0.04,
        "Loanhead": -0.03,
        "Penicuik": -0.05,
        "Roslin": -0.03,
        "Bonnyrigg": -0.03,
        "Gorebridge": -0.06,
        "Prestonpans": -0.04,
        "Tranent": -0.05,
        "East Calder": -0.03,
        "West Calder": -0.04,
        "Livingston": -0.06,
        "Broxburn": -0.05,
        "Bathgate": -0.06,
        "Linlithgow": -0.03,
        "Haddington": -0.03,
        "North Berwick": 0.02,
        "Dunbar": -0.04,
    },
}


def flatten_location_groups(
    groups: Mapping[str, Mapping[str, float]],
) -> tuple[dict[str, float], dict[str, tuple[str, ...]]]:
    """Split a grouped location map into (name -> adjustment, group -> names).

    A name listed under two groups keeps its first adjustment.
    """
    location: dict[str, float] = {}
    names_by_group: dict[str, tuple[str, ...]] = {}
    for group, entries in groups.items():
        names: list[str] = []
        for name, adj in entries.items():
            location.setdefault(name, float(adj))
            names.append(name)
        names_by_group[group] = tuple(names)
    return location, names_by_group


def default_coefficients() -> CoefficientTable:
    """The shipped coefficient table."""
    location, groups = flatten_location_groups(DEFAULT_LOCATION_GROUPS)
    return CoefficientTable(
        base_rate=DEFAULT_BASE_RATE,
        bedroom_beta=DEFAULT_BEDROOM_BETA,
        condition=DEFAULT_CONDITION,
        location=location,
        epc=DEFAULT_EPC,
        broadband_slope=DEFAULT_BROADBAND_SLOPE,
        calibration_factor=DEFAULT_CALIBRATION_FACTOR,
        adjustment_scale=DEFAULT_ADJUSTMENT_SCALE,
        broadband_reference=DEFAULT_BROADBAND_REFERENCE,
        area_scale=AreaScale(),
        location_groups=groups,
    )


def _member_name(key: str) -> str:
    name = re.sub(r"\W+", "_", key).strip("_").upper()
    if not name or name[0].isdigit():
        name = f"K_{name}"
    return name


def category_enum(table: CoefficientTable, kind: str) -> type[enum.Enum]:
    """Build a closed enumeration of the keys of one adjustment map.

    Members carry the table key as their value (``Location.LEITH.value ==
    "Leith"``), and are also reachable by key (``Location("New Town")``).
    A query built from these members cannot name a key the table lacks.
    """
    members: list[tuple[str, str]] = []
    seen: set[str] = set()
    for key in table.choices(kind):
        name = _member_name(key)
        while name in seen:
            name += "_"
        seen.add(name)
        members.append((name, key))
    return enum.Enum(kind.capitalize(), members, module=__name__)

