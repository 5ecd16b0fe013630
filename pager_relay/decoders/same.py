"""
SAME (Specific Area Message Encoding) header decoder

Turns an EAS header as printed by multimon-ng's EAS demodulator into a
dictionary with a rendered English message:

    EAS: ZCZC-WXR-RWT-023005-023031+0015-0601200-KGYX/NWS-

The header layout is fixed by 47 CFR 11.31:

    ZCZC-ORG-EEE-PSSCCC+TTTT-JJJHHMM-LLLLLLLL-

- ORG: originator code (EAS, CIV, WXR, PEP)
- EEE: event code (RWT, TOR, ...)
- PSSCCC: 1-31 location codes (P = subdivision, SS = state, CCC = county)
- TTTT: valid time as hhmm
- JJJHHMM: issue time, UTC day-of-year and hhmm
- LLLLLLLL: sending station
"""

import re
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

HEADER_SEARCH_REGEX = re.compile(
    r"ZCZC-"
    r"(?P<org>[A-Z]{3})-"
    r"(?P<event>[A-Z]{3})-"
    r"(?P<locs>(?:\d{6}-){0,30}\d{6})"
    r"\+(?P<dur>\d{4})-"
    r"(?P<ts>\d{7})-"
    r"(?P<sender>[A-Za-z0-9/ ]{8})-?"
)

ORIGINATORS = {
    "EAS": "An EAS Participant",
    "CIV": "Civil Authorities",
    "WXR": "The National Weather Service",
    "PEP": "The Primary Entry Point System",
}

EVENT_NAMES = {
    # Administrative & test events
    "ADR": "Administrative Message",
    "DMO": "Practice/Demo Warning",
    "NPT": "Nationwide Test of the Emergency Alert System",
    "NIC": "National Information Center",
    "RWT": "Required Weekly Test",
    "RMT": "Required Monthly Test",
    "EAN": "Emergency Action Notification",
    # Weather events
    "BZW": "Blizzard Warning",
    "CFA": "Coastal Flood Watch",
    "CFW": "Coastal Flood Warning",
    "DSW": "Dust Storm Warning",
    "EWW": "Extreme Wind Warning",
    "FFA": "Flash Flood Watch",
    "FFW": "Flash Flood Warning",
    "FFS": "Flash Flood Statement",
    "FLA": "Flood Watch",
    "FLW": "Flood Warning",
    "FLS": "Flood Statement",
    "HWA": "High Wind Watch",
    "HWW": "High Wind Warning",
    "HUA": "Hurricane Watch",
    "HUW": "Hurricane Warning",
    "HLS": "Hurricane Statement",
    "SVA": "Severe Thunderstorm Watch",
    "SVR": "Severe Thunderstorm Warning",
    "SVS": "Severe Weather Statement",
    "SQW": "Snow Squall Warning",
    "SMW": "Special Marine Warning",
    "SPS": "Special Weather Statement",
    "SSA": "Storm Surge Watch",
    "SSW": "Storm Surge Warning",
    "TOA": "Tornado Watch",
    "TOR": "Tornado Warning",
    "TRA": "Tropical Storm Watch",
    "TRW": "Tropical Storm Warning",
    "TSA": "Tsunami Watch",
    "TSW": "Tsunami Warning",
    "WSA": "Winter Storm Watch",
    "WSW": "Winter Storm Warning",
    # Non-weather emergencies
    "AVA": "Avalanche Watch",
    "AVW": "Avalanche Warning",
    "BLU": "Blue Alert",
    "CAE": "Child Abduction Emergency",
    "CDW": "Civil Danger Warning",
    "CEM": "Civil Emergency Message",
    "EQW": "Earthquake Warning",
    "EVI": "Evacuation Immediate",
    "FRW": "Fire Warning",
    "HMW": "Hazardous Materials Warning",
    "LEW": "Law Enforcement Warning",
    "LAE": "Local Area Emergency",
    "TOE": "911 Telephone Outage Emergency",
    "NUW": "Nuclear Power Plant Warning",
    "RHW": "Radiological Hazard Warning",
    "SPW": "Shelter in Place Warning",
    "VOW": "Volcano Warning",
    "MEP": "Missing and Endangered Persons",
}


def _location_matches(location: str, wanted: str) -> bool:
    """Compare two PSSCCC codes; a county of 000 covers the whole state"""
    loc_state, loc_county = location[1:3], location[3:]
    want_state, want_county = wanted[-5:-3], wanted[-3:]
    if loc_state != want_state:
        return False
    return want_county == "000" or loc_county == "000" or loc_county == want_county


def _issue_time(stamp: str, now: datetime) -> datetime:
    """JJJHHMM in the current UTC year"""
    day, hour, minute = int(stamp[:3]), int(stamp[3:5]), int(stamp[5:])
    year_start = datetime(now.year, 1, 1, tzinfo=timezone.utc)
    return year_start + timedelta(days=day - 1, hours=hour, minutes=minute)


def _article(name: str) -> str:
    return "an" if name[:1].upper() in "AEIOU" else "a"


def render_message(org: str, event: str, locations: List[str], start: datetime,
                   duration_minutes: int, sender: str) -> str:
    """Human-readable sentence for a decoded header"""
    organization = ORIGINATORS.get(org, org)
    event_name = EVENT_NAMES.get(event, f"Unknown Event ({event})")
    end = start + timedelta(minutes=duration_minutes)
    return (
        f"{organization} has issued {_article(event_name)} {event_name} "
        f"for FIPS {', '.join(locations)} "
        f"beginning at {start.strftime('%H:%M')} UTC and ending at {end.strftime('%H:%M')} UTC. "
        f"Message from {sender}."
    )


def decode(text: str, exclude_events: Optional[Iterable[str]] = None,
           include_fips: Optional[Iterable[str]] = None,
           now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """Decode the first SAME header found in text

    Returns None when there is no header, when its event code is in
    ``exclude_events``, or when ``include_fips`` is non-empty and none of the
    header's locations match it.
    """
    match = HEADER_SEARCH_REGEX.search(text)
    if not match:
        logger.debug(f"No SAME header in {text!r}")
        return None

    g = match.groupdict()
    excluded = {code.upper() for code in (exclude_events or [])}
    if g["event"] in excluded:
        logger.info(f"EAS: event {g['event']} excluded by configuration")
        return None

    locations = g["locs"].split("-")
    wanted = [str(code) for code in (include_fips or [])]
    if wanted and not any(_location_matches(loc, want) for loc in locations for want in wanted):
        logger.info(f"EAS: no location of interest in {g['locs']}")
        return None

    hours, minutes = divmod(int(g["dur"]), 100)
    duration_minutes = hours * 60 + minutes
    sender = g["sender"].rstrip()
    start = _issue_time(g["ts"], now or datetime.now(timezone.utc))

    return {
        "ORG": g["org"],
        "EEE": g["event"],
        "PSSCCC": locations,
        "TTTT": g["dur"],
        "JJJHHMM": g["ts"],
        "LLLLLLLL": sender,
        "LLLL-ORG": f"{sender}-{g['org']}",
        "type": g["event"],
        "organization": ORIGINATORS.get(g["org"], g["org"]),
        "event": EVENT_NAMES.get(g["event"], "Unknown"),
        "duration_minutes": duration_minutes,
        "MESSAGE": render_message(g["org"], g["event"], locations, start,
                                  duration_minutes, sender),
    }
