"""
Space Fetcher - Thin clients for the public space-data APIs

Upstreams:
  - api.nasa.gov: APOD, Mars rover photos, NeoWs, Earth imagery
  - images-api.nasa.gov: NASA Image and Video Library search
  - wheretheiss.at (primary) / open-notify.org (fallback): ISS position
  - spacexdata.com: launches
  - thespacedevs.com: astronauts
  - spaceflightnewsapi.net: news

Every public function returns decoded JSON or raises UpstreamError.
"""

import base64
from typing import Any, Dict, Optional

import requests

from config import Config
from errors import UpstreamError
from logging_config import get_logger

logger = get_logger(__name__)

NASA_IMAGES_URL = "https://images-api.nasa.gov/search"

# NORAD 25544 = ISS (ZARYA)
ISS_PRIMARY_URL = "https://api.wheretheiss.at/v1/satellites/25544"
ISS_FALLBACK_URL = "http://api.open-notify.org/iss-now.json"

SPACEX_LAUNCHES_URL = "https://api.spacexdata.com/v4/launches"
ASTRONAUTS_URL = "https://ll.thespacedevs.com/2.2.0/astronaut/"
SPACE_NEWS_URL = "https://api.spaceflightnewsapi.net/v4/articles/"

PASS_TIMES_UNAVAILABLE = (
    "ISS pass times prediction service is currently unavailable. "
    "The original Open Notify API endpoint has been discontinued."
)
PASS_TIMES_ALTERNATIVE = (
    "You can track the ISS in real-time using the position data above, "
    "or visit https://spotthestation.nasa.gov/ for pass predictions."
)

# Failures that make an upstream payload unusable
_FETCH_ERRORS = (requests.exceptions.RequestException, ValueError)
_ISS_PAYLOAD_ERRORS = _FETCH_ERRORS + (KeyError, TypeError)


def _get_response(url: str, params: Optional[Dict[str, Any]] = None,
                  nasa: bool = False) -> requests.Response:
    """GET an upstream URL, raising requests exceptions on transport or HTTP failure."""
    query = dict(params or {})
    logger.info("upstream_request", method="GET", url=url, params=query or None)
    if nasa:
        query["api_key"] = Config.NASA_API_KEY

    try:
        response = requests.get(url, params=query, timeout=Config.UPSTREAM_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        logger.error("upstream_error", url=url, status=e.response.status_code,
                     error=e.response.text[:500])
        raise
    except requests.exceptions.RequestException as e:
        logger.error("upstream_error", url=url, error=str(e))
        raise

    logger.info("upstream_response", url=url, status=response.status_code)
    return response


def _get(url: str, params: Optional[Dict[str, Any]] = None, nasa: bool = False) -> Any:
    return _get_response(url, params, nasa).json()


def _upstream_error(what: str, exc: Exception, generic_message: bool = True) -> UpstreamError:
    """Wrap a low-level failure into an UpstreamError describing what failed."""
    upstream_status = None
    detail = str(exc)
    response = getattr(exc, "response", None)
    if response is not None:
        upstream_status = response.status_code
        detail = f"Request failed with status code {upstream_status}"
    if Config.NASA_API_KEY:
        # requests puts the full URL, key included, in its messages
        detail = detail.replace(Config.NASA_API_KEY, "***")

    return UpstreamError(
        f"Failed to fetch {what}: {detail}",
        upstream_status=upstream_status,
        unreachable=isinstance(exc, requests.exceptions.ConnectionError),
        generic_message=generic_message,
    )


def _fetch(what: str, url: str, params: Optional[Dict[str, Any]] = None,
           nasa: bool = False) -> Any:
    try:
        return _get(url, params, nasa)
    except _FETCH_ERRORS as e:
        raise _upstream_error(what, e) from e


def _nasa_url(path: str) -> str:
    return f"{Config.NASA_BASE_URL}{path}"


# ============================================
# NASA
# ============================================

def fetch_apod(date: Optional[str] = None) -> Any:
    """Astronomy Picture of the Day, for today or a given YYYY-MM-DD date."""
    params = {"date": date} if date else {}
    return _fetch("APOD", _nasa_url("/planetary/apod"), params, nasa=True)


def fetch_apod_range(start_date: str, end_date: str) -> Any:
    """List of APOD entries between two dates (inclusive)."""
    return _fetch(
        "APOD range",
        _nasa_url("/planetary/apod"),
        {"start_date": start_date, "end_date": end_date},
        nasa=True,
    )


def fetch_mars_rover_photos(rover: str, sol: Optional[str] = None,
                            earth_date: Optional[str] = None,
                            camera: Optional[str] = None, page: int = 1) -> list:
    """
    Query a rover's photo archive.

    Only the filters that are set are forwarded. The photo records are
    returned as a list, empty when the rover has none for the query.
    """
    params: Dict[str, Any] = {"page": page}
    if sol:
        params["sol"] = sol
    if earth_date:
        params["earth_date"] = earth_date
    if camera:
        params["camera"] = camera

    payload = _fetch(
        "Mars rover photos",
        _nasa_url(f"/mars-photos/api/v1/rovers/{rover}/photos"),
        params,
        nasa=True,
    )
    if not isinstance(payload, dict):
        return []
    return payload.get("photos") or []


def fetch_latest_mars_rover_photos(rover: str) -> Any:
    return _fetch(
        "latest Mars rover photos",
        _nasa_url(f"/mars-photos/api/v1/rovers/{rover}/latest_photos"),
        nasa=True,
    )


def fetch_near_earth_objects(start_date: str, end_date: str) -> Any:
    """NeoWs feed of close approaches between two dates."""
    return _fetch(
        "Near Earth Objects",
        _nasa_url("/neo/rest/v1/feed"),
        {"start_date": start_date, "end_date": end_date},
        nasa=True,
    )


def fetch_neo(asteroid_id: str) -> Any:
    return _fetch("NEO by ID", _nasa_url(f"/neo/rest/v1/neo/{asteroid_id}"), nasa=True)


def search_images(query: str, media_type: Optional[str] = None, page: int = 1) -> Any:
    """Search the NASA Image and Video Library (no API key needed)."""
    params: Dict[str, Any] = {"q": query, "page": page}
    if media_type:
        params["media_type"] = media_type
    return _fetch("NASA images", NASA_IMAGES_URL, params)


def fetch_earth_imagery(lat: float, lon: float, date: Optional[str] = None,
                        dim: Optional[float] = None) -> Any:
    """
    Landsat imagery for a coordinate.

    The upstream answers with a PNG rather than JSON for successful lookups;
    image bodies are returned as a base64 data URI so they still fit the
    JSON envelope.
    """
    params: Dict[str, Any] = {"lat": lat, "lon": lon}
    if date:
        params["date"] = date
    if dim:
        params["dim"] = dim

    try:
        response = _get_response(_nasa_url("/planetary/earth/imagery"), params, nasa=True)
        content_type = response.headers.get("Content-Type", "")
        if content_type.startswith("image/"):
            media_type = content_type.split(";")[0]
            encoded = base64.b64encode(response.content).decode("ascii")
            return {
                "content_type": media_type,
                "data_uri": f"data:{media_type};base64,{encoded}",
            }
        return response.json()
    except _FETCH_ERRORS as e:
        raise _upstream_error("Earth imagery", e) from e


# ============================================
# ISS
# ============================================

def normalize_iss_position(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reshape a wheretheiss.at satellite record into the open-notify layout.

    Latitude and longitude become strings; the extra telemetry fields are
    passed through.
    """
    return {
        "message": "success",
        "timestamp": data["timestamp"],
        "iss_position": {
            "latitude": str(data["latitude"]),
            "longitude": str(data["longitude"]),
        },
        "altitude": data.get("altitude"),
        "velocity": data.get("velocity"),
        "visibility": data.get("visibility"),
        "units": data.get("units"),
    }


def fetch_iss_position() -> Dict[str, Any]:
    """
    Current ISS position.

    Tries wheretheiss.at first and normalizes its payload. If that fails the
    open-notify payload is returned as-is. If both fail, the error reports
    the primary failure.
    """
    try:
        return normalize_iss_position(_get(ISS_PRIMARY_URL))
    except _ISS_PAYLOAD_ERRORS as primary_error:
        logger.warning("iss_primary_failed", error=str(primary_error),
                       fallback=ISS_FALLBACK_URL)
        try:
            return _get(ISS_FALLBACK_URL)
        except _FETCH_ERRORS as fallback_error:
            logger.error("iss_fallback_failed", error=str(fallback_error))
            raise _upstream_error("ISS position", primary_error,
                                  generic_message=False) from primary_error


def fetch_iss_pass_times(lat: float, lon: float, alt: Optional[float] = None) -> Dict[str, Any]:
    """
    Pass predictions are no longer offered upstream; report that along with
    the current position so the client still has something to show.
    """
    try:
        position = _get(ISS_PRIMARY_URL)
    except _FETCH_ERRORS as e:
        raise _upstream_error("ISS data", e) from e

    return {
        "message": PASS_TIMES_UNAVAILABLE,
        "alternative": PASS_TIMES_ALTERNATIVE,
        "current_iss_position": position,
        "request": {"latitude": lat, "longitude": lon, "altitude": alt},
        "response": [],
    }


# ============================================
# Launches, astronauts, news
# ============================================

def fetch_upcoming_launches() -> Any:
    return _fetch("upcoming launches", f"{SPACEX_LAUNCHES_URL}/upcoming")


def fetch_latest_launch() -> Any:
    return _fetch("latest launch", f"{SPACEX_LAUNCHES_URL}/latest")


def fetch_past_launches(limit: int = 10) -> Any:
    return _fetch("past launches", f"{SPACEX_LAUNCHES_URL}/past", {"limit": limit})


def fetch_astronauts() -> Any:
    return _fetch("astronauts", ASTRONAUTS_URL)


def fetch_space_news(limit: int = 10) -> Any:
    return _fetch("space news", SPACE_NEWS_URL, {"limit": limit})
