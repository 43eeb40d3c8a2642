"""
Flask API Server for the Space Explorer backend

Endpoints:
    GET /health - Liveness, uptime and environment
    GET /api/nasa/apod - Astronomy Picture of the Day (single date or range)
    GET /api/nasa/mars-rovers/<rover>/photos - Rover photo query
    GET /api/nasa/mars-rovers/<rover>/latest-photos - Latest rover photos
    GET /api/nasa/neo - Near-Earth object feed
    GET /api/nasa/neo/<id> - Single near-Earth object
    GET /api/nasa/images - NASA Image and Video Library search
    GET /api/nasa/iss/position - Current ISS position (cached)
    GET /api/nasa/iss/pass-times - Pass times notice with current position
    GET /api/nasa/launches/upcoming|latest|past - SpaceX launches
    GET /api/nasa/astronauts - Astronaut roster
    GET /api/nasa/news - Spaceflight news
    GET /api/nasa/earth/imagery - Landsat imagery for a coordinate

Successful responses are {"success": true, "data": ...};
failures are {"success": false, "error": ...}.
"""

import math
import threading
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from dateutil.parser import parse as parse_datetime
from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_limiter import RateLimitExceeded
from werkzeug.exceptions import HTTPException

from config import Config
from errors import TOO_MANY_REQUESTS_MESSAGE, ApiError, ValidationError
from logging_config import configure_logging, get_logger
from rate_limiter import limiter
from space_fetcher import (
    fetch_apod, fetch_apod_range, fetch_mars_rover_photos,
    fetch_latest_mars_rover_photos, fetch_near_earth_objects, fetch_neo,
    search_images, fetch_iss_position, fetch_iss_pass_times,
    fetch_upcoming_launches, fetch_latest_launch, fetch_past_launches,
    fetch_astronauts, fetch_space_news, fetch_earth_imagery
)

configure_logging(Config.LOG_LEVEL, json_logs=Config.LOG_FORMAT == "json")
logger = get_logger(__name__)

app = Flask(__name__)
CORS(app, origins=Config.cors_origins(), supports_credentials=True)
limiter.init_app(app)

START_TIME = time.time()

# ISS position cache: a single slot shared by every caller
_clock: Callable[[], float] = time.monotonic
_iss_lock = threading.Lock()
_iss_position = None
_iss_refreshed_at = 0.0

LAT_LON_REQUIRED = "Latitude (lat) and longitude (lon) parameters are required"
LAT_RANGE = (-90.0, 90.0)
LON_RANGE = (-180.0, 180.0)


def get_iss_position() -> dict:
    """Return the cached ISS position, refetching once the cache is stale."""
    global _iss_position, _iss_refreshed_at

    now = _clock()
    with _iss_lock:
        if (_iss_position is not None and
                now - _iss_refreshed_at < Config.ISS_CACHE_SECONDS):
            return _iss_position

    data = fetch_iss_position()

    with _iss_lock:
        _iss_position = data
        _iss_refreshed_at = now
    logger.info("iss_position_refreshed")
    return data


def reset_iss_cache() -> None:
    global _iss_position, _iss_refreshed_at
    with _iss_lock:
        _iss_position = None
        _iss_refreshed_at = 0.0


def ok(data: Any):
    return jsonify({"success": True, "data": data})


def error_response(message: str, status_code: int, exc: Optional[BaseException] = None):
    body = {"success": False, "error": message}
    if exc is not None and Config.is_development():
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonify(body), status_code


def original_url() -> str:
    """Request path with its query string, as the client sent it."""
    if request.query_string:
        return f"{request.path}?{request.query_string.decode('utf-8', 'replace')}"
    return request.path


# ============================================
# Query parameter helpers
# ============================================

def number_arg(name: str, cast: Callable[[str], Any] = float, default: Any = None) -> Any:
    """Parse an optional numeric query param, rejecting values that don't parse.

    nan and inf parse as floats but have no JSON form, so they are rejected too.
    """
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be a number")
    return value


def date_arg(name: str) -> Optional[str]:
    """Return a date query param unchanged after checking that it parses."""
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        parse_datetime(raw)
    except (ValueError, OverflowError):
        raise ValidationError(f"Invalid {name}: {raw}")
    return raw


def required_lat_lon():
    if not request.args.get("lat") or not request.args.get("lon"):
        raise ValidationError(LAT_LON_REQUIRED)
    lat, lon = number_arg("lat"), number_arg("lon")
    if not LAT_RANGE[0] <= lat <= LAT_RANGE[1]:
        raise ValidationError("lat must be between -90 and 90")
    if not LON_RANGE[0] <= lon <= LON_RANGE[1]:
        raise ValidationError("lon must be between -180 and 180")
    return lat, lon


# ============================================
# Request hooks and error handlers
# ============================================

@app.before_request
def start_timer():
    g.start_time = time.perf_counter()


@app.after_request
def log_request(response):
    start = g.get("start_time")
    duration_ms = round((time.perf_counter() - start) * 1000, 2) if start else None
    logger.info(
        "request",
        method=request.method,
        path=original_url(),
        status=response.status_code,
        duration_ms=duration_ms,
    )
    return response


@app.errorhandler(ApiError)
def handle_api_error(error: ApiError):
    log = logger.warning if error.status_code < 500 else logger.error
    log("api_error", error=error.message, status=error.status_code,
        url=original_url(), method=request.method)
    return error_response(error.public_message, error.status_code, error)


@app.errorhandler(RateLimitExceeded)
def handle_rate_limit(error: RateLimitExceeded):
    logger.warning("rate_limited", limit=str(error.description),
                   client=request.remote_addr, url=original_url())
    return error_response(TOO_MANY_REQUESTS_MESSAGE, 429)


@app.errorhandler(HTTPException)
def handle_http_exception(error: HTTPException):
    if error.code == 404:
        return error_response(f"Not found - {original_url()}", 404)
    return error_response(error.description or error.name, error.code or 500)


@app.errorhandler(Exception)
def handle_unexpected_error(error: Exception):
    logger.error("unhandled_error", error=str(error), url=original_url(),
                 method=request.method, exc_info=error)
    return error_response(str(error) or "Internal Server Error", 500, error)


# ============================================
# Health
# ============================================

@app.route("/health")
@limiter.exempt
def health():
    """Liveness check."""
    return jsonify({
        "status": "OK",
        "message": "Space Explorer backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.time() - START_TIME, 3),
        "environment": Config.ENVIRONMENT
    })


# ============================================
# NASA: APOD, Mars rovers, NEOs, images, Earth
# ============================================

@app.route("/api/nasa/apod")
def api_apod():
    """
    Astronomy Picture of the Day.

    Query params:
        date: YYYY-MM-DD (default: today)
        start_date, end_date: return a range instead (both required for a range)
    """
    date = date_arg("date")
    start_date = date_arg("start_date")
    end_date = date_arg("end_date")

    if start_date and end_date:
        data = fetch_apod_range(start_date, end_date)
    else:
        data = fetch_apod(date)
    return ok(data)


@app.route("/api/nasa/mars-rovers/<rover>/photos")
def api_mars_rover_photos(rover):
    """
    Photos taken by a rover.

    Query params:
        sol: Martian day
        earth_date: YYYY-MM-DD
        camera: camera abbreviation (e.g. navcam)
        page: result page (default: 1)
    """
    photos = fetch_mars_rover_photos(
        rover,
        request.args.get("sol"),
        request.args.get("earth_date"),
        request.args.get("camera"),
        number_arg("page", int, default=1),
    )
    return ok(photos)


@app.route("/api/nasa/mars-rovers/<rover>/latest-photos")
def api_latest_mars_rover_photos(rover):
    return ok(fetch_latest_mars_rover_photos(rover))


@app.route("/api/nasa/neo")
def api_neo_feed():
    """
    Near-Earth object close approaches.

    Query params:
        start_date: YYYY-MM-DD (required)
        end_date: YYYY-MM-DD (required)
    """
    if not request.args.get("start_date") or not request.args.get("end_date"):
        raise ValidationError("start_date and end_date parameters are required")

    return ok(fetch_near_earth_objects(date_arg("start_date"), date_arg("end_date")))


@app.route("/api/nasa/neo/<neo_id>")
def api_neo(neo_id):
    return ok(fetch_neo(neo_id))


@app.route("/api/nasa/images")
def api_images():
    """
    Search the NASA Image and Video Library.

    Query params:
        q: search terms (required)
        media_type: image, video or audio
        page: result page (default: 1)
    """
    query = request.args.get("q", "").strip()
    if not query:
        raise ValidationError('Query parameter "q" is required')

    data = search_images(
        query,
        request.args.get("media_type"),
        number_arg("page", int, default=1),
    )
    return ok(data)


@app.route("/api/nasa/earth/imagery")
def api_earth_imagery():
    """
    Landsat imagery for a location.

    Query params:
        lat, lon: coordinates (required)
        date: YYYY-MM-DD
        dim: tile width/height in degrees
    """
    lat, lon = required_lat_lon()
    data = fetch_earth_imagery(lat, lon, date_arg("date"), number_arg("dim"))
    return ok(data)


# ============================================
# ISS
# ============================================

@app.route("/api/nasa/iss/position")
def api_iss_position():
    """Current ISS position, cached for ISS_CACHE_SECONDS."""
    return ok(get_iss_position())


@app.route("/api/nasa/iss/pass-times")
def api_iss_pass_times():
    """
    ISS pass times for an observer.

    Query params:
        lat, lon: observer coordinates (required)
        alt: observer altitude in meters
    """
    lat, lon = required_lat_lon()
    return ok(fetch_iss_pass_times(lat, lon, number_arg("alt")))


# ============================================
# Launches, astronauts, news
# ============================================

@app.route("/api/nasa/launches/upcoming")
def api_upcoming_launches():
    return ok(fetch_upcoming_launches())


@app.route("/api/nasa/launches/latest")
def api_latest_launch():
    return ok(fetch_latest_launch())


@app.route("/api/nasa/launches/past")
def api_past_launches():
    """Query params: limit (default: 10)"""
    return ok(fetch_past_launches(number_arg("limit", int, default=10)))


@app.route("/api/nasa/astronauts")
def api_astronauts():
    return ok(fetch_astronauts())


@app.route("/api/nasa/news")
def api_news():
    """Query params: limit (default: 10)"""
    return ok(fetch_space_news(number_arg("limit", int, default=10)))


if __name__ == "__main__":
    logger.info("starting", environment=Config.ENVIRONMENT, port=Config.PORT,
                health=f"http://localhost:{Config.PORT}/health")
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.is_development())
