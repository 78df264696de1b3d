"""MCP Server - Tool definitions for Claude integration.

Defines all MCP tools for profile setup, water logging and progress views.
Handles authentication via API key in Authorization header.
"""

import logging
import os
from contextvars import ContextVar
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import ValidationError

from ..core.models import ActivityLevel, WeatherCondition, Profile, IntakeLogEntry, DayAggregate
from ..core.goals import build_profile
from ..core.conversions import to_kilograms, is_unusual_weight
from ..core.aggregation import (
    QUICK_ADD_AMOUNTS,
    build_history,
    day_bounds,
    format_amount,
    remaining_amount,
    summarize_day,
)
from .firestore_client import HydrationFirestoreClient, FirestoreConfig
from .auth import AuthClient


logger = logging.getLogger(__name__)

# Context variable to store current user_id per request
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)

MAX_HISTORY_DAYS = 31

# Configure transport security for Cloud Run deployment
transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=[
        "localhost:*",
        "127.0.0.1:*",
        "*.run.app:*",
        "*.run.app",
    ],
)

# Initialize FastMCP server with stateless HTTP for cloud deployments
mcp = FastMCP(
    "hydratrack",
    instructions="""HydraTrack - Personal hydration tracking assistant.

Use these tools to help users track how much water they drink each day
against a goal computed from their weight, activity level and weather.

On first use, call setup_profile to compute the user's daily goal.
After logging water, always show today's progress.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized clients
_firestore_client: HydrationFirestoreClient | None = None
_auth_client: AuthClient | None = None


def get_firestore_client() -> HydrationFirestoreClient:
    """Get or create Firestore client."""
    global _firestore_client
    if _firestore_client is None:
        config = FirestoreConfig(
            database=os.environ.get("FIRESTORE_DATABASE", "hydratrack"),
        )
        _firestore_client = HydrationFirestoreClient(config)
    return _firestore_client


def get_auth_client() -> AuthClient:
    """Get or create Auth client."""
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthClient(get_firestore_client().client)
    return _auth_client


def get_timezone() -> tzinfo:
    """Reference time zone for calendar days (HYDRATRACK_TIMEZONE, default UTC)."""
    name = os.environ.get("HYDRATRACK_TIMEZONE", "UTC")
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def get_user_id() -> str:
    """Get current authenticated user ID.

    Raises:
        RuntimeError: If no user is authenticated
    """
    user_id = current_user_id.get()
    if user_id is None:
        raise RuntimeError("No authenticated user. Ensure API key is provided.")
    return user_id


def _today(tz: tzinfo) -> date:
    return datetime.now(tz).date()


def _validation_message(error: ValueError) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors()
        )
    return str(error)


# ==================== Payloads ====================


def profile_payload(profile: Profile) -> dict:
    return {
        "weight": profile.weight,
        "activity_level": profile.activity_level.value,
        "weather_condition": profile.weather_condition.value,
        "daily_goal": profile.daily_goal,
        "daily_goal_display": format_amount(profile.daily_goal),
    }


def entry_payload(entry: IntakeLogEntry) -> dict:
    return {
        "id": entry.id,
        "amount": entry.amount,
        "amount_display": format_amount(entry.amount),
        "logged_at": entry.logged_at.isoformat(),
    }


def day_payload(aggregate: DayAggregate, daily_goal: int) -> dict:
    return {
        "date": aggregate.log_date.isoformat(),
        "total": aggregate.total,
        "total_display": format_amount(aggregate.total),
        "goal": daily_goal,
        "remaining": remaining_amount(aggregate.total, daily_goal),
        "progress_pct": aggregate.progress_pct,
        "status_color": aggregate.status_color.value,
        "status_hex": aggregate.status_color.hex,
        "entries": [entry_payload(e) for e in aggregate.entries],
    }


def _day_view(user_id: str, profile: Profile, day: date, tz: tzinfo) -> dict:
    db = get_firestore_client()
    start, end = day_bounds(day, tz)

    entries = db.get_entries_range(user_id, start, end)
    if entries is None:
        return {"error": "Failed to load water logs. Please try again."}

    aggregate = summarize_day(entries, day, profile.daily_goal, tz)
    return day_payload(aggregate, profile.daily_goal)


# ==================== Profile Tools ====================


@mcp.tool()
def setup_profile(
    weight: float,
    activity_level: str,
    weather_condition: str,
    weight_unit: str = "kg",
) -> dict:
    """Set the user's body, activity and weather profile and compute their daily goal.

    Call this on first use or when the user's weight, activity or climate
    changes. The goal is fixed at setup time and only changes when this is
    called again.

    Args:
        weight: Body weight (30-300 kg)
        activity_level: sedentary, light, moderate, active or very_active
        weather_condition: cool, mild, warm or hot
        weight_unit: "kg" (default) or "lb"

    Returns:
        The saved profile with its daily goal in ml
    """
    user_id = get_user_id()
    db = get_firestore_client()

    try:
        level = ActivityLevel.parse(activity_level)
        weather = WeatherCondition.parse(weather_condition)
        weight_kg = to_kilograms(weight, weight_unit)
    except ValueError as e:
        return {"error": str(e)}

    # Only weight can fail from here on
    try:
        profile = build_profile(weight_kg, level, weather)
    except ValueError as e:
        if weight_unit.strip().lower() == "kg" and is_unusual_weight(weight):
            return {"error": f"Weight {weight} kg looks unusually low. Weight must be 30-300 kg."}
        return {"error": _validation_message(e)}

    if not db.save_profile(user_id, profile):
        return {"error": "Failed to save profile. Please try again."}

    return {"profile": profile_payload(profile)}


@mcp.tool()
def get_profile() -> dict:
    """Retrieve the user's profile and daily goal.

    Returns:
        Profile dictionary, or error message if not set up
    """
    user_id = get_user_id()
    db = get_firestore_client()

    profile = db.get_profile(user_id)
    if profile is None:
        return {"error": "No profile found. Please use setup_profile first."}

    return {"profile": profile_payload(profile)}


# ==================== Logging Tools ====================


@mcp.tool()
def log_water(amount: float) -> dict:
    """Log water the user just drank.

    Common amounts are 100, 200, 250 and 500 ml.

    Args:
        amount: Amount in ml (greater than 0, at most 1000)

    Returns:
        The created entry and today's updated progress
    """
    user_id = get_user_id()
    db = get_firestore_client()

    try:
        entry = IntakeLogEntry(amount=amount, owner_id=user_id)
    except ValidationError as e:
        return {"error": _validation_message(e)}

    if not db.add_entry(user_id, entry):
        return {"error": "Failed to log water. Please try again."}

    profile = db.get_profile(user_id)
    if profile is None:
        return {
            "entry": entry_payload(entry),
            "warning": "No profile configured. Use setup_profile to see progress.",
        }

    tz = get_timezone()
    return {
        "entry": entry_payload(entry),
        "today": _day_view(user_id, profile, _today(tz), tz),
    }


# ==================== Query Tools ====================


@mcp.tool()
def get_today() -> dict:
    """Get today's water log with progress towards the daily goal.

    Returns:
        Dictionary with date, total, progress, status color and entries
    """
    user_id = get_user_id()
    db = get_firestore_client()

    profile = db.get_profile(user_id)
    if profile is None:
        return {"error": "No profile configured. Use setup_profile first."}

    tz = get_timezone()
    view = _day_view(user_id, profile, _today(tz), tz)
    if "error" not in view:
        view["quick_add_amounts"] = list(QUICK_ADD_AMOUNTS)
    return view


@mcp.tool()
def get_day(date_str: str) -> dict:
    """Get a specific day's water log with progress.

    Args:
        date_str: Date in YYYY-MM-DD format

    Returns:
        Dictionary with date, total, progress, status color and entries
    """
    user_id = get_user_id()
    db = get_firestore_client()

    try:
        day = date.fromisoformat(date_str)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    profile = db.get_profile(user_id)
    if profile is None:
        return {"error": "No profile configured. Use setup_profile first."}

    return _day_view(user_id, profile, day, get_timezone())


@mcp.tool()
def get_history(days: int = 7) -> dict:
    """Get the last N days of water intake, one summary per day that has logs.

    Args:
        days: How many days to look back (1-31, default 7)

    Returns:
        Dictionary with per-day totals and progress, plus period metrics
    """
    user_id = get_user_id()
    db = get_firestore_client()

    if not 1 <= days <= MAX_HISTORY_DAYS:
        return {"error": f"days must be between 1 and {MAX_HISTORY_DAYS}."}

    profile = db.get_profile(user_id)
    if profile is None:
        return {"error": "No profile configured. Use setup_profile first."}

    tz = get_timezone()
    end_date = _today(tz)
    start, _ = day_bounds(end_date - timedelta(days=days - 1), tz)
    _, end = day_bounds(end_date, tz)

    entries = db.get_entries_range(user_id, start, end)
    if entries is None:
        return {"error": "Failed to load water logs. Please try again."}

    history = build_history(entries, profile.daily_goal, end_date, days, tz)

    return {
        "start_date": history.start_date.isoformat(),
        "end_date": history.end_date.isoformat(),
        "daily_goal": history.daily_goal,
        "days_logged": history.days_logged,
        "days_goal_met": history.days_goal_met,
        "total": history.total,
        "total_display": format_amount(history.total),
        "avg_daily_total": history.avg_daily_total,
        "days": [day_payload(d, profile.daily_goal) for d in history.days],
    }
