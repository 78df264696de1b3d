"""HydraTrack Server - Entry point.

Runs the MCP server and the JSON API with HTTP transport for Cloud Run deployment.
Uses Starlette with the MCP HTTP app for maximum compatibility.
"""

import logging
import os

import uvicorn
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Mount

from .shell import mcp_server
from .shell.mcp_server import mcp, current_user_id, get_auth_client
from .shell.auth import extract_bearer_key, validate_api_key_format, hash_api_key


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

AUTHENTICATED_PREFIXES = ("/mcp", "/api")


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint for Cloud Run."""
    return JSONResponse({"status": "healthy", "service": "hydratrack-mcp"})


async def register_user(request: Request) -> JSONResponse:
    """Register a new user and return their API key."""
    try:
        body = await request.json()
        email = body.get("email")
        name = body.get("name")

        if not email or "@" not in email:
            return JSONResponse({"error": "Valid email is required"}, status_code=400)

        auth_client = get_auth_client()
        api_key, user_id = await run_in_threadpool(auth_client.register_user, email, name)

        base_url = os.environ.get("BASE_URL", "http://localhost:8080")

        return JSONResponse({
            "api_key": api_key,
            "message": "Registration successful! Save your API key - it won't be shown again.",
            "claude_command": f'claude mcp add --transport http hydratrack {base_url}/mcp --header "Authorization: Bearer {api_key}"',
        })

    except Exception as e:
        logger.error("Registration failed: %s", str(e))
        return JSONResponse({"error": "Registration failed."}, status_code=500)


async def validate_key(request: Request) -> JSONResponse:
    """Validate an API key."""
    try:
        body = await request.json()
        api_key = body.get("api_key")

        if not api_key:
            return JSONResponse({"valid": False, "error": "API key required"})

        auth_client = get_auth_client()
        user_id = await run_in_threadpool(auth_client.validate_api_key, api_key)
        return JSONResponse({"valid": user_id is not None})

    except Exception as e:
        logger.error("Validation failed: %s", str(e))
        return JSONResponse({"valid": False, "error": "Validation failed"})


# ==================== JSON API ====================


def _unauthorized() -> JSONResponse:
    return JSONResponse({"error": "Valid API key required"}, status_code=401)


def _result_response(result: dict, error_status: int = 400) -> JSONResponse:
    if "error" in result:
        return JSONResponse(result, status_code=error_status)
    return JSONResponse(result)


async def _json_body(request: Request) -> dict | None:
    try:
        body = await request.json()
    except ValueError:
        # Malformed JSON or a body that is not valid UTF-8
        return None
    return body if isinstance(body, dict) else None


def _as_number(value) -> float | None:
    """Parse a JSON number or numeric string. Booleans are not numbers here."""
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


async def profile_endpoint(request: Request) -> JSONResponse:
    """GET the current profile, or POST a new one (recomputes the goal)."""
    if current_user_id.get() is None:
        return _unauthorized()

    if request.method == "GET":
        result = await run_in_threadpool(mcp_server.get_profile)
        return _result_response(result, error_status=404)

    body = await _json_body(request)
    if body is None:
        return JSONResponse({"error": "JSON object body required"}, status_code=400)

    missing = [f for f in ("weight", "activity_level", "weather_condition") if body.get(f) is None]
    if missing:
        return JSONResponse({"error": f"Missing fields: {', '.join(missing)}"}, status_code=400)

    weight = _as_number(body["weight"])
    if weight is None:
        return JSONResponse({"error": "weight must be a number"}, status_code=400)

    result = await run_in_threadpool(
        mcp_server.setup_profile,
        weight=weight,
        activity_level=str(body["activity_level"]),
        weather_condition=str(body["weather_condition"]),
        weight_unit=str(body.get("weight_unit", "kg")),
    )
    return _result_response(result)


async def water_logs_endpoint(request: Request) -> JSONResponse:
    """GET a day's logs (?date=YYYY-MM-DD, default today), or POST a new entry."""
    if current_user_id.get() is None:
        return _unauthorized()

    if request.method == "GET":
        date_str = request.query_params.get("date")
        if date_str:
            return _result_response(await run_in_threadpool(mcp_server.get_day, date_str))
        return _result_response(await run_in_threadpool(mcp_server.get_today))

    body = await _json_body(request)
    if body is None or body.get("amount") is None:
        return JSONResponse({"error": "amount is required"}, status_code=400)

    amount = _as_number(body["amount"])
    if amount is None:
        return JSONResponse({"error": "amount must be a number"}, status_code=400)

    return _result_response(await run_in_threadpool(mcp_server.log_water, amount))


async def history_endpoint(request: Request) -> JSONResponse:
    """GET the last N days (?days=N, default 7)."""
    if current_user_id.get() is None:
        return _unauthorized()

    try:
        days = int(request.query_params.get("days", 7))
    except ValueError:
        return JSONResponse({"error": "days must be an integer"}, status_code=400)

    return _result_response(await run_in_threadpool(mcp_server.get_history, days))


# ==================== Auth Middleware ====================


class AuthMiddleware(BaseHTTPMiddleware):
    """Authenticate MCP and API requests using API key in Authorization header."""

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(AUTHENTICATED_PREFIXES):
            return await call_next(request)

        api_key = extract_bearer_key(request.headers.get("Authorization", ""))

        if api_key and validate_api_key_format(api_key):
            user_id = hash_api_key(api_key)
            auth_client = get_auth_client()

            if await run_in_threadpool(auth_client.user_exists, user_id):
                # Set user context for this request
                current_user_id.set(user_id)
                logger.debug("Authenticated user: %s", user_id[:8])

        return await call_next(request)


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application with MCP at root.

    The MCP streamable_http_app() handles /mcp/ internally when mounted at root.
    We use its lifespan context to ensure proper initialization.
    """
    mcp_app = mcp.streamable_http_app()

    # Custom routes first, then MCP app at root
    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/auth/register", register_user, methods=["POST"]),
        Route("/auth/validate", validate_key, methods=["POST"]),
        Route("/api/profile", profile_endpoint, methods=["GET", "POST"]),
        Route("/api/water-logs", water_logs_endpoint, methods=["GET", "POST"]),
        Route("/api/history", history_endpoint, methods=["GET"]),
        Mount("/", app=mcp_app),
    ]

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["http://localhost:3000", "http://localhost:5173"],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(AuthMiddleware),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


# Create app at module level for Cloud Run
app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting HydraTrack server on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
