# timemachine_auth.py - Spotify OAuth (PKCE) and Spotify API routes

import logging
import urllib.parse
import uuid

from flask import Blueprint, g, jsonify, redirect, request, session

import timemachine_settings as settings
from spotify_token_manager import (
    AuthenticationRequired,
    FirestoreTokenStorage,
    SessionTokenStorage,
    SpotifyAPIError,
    SpotifyAuthError,
    SpotifyTokenBroker,
    SpotifyTokenManager,
    TokenExchangeError,
)
from timemachine_utilities import (
    create_playlist_with_tracks,
    export_playlist_to_spotify,
    get_spotify_user,
    search_spotify_track,
    search_spotify_tracks,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

AUTH_SESSION_ID_KEY = "auth_session_id"


def get_token_broker():
    return SpotifyTokenBroker(
        settings.SPOTIFY_CLIENT_ID,
        settings.SPOTIFY_CLIENT_SECRET,
        token_url=settings.SPOTIFY_TOKEN_URL,
    )


def get_token_storage():
    if settings.TOKEN_STORAGE_BACKEND == "firestore":
        # The cookie only carries an opaque id; tokens stay server-side
        session_id = session.get(AUTH_SESSION_ID_KEY)
        if not session_id:
            session_id = uuid.uuid4().hex
            session[AUTH_SESSION_ID_KEY] = session_id
        return FirestoreTokenStorage(session_id)
    return SessionTokenStorage()


def get_token_manager():
    """One SpotifyTokenManager per request, bound to the caller's session."""
    if "token_manager" not in g:
        g.token_manager = SpotifyTokenManager(
            settings.SPOTIFY_CLIENT_ID,
            settings.SPOTIFY_REDIRECT_URI,
            storage=get_token_storage(),
            broker=get_token_broker(),
            scopes=settings.SCOPES,
            storage_namespace=settings.STORAGE_NAMESPACE,
            storage_version=settings.STORAGE_VERSION,
            expiry_margin=settings.TOKEN_EXPIRY_MARGIN_SECONDS,
            authorize_url=settings.SPOTIFY_AUTHORIZE_URL,
            api_base_url=settings.SPOTIFY_API_BASE_URL,
        )
    return g.token_manager


def safe_return_url(url):
    """Only same-site relative paths; anything else becomes the default."""
    if not url or not url.startswith("/") or url.startswith("//") or "\\" in url:
        return settings.DEFAULT_RETURN_URL
    return url


def add_query_params(url, **params):
    parts = urllib.parse.urlsplit(url)
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    query.extend(params.items())
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))


# --- Error handlers ---

@auth_bp.app_errorhandler(AuthenticationRequired)
def handle_authentication_required(e):
    return jsonify({"error": "authentication_required", "message": str(e)}), 401


@auth_bp.app_errorhandler(SpotifyAuthError)
def handle_spotify_auth_error(e):
    return jsonify({"error": e.error_kind, "message": str(e)}), e.status_code


@auth_bp.app_errorhandler(SpotifyAPIError)
def handle_spotify_api_error(e):
    logger.error(f"❌ Spotify API error: {e} ({e.details})")
    return jsonify({"error": "spotify_api_error", "message": str(e)}), e.status_code


# --- OAuth flow ---

@auth_bp.route("/api/spotify/auth")
def spotify_auth():
    """Start the PKCE flow and send the browser to Spotify."""
    manager = get_token_manager()
    return_url = safe_return_url(request.args.get("return_url"))
    auth_url = manager.start_auth_flow(return_url=return_url)

    if request.args.get("format") == "json":
        return jsonify({"auth_url": auth_url})
    return redirect(auth_url)


@auth_bp.route("/api/spotify/callback")
def spotify_callback():
    manager = get_token_manager()
    return_url = safe_return_url(manager.pending_return_url())

    try:
        stored_return_url = manager.handle_auth_callback(
            request.args.get("code"),
            request.args.get("state"),
            error=request.args.get("error"),
        )
    except SpotifyAuthError as e:
        logger.error(f"❌ Spotify callback failed ({e.error_kind}): {e}")
        return redirect(add_query_params(return_url, spotify_error=e.error_kind))

    logger.info("✅ Spotify connected")
    return redirect(add_query_params(safe_return_url(stored_return_url), spotify="connected"))


@auth_bp.route("/api/spotify/token", methods=["POST"])
def spotify_token():
    """Code exchange on behalf of a client that cannot hold the secret."""
    data = request.get_json(silent=True) or {}
    code = data.get("code")
    code_verifier = data.get("codeVerifier")
    redirect_uri = data.get("redirectUri")

    if not code or not code_verifier or not redirect_uri:
        return jsonify({"error": "missing_parameters", "error_description": "Missing required parameters"}), 400

    if not settings.SPOTIFY_CLIENT_SECRET:
        logger.error("❌ Spotify client secret not configured")
        return jsonify({"error": "server_error", "error_description": "Server configuration error"}), 500

    try:
        token_data = get_token_broker().exchange_code(code, code_verifier, redirect_uri)
    except TokenExchangeError as e:
        details = e.details if isinstance(e.details, dict) else {}
        return jsonify({
            "error": details.get("error", e.error_kind),
            "error_description": details.get("error_description", str(e)),
        }), e.status_code

    logger.info("✅ Token exchange successful")
    return jsonify(token_data)


@auth_bp.route("/api/spotify/refresh", methods=["POST"])
def spotify_refresh():
    data = request.get_json(silent=True) or {}
    refresh_token = data.get("refreshToken") or data.get("refresh_token")
    if not refresh_token:
        return jsonify({"error": "missing_parameters", "error_description": "Missing refresh token"}), 400

    if not settings.SPOTIFY_CLIENT_SECRET:
        return jsonify({"error": "server_error", "error_description": "Server configuration error"}), 500

    try:
        token_data = get_token_broker().refresh(refresh_token)
    except TokenExchangeError as e:
        return jsonify({"error": e.error_kind, "error_description": str(e)}), e.status_code

    return jsonify(token_data)


@auth_bp.route("/api/spotify/status")
def spotify_status():
    configured = bool(settings.SPOTIFY_CLIENT_ID)
    authenticated = configured and get_token_manager().is_authenticated()
    return jsonify({
        "authenticated": authenticated,
        "configured": configured,
        "redirect_uri": settings.SPOTIFY_REDIRECT_URI,
        "scopes": settings.SCOPES,
    })


@auth_bp.route("/api/spotify/logout", methods=["POST"])
def spotify_logout():
    get_token_manager().logout()
    return jsonify({"status": "logged_out"})


# --- Spotify API ---

@auth_bp.route("/api/spotify/user")
def spotify_user():
    return jsonify(get_spotify_user(get_token_manager()))


@auth_bp.route("/api/spotify/search-track")
def spotify_search_track():
    client = request.args.get("token") or get_token_manager()
    title = request.args.get("title")
    artist = request.args.get("artist")
    query = request.args.get("q")

    if title and artist:
        return jsonify({"uri": search_spotify_track(client, title, artist)})
    if query:
        return jsonify({"tracks": {"items": search_spotify_tracks(client, query)}})
    return jsonify({"error": "Missing query parameter"}), 400


@auth_bp.route("/api/spotify/create-playlist", methods=["POST"])
def spotify_create_playlist():
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    tracks = data.get("tracks")

    if not name or tracks is None or not isinstance(tracks, list):
        return jsonify({"error": "Missing required fields: name, tracks"}), 400

    client = data.get("token") or get_token_manager()
    user_id = data.get("userId")
    if not user_id:
        if isinstance(client, str):
            return jsonify({"error": "Missing required field: userId"}), 400
        user_id = get_spotify_user(client)["id"]

    playlist = create_playlist_with_tracks(client, user_id, name, data.get("description", ""), tracks)
    return jsonify(playlist)


@auth_bp.route("/api/spotify/export", methods=["POST"])
def spotify_export():
    """Save a generated playlist to the connected Spotify account."""
    data = request.get_json(silent=True) or {}
    playlist_result = data.get("playlist")

    if not isinstance(playlist_result, dict) or not playlist_result.get("songs") \
            or not playlist_result.get("formative_years"):
        return jsonify({"error": "Missing generated playlist"}), 400

    result = export_playlist_to_spotify(
        get_token_manager(),
        playlist_result,
        name=data.get("name"),
        description=data.get("description"),
    )
    return jsonify(result)
