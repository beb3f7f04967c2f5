"""
Spotify OAuth token management (authorization code + PKCE).

One SpotifyTokenManager owns the auth state for one end user. Auth state
lives in an injected storage object so it survives the browser redirect to
Spotify and back; code exchange and refresh go through a broker, which is the
only place that knows the client secret.
"""

import base64
import hashlib
import logging
import secrets
import threading
import time
from datetime import datetime
from urllib.parse import urlencode

import requests
from flask import session as flask_session
from firebase_admin import firestore

from firebase_admin_init import get_db

logger = logging.getLogger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"

DEFAULT_SCOPES = [
    "user-read-private",
    "user-read-email",
    "playlist-modify-public",
    "playlist-modify-private",
]


# --- Errors ---

class SpotifyAuthError(Exception):
    """Base class for OAuth failures. The user has to restart the auth flow."""
    error_kind = "auth_error"
    status_code = 400

    def __init__(self, message=None, status_code=None, details=None):
        super().__init__(message or self.error_kind)
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class SpotifyConfigurationError(SpotifyAuthError):
    error_kind = "config_error"
    status_code = 500


class SpotifyAuthorizationDenied(SpotifyAuthError):
    error_kind = "oauth_denied"


class StateMismatchError(SpotifyAuthError):
    error_kind = "state_mismatch"


class MissingCodeVerifierError(SpotifyAuthError):
    error_kind = "missing_code_verifier"


class TokenExchangeError(SpotifyAuthError):
    error_kind = "token_exchange_failed"
    status_code = 502


class AuthenticationRequired(SpotifyAuthError):
    error_kind = "authentication_required"
    status_code = 401


class SpotifyAPIError(Exception):
    """Non-auth failure from the Spotify Web API."""

    def __init__(self, message, status_code=500, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


def _response_details(response):
    try:
        return response.json()
    except ValueError:
        return response.text


# --- PKCE helpers ---

def generate_code_verifier():
    """64 random bytes, url-safe: 86 characters (RFC 7636 allows 43-128)."""
    return secrets.token_urlsafe(64)


def generate_code_challenge(code_verifier):
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


# --- Storage backends ---

class MemoryTokenStorage:
    """In-process storage; state does not survive a restart."""

    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)


class SessionTokenStorage:
    """Flask's signed cookie session. Must be used inside a request context."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else flask_session

    def get(self, key):
        return self.session.get(key)

    def set(self, key, value):
        self.session[key] = value
        self.session.modified = True

    def delete(self, key):
        self.session.pop(key, None)


class FirestoreTokenStorage:
    """One Firestore document per browser session."""

    def __init__(self, session_id, db=None, collection="spotify_auth_sessions"):
        self.session_id = session_id
        self.db = db
        self.collection = collection

    def _doc(self):
        db = self.db or get_db()
        return db.collection(self.collection).document(self.session_id)

    def get(self, key):
        snapshot = self._doc().get()
        if not snapshot.exists:
            return None
        return (snapshot.to_dict() or {}).get(key)

    def set(self, key, value):
        self._doc().set({key: value, "updated_at": datetime.utcnow().isoformat()}, merge=True)

    def delete(self, key):
        self._doc().set({key: firestore.DELETE_FIELD}, merge=True)


# --- Brokers ---

class SpotifyTokenBroker:
    """Talks to the Spotify token endpoint directly. Server-side only."""

    def __init__(self, client_id, client_secret=None, token_url=SPOTIFY_TOKEN_URL, session=None, timeout=10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, data):
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if self.client_secret:
            auth_header = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
            headers["Authorization"] = f"Basic {auth_header}"
        else:
            data = dict(data, client_id=self.client_id)

        response = self.session.post(self.token_url, headers=headers, data=data, timeout=self.timeout)
        if response.status_code != 200:
            details = _response_details(response)
            logger.error(f"❌ Spotify token endpoint returned {response.status_code}: {details}")
            raise TokenExchangeError(
                f"Spotify token request failed: {response.status_code}",
                status_code=response.status_code,
                details=details,
            )
        return response.json()

    def exchange_code(self, code, code_verifier, redirect_uri):
        return self._post({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        })

    def refresh(self, refresh_token):
        return self._post({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })


class HttpTokenBroker:
    """Goes through the app's own /api/spotify/token and /api/spotify/refresh endpoints."""

    def __init__(self, token_endpoint, refresh_endpoint, session=None, timeout=10):
        self.token_endpoint = token_endpoint
        self.refresh_endpoint = refresh_endpoint
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, url, payload):
        response = self.session.post(url, json=payload, timeout=self.timeout)
        if not response.ok:
            details = _response_details(response)
            raise TokenExchangeError(
                f"Token endpoint {url} returned {response.status_code}",
                status_code=response.status_code,
                details=details,
            )
        return response.json()

    def exchange_code(self, code, code_verifier, redirect_uri):
        return self._post(self.token_endpoint, {
            "code": code,
            "codeVerifier": code_verifier,
            "redirectUri": redirect_uri,
        })

    def refresh(self, refresh_token):
        return self._post(self.refresh_endpoint, {"refreshToken": refresh_token})


# --- Token manager ---

class SpotifyTokenManager:
    # Refreshes are serialized process-wide; the stored tokens are last-writer-wins
    _refresh_lock = threading.Lock()

    def __init__(self, client_id, redirect_uri, storage, broker, scopes=None,
                 storage_namespace="spotify", storage_version="v1", expiry_margin=60,
                 authorize_url=SPOTIFY_AUTHORIZE_URL, api_base_url=SPOTIFY_API_BASE_URL,
                 session=None, clock=time.time, sleep=time.sleep, timeout=15):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.storage = storage
        self.broker = broker
        self.scopes = list(scopes or DEFAULT_SCOPES)
        self.expiry_margin = expiry_margin
        self.authorize_url = authorize_url
        self.api_base_url = api_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.clock = clock
        self.sleep = sleep
        self.timeout = timeout

        self.tokens_key = f"{storage_namespace}_tokens_{storage_version}"
        self.verifier_key = f"{storage_namespace}_code_verifier_{storage_version}"
        self.state_key = f"{storage_namespace}_auth_state_{storage_version}"
        self.return_url_key = f"{storage_namespace}_auth_return_url_{storage_version}"

    # Storage access never raises: a broken store reads as "nothing stored"

    def _storage_get(self, key):
        try:
            return self.storage.get(key)
        except Exception as e:
            logger.error(f"⚠️ Could not read {key} from token storage: {e}")
            return None

    def _storage_set(self, key, value):
        try:
            self.storage.set(key, value)
        except Exception as e:
            logger.error(f"⚠️ Could not write {key} to token storage: {e}")

    def _storage_delete(self, key):
        try:
            self.storage.delete(key)
        except Exception as e:
            logger.error(f"⚠️ Could not delete {key} from token storage: {e}")

    def _load_tokens(self):
        tokens = self._storage_get(self.tokens_key)
        if not isinstance(tokens, dict) or not tokens.get("access_token"):
            return None
        try:
            tokens["expires_at"] = float(tokens.get("expires_at", 0))
        except (TypeError, ValueError):
            tokens["expires_at"] = 0.0
        return tokens

    def _save_tokens(self, tokens):
        self._storage_set(self.tokens_key, tokens)

    def _tokens_from_response(self, token_data, fallback_refresh_token=None):
        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            raise TokenExchangeError("Token response did not include an access token", details=token_data)
        try:
            expires_in = int(token_data.get("expires_in", 3600))
        except (TypeError, ValueError):
            expires_in = 3600
        return {
            "access_token": token_data["access_token"],
            # Spotify may omit the refresh token on refresh; keep the old one
            "refresh_token": token_data.get("refresh_token") or fallback_refresh_token,
            "expires_at": self.clock() + expires_in,
        }

    def _clear_tokens(self):
        self._storage_delete(self.tokens_key)

    def _clear_pkce(self):
        self._storage_delete(self.verifier_key)
        self._storage_delete(self.state_key)

    def _clear_all(self):
        self._clear_tokens()
        self._clear_pkce()

    # --- Public API ---

    def is_authenticated(self):
        tokens = self._load_tokens()
        if not tokens:
            return False
        if self.clock() >= tokens["expires_at"] - self.expiry_margin:
            logger.info("⏰ Spotify token expired or about to expire")
            return False
        return True

    def pending_return_url(self):
        return self._storage_get(self.return_url_key)

    def start_auth_flow(self, return_url=None):
        """Store PKCE values and return the Spotify authorization URL to redirect to."""
        if not self.client_id:
            logger.error("❌ Spotify Client ID not configured")
            raise SpotifyConfigurationError("Spotify Client ID not configured")

        code_verifier = generate_code_verifier()
        code_challenge = generate_code_challenge(code_verifier)
        state = secrets.token_urlsafe(16)

        self._storage_set(self.verifier_key, code_verifier)
        self._storage_set(self.state_key, state)
        if return_url:
            self._storage_set(self.return_url_key, return_url)
        else:
            self._storage_delete(self.return_url_key)

        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": state,
            "code_challenge_method": "S256",
            "code_challenge": code_challenge,
        }
        auth_url = f"{self.authorize_url}?{urlencode(params)}"
        logger.info("🔗 Generated Spotify auth URL")
        return auth_url

    def handle_auth_callback(self, code, state, error=None):
        """
        Validate the callback and exchange the code for tokens.

        Returns the return URL stored by start_auth_flow (or None). Any failure
        clears all auth state and raises a SpotifyAuthError subclass.
        """
        try:
            if error:
                raise SpotifyAuthorizationDenied(f"Spotify authorization failed: {error}")

            stored_state = self._storage_get(self.state_key)
            if not (isinstance(state, str) and state and isinstance(stored_state, str) and stored_state) \
                    or not secrets.compare_digest(state.encode("utf-8"), stored_state.encode("utf-8")):
                logger.error("❌ State mismatch in Spotify callback")
                raise StateMismatchError("State mismatch, please try connecting again")

            code_verifier = self._storage_get(self.verifier_key)
            if not code_verifier:
                logger.error("❌ Code verifier not found in Spotify callback")
                raise MissingCodeVerifierError("Auth session not found, please try connecting again")

            if not code:
                raise TokenExchangeError("Missing authorization code", status_code=400)

            try:
                token_data = self.broker.exchange_code(code, code_verifier, self.redirect_uri)
            except SpotifyAuthError:
                raise
            except Exception as e:
                raise TokenExchangeError(f"Token exchange failed: {e}") from e

            self._save_tokens(self._tokens_from_response(token_data))
            return_url = self._storage_get(self.return_url_key)
            self._storage_delete(self.return_url_key)
            logger.info("✅ Token exchange successful, tokens stored")
            return return_url

        except SpotifyAuthError:
            self._clear_all()
            self._storage_delete(self.return_url_key)
            raise
        finally:
            self._clear_pkce()

    def refresh_access_token(self, stale_token=None):
        """
        Refresh the access token through the broker.

        With `stale_token`, a token that another request already replaced while
        we waited for the lock is reused instead of refreshing again.
        """
        with self._refresh_lock:
            tokens = self._load_tokens()
            if stale_token and tokens and tokens["access_token"] != stale_token \
                    and self.clock() < tokens["expires_at"] - self.expiry_margin:
                logger.info("🔄 Spotify token already refreshed by another request")
                return tokens["access_token"]

            refresh_token = tokens.get("refresh_token") if tokens else None
            if not refresh_token:
                self._clear_all()
                raise AuthenticationRequired("No refresh token available, please reconnect Spotify")

            try:
                token_data = self.broker.refresh(refresh_token)
                new_tokens = self._tokens_from_response(token_data, fallback_refresh_token=refresh_token)
            except Exception as e:
                logger.error(f"❌ Failed to refresh Spotify token: {e}")
                self._clear_all()
                raise AuthenticationRequired("Spotify session expired, please reconnect") from e

            self._save_tokens(new_tokens)
            logger.info("🔄 Spotify token refreshed")
            return new_tokens["access_token"]

    def get_valid_token(self):
        if self.is_authenticated():
            return self._load_tokens()["access_token"]

        tokens = self._load_tokens()
        if tokens and tokens.get("refresh_token"):
            return self.refresh_access_token(stale_token=tokens["access_token"])

        self._clear_tokens()
        raise AuthenticationRequired("Not connected to Spotify")

    def request(self, method, path_or_url, **kwargs):
        """
        Authenticated Spotify Web API call.

        A 401 gets one refresh-and-retry, a 429 gets one retry after
        Retry-After. Returns the requests.Response on success.
        """
        url = spotify_api_url(self.api_base_url, path_or_url)
        extra_headers = kwargs.pop("headers", None) or {}
        kwargs.setdefault("timeout", self.timeout)

        token = self.get_valid_token()
        response = send_spotify_request(self.session, method, url, bearer_headers(token, extra_headers),
                                        self.sleep, **kwargs)

        if response.status_code == 401:
            token = self.refresh_access_token(stale_token=token)
            response = send_spotify_request(self.session, method, url, bearer_headers(token, extra_headers),
                                            self.sleep, **kwargs)
            if response.status_code == 401:
                self._clear_all()
                raise AuthenticationRequired("Spotify rejected the refreshed token")

        raise_for_spotify_status(response, method, url)
        return response

    def logout(self):
        logger.info("👋 Logging out of Spotify")
        self._clear_all()
        self._storage_delete(self.return_url_key)


def retry_after_seconds(response, default=1.0, maximum=60.0):
    value = response.headers.get("Retry-After")
    try:
        delay = float(value) if value is not None else default
    except (TypeError, ValueError):
        delay = default
    return max(0.0, min(delay, maximum))


def spotify_api_url(api_base_url, path_or_url):
    if path_or_url.startswith("http"):
        return path_or_url
    return f"{api_base_url.rstrip('/')}/{path_or_url.lstrip('/')}"


def bearer_headers(access_token, extra_headers=None):
    headers = dict(extra_headers or {})
    headers["Authorization"] = f"Bearer {access_token}"
    return headers


def send_spotify_request(session, method, url, headers, sleep=time.sleep, **kwargs):
    """
    Send one Spotify Web API request, waiting out a single 429.

    Returns the response whatever its status, except that a second 429 in a
    row raises SpotifyAPIError. Network failures raise SpotifyAPIError (503).
    """
    for attempt in range(2):
        try:
            response = session.request(method, url, headers=headers, **kwargs)
        except requests.exceptions.RequestException as e:
            raise SpotifyAPIError(f"Network error talking to Spotify: {e}", status_code=503) from e

        if response.status_code != 429:
            return response
        if attempt:
            raise SpotifyAPIError("Rate limited by Spotify", status_code=429, details=_response_details(response))

        delay = retry_after_seconds(response)
        logger.warning(f"⏳ Rate limited. Waiting {delay} seconds...")
        sleep(delay)


def raise_for_spotify_status(response, method, url):
    if not response.ok:
        raise SpotifyAPIError(
            f"Spotify API error {response.status_code} for {method} {url}",
            status_code=response.status_code,
            details=_response_details(response),
        )
