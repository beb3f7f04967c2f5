import os
from dotenv import load_dotenv

# Only load .env if running locally (Railway sets env vars automatically)
if os.getenv("RAILWAY_ENVIRONMENT") is None:
    load_dotenv()

SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:5000/api/spotify/callback")

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"

SCOPES = [
    "user-read-private",
    "user-read-email",
    "playlist-modify-public",
    "playlist-modify-private",
]

# Storage keys are versioned so a format change invalidates old sessions
STORAGE_NAMESPACE = os.getenv("SPOTIFY_STORAGE_NAMESPACE", "spotify")
STORAGE_VERSION = os.getenv("SPOTIFY_STORAGE_VERSION", "v1")

# "session" keeps auth state in the signed Flask cookie, "firestore" in Firestore
TOKEN_STORAGE_BACKEND = os.getenv("TOKEN_STORAGE_BACKEND", "session").lower()
TOKEN_EXPIRY_MARGIN_SECONDS = int(os.getenv("TOKEN_EXPIRY_MARGIN_SECONDS", "60"))

FLASK_SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-only-change-me")
DEFAULT_RETURN_URL = os.getenv("DEFAULT_RETURN_URL", "/")

USE_SONG_DATABASE = os.getenv("USE_SONG_DATABASE", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("PORT", os.getenv("API_PORT", "5000")))
