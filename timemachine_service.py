import logging
from datetime import datetime

from flask import Flask, jsonify, request

import timemachine_settings as settings
from billboard_source import fetch_songs_from_database, get_all_genres
from fallback_catalog import DEFAULT_GENRES
from firebase_admin_init import firebase_configured
from timemachine_auth import auth_bp
from timemachine_engine import generate_playlist, validate_generation_request

app = Flask(__name__)
app.secret_key = settings.FLASK_SECRET_KEY
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
app.register_blueprint(auth_bp)

logger = logging.getLogger(__name__)


@app.route('/', methods=['GET'])
def index():
    return jsonify({
        "service": "Playlist Time Machine",
        "status": "operational",
        "timestamp": datetime.now().isoformat(),
    })


@app.route('/health_check', methods=['GET'])
def health_check():
    return jsonify({
        "status": "success",
        "spotify_configured": bool(settings.SPOTIFY_CLIENT_ID),
        "firebase_configured": firebase_configured(),
        "song_database_enabled": settings.USE_SONG_DATABASE,
        "timestamp": datetime.now().isoformat(),
    }), 200


@app.route('/genres', methods=['GET'])
def genres():
    if settings.USE_SONG_DATABASE:
        return jsonify({"genres": get_all_genres()})
    return jsonify({"genres": list(DEFAULT_GENRES)})


@app.route('/generate', methods=['POST'])
def generate():
    """Generate the formative-years playlist for a birth year and genres."""
    data = request.get_json(silent=True) or {}
    logger.info(f"📥 Generate request: {data}")

    try:
        birth_year, birth_month, selected_genres = validate_generation_request(
            data.get("birth_year"),
            data.get("birth_month"),
            data.get("genres", data.get("selected_genres")),
        )
    except ValueError as e:
        return jsonify({"status": "error", "message": str(e)}), 400

    fetch_songs = fetch_songs_from_database if settings.USE_SONG_DATABASE else None
    result = generate_playlist(birth_year, birth_month, selected_genres, fetch_songs=fetch_songs)
    return jsonify(result), 200


if __name__ == '__main__':
    app.run(host=settings.API_HOST, port=settings.API_PORT, debug=settings.LOG_LEVEL == "DEBUG")
