"""
Billboard #1 hits stored in Firestore.

Collections:
  songs   - {title, artist, genre, release_year, weeks_at_one}
  genres  - {name}
"""

import logging

from fallback_catalog import DEFAULT_GENRES
from firebase_admin_init import get_db

logger = logging.getLogger(__name__)


def _clean(value):
    return value.strip() if isinstance(value, str) else ""


def fetch_songs_from_database(year, genres, db=None, limit=20):
    """
    Fetch #1 hits released in exactly `year` whose genre is one of `genres`.

    Errors from Firestore are NOT caught here; the engine treats them as an
    empty result for the year.
    """
    db = db or get_db()
    logger.info(f"🔍 Fetching from database: year {year}, genres: {', '.join(genres)}")

    query = db.collection("songs").where("release_year", "==", year).limit(limit)

    songs = []
    for doc in query.stream():
        data = doc.to_dict() or {}
        title = _clean(data.get("title"))
        artist = _clean(data.get("artist"))
        genre = _clean(data.get("genre"))

        if not title or not artist or not genre:
            continue
        if genre not in genres:
            continue

        try:
            weeks_at_one = max(1, int(data.get("weeks_at_one") or 1))
        except (TypeError, ValueError):
            weeks_at_one = 1

        songs.append({
            "title": title,
            "artist": artist,
            "genre": genre,
            "peak": 1,
            "week_entered": "",
            "weeks_at_one": weeks_at_one,
            "year": data.get("release_year", year),
        })

    logger.info(f"🎵 Processed {len(songs)} valid songs for year {year}")
    return songs


def get_all_genres(db=None):
    """Genre names from the database, or the default list if unavailable."""
    try:
        db = db or get_db()
        names = []
        for doc in db.collection("genres").limit(20).stream():
            name = _clean((doc.to_dict() or {}).get("name"))
            if name and name not in names:
                names.append(name)
        return names or list(DEFAULT_GENRES)
    except Exception as e:
        logger.error(f"❌ Error fetching genres: {e}")
        return list(DEFAULT_GENRES)
