import logging
import re
import time

import requests

from spotify_token_manager import (
    SPOTIFY_API_BASE_URL,
    AuthenticationRequired,
    SpotifyAPIError,
    bearer_headers,
    raise_for_spotify_status,
    send_spotify_request,
    spotify_api_url,
)

logger = logging.getLogger(__name__)

PLAYLIST_BATCH_SIZE = 100

_MIX_SUFFIX = re.compile(r"\s*\([^)]*\bMix\b[^)]*\)", re.IGNORECASE)
_FEATURING = re.compile(r"\s+(?:ft\.|feat\.|featuring)\s+.*$", re.IGNORECASE)


class StaticTokenClient:
    """
    Minimal client for a raw access token handed to us by the browser.
    No refresh: a 401 raises AuthenticationRequired, a 429 is retried once.
    """

    def __init__(self, access_token, api_base_url=SPOTIFY_API_BASE_URL, session=None, timeout=15, sleep=time.sleep):
        self.access_token = access_token
        self.api_base_url = api_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.sleep = sleep

    def request(self, method, path_or_url, **kwargs):
        url = spotify_api_url(self.api_base_url, path_or_url)
        headers = bearer_headers(self.access_token, kwargs.pop("headers", None))
        kwargs.setdefault("timeout", self.timeout)

        response = send_spotify_request(self.session, method, url, headers, self.sleep, **kwargs)
        if response.status_code == 401:
            raise AuthenticationRequired("Spotify rejected the access token")
        raise_for_spotify_status(response, method, url)
        return response


def _client(manager_or_token):
    if isinstance(manager_or_token, str):
        return StaticTokenClient(manager_or_token)
    return manager_or_token


def chunk_list(items, size=PLAYLIST_BATCH_SIZE):
    """Split a list into consecutive chunks of at most `size` items."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    return [items[i:i + size] for i in range(0, len(items), size)]


def get_spotify_user(manager_or_token):
    return _client(manager_or_token).request("GET", "me").json()


def clean_search_title(title):
    # "Numb (2003 Mix 2)" -> "Numb"
    return _MIX_SUFFIX.sub("", title or "").strip()


def clean_search_artist(artist):
    # "Beyoncé ft. Jay-Z" -> "Beyoncé"
    return _FEATURING.sub("", artist or "").strip()


def search_spotify_tracks(manager_or_token, query, limit=10, market=None):
    """Raw Spotify track search; returns the list of track items."""
    params = {"q": query, "type": "track", "limit": limit}
    if market:
        params["market"] = market
    data = _client(manager_or_token).request("GET", "search", params=params).json()
    return data.get("tracks", {}).get("items", []) or []


def search_spotify_track(manager_or_token, title, artist):
    """
    Find the Spotify URI for a song, or None.

    Tries a fielded query first and then a plain one. Spotify API errors are
    logged and treated as "not found"; auth errors propagate.
    """
    clean_title = clean_search_title(title)
    clean_artist = clean_search_artist(artist)
    if not clean_title or not clean_artist:
        return None

    queries = [
        f'track:"{clean_title}" artist:"{clean_artist}"',
        f"{clean_title} {clean_artist}",
    ]
    for query in queries:
        try:
            items = search_spotify_tracks(manager_or_token, query, limit=5)
        except SpotifyAPIError as e:
            logger.warning(f"⚠️ Spotify search failed for '{query}': {e}")
            continue
        for track in items:
            if isinstance(track, dict) and track.get("uri"):
                return track["uri"]

    logger.info(f"❌ No Spotify match for '{title}' by '{artist}'")
    return None


def create_playlist_with_tracks(manager_or_token, user_id, name, description, track_uris):
    """
    Create a private playlist and add tracks in batches of 100.

    A failing batch is logged and skipped so the rest of the playlist still
    gets filled. Returns {id, name, external_urls, tracks: {total}}.
    """
    client = _client(manager_or_token)
    logger.info(f"🎶 Creating playlist '{name}' for user {user_id} with {len(track_uris)} tracks")

    playlist = client.request(
        "POST",
        f"users/{user_id}/playlists",
        json={"name": name, "description": description or "", "public": False},
    ).json()
    playlist_id = playlist["id"]
    logger.info(f"✅ Playlist created: {playlist_id}")

    batches = chunk_list(list(track_uris))
    for index, batch in enumerate(batches, start=1):
        try:
            client.request("POST", f"playlists/{playlist_id}/tracks", json={"uris": batch})
            logger.info(f"➕ Added batch {index}/{len(batches)} ({len(batch)} tracks)")
        except SpotifyAPIError as e:
            logger.error(f"❌ Failed to add batch {index}/{len(batches)}: {e}")

        if index < len(batches):
            getattr(client, "sleep", time.sleep)(0.1)

    return {
        "id": playlist_id,
        "name": playlist.get("name", name),
        "external_urls": playlist.get("external_urls", {}),
        "tracks": {"total": len(track_uris)},
    }


def default_playlist_name(playlist_result):
    return f"My Formative Years ({playlist_result['formative_years']})"


def default_playlist_description(playlist_result):
    genres = ", ".join(playlist_result.get("selected_genres", []))
    return (
        f"Billboard #1 hits from {playlist_result['formative_years']}, "
        f"the years you turned 12 to 22. Genres: {genres}"
    )


def export_playlist_to_spotify(manager, playlist_result, name=None, description=None):
    """Resolve every generated song on Spotify and save the matches as a playlist."""
    user = get_spotify_user(manager)
    songs = playlist_result.get("songs", [])

    track_uris = []
    unmatched = []
    for song in songs:
        uri = search_spotify_track(manager, song.get("title", ""), song.get("artist", ""))
        if uri and uri not in track_uris:
            track_uris.append(uri)
        elif not uri:
            unmatched.append(f"{song.get('title')} - {song.get('artist')}")

    logger.info(f"🔎 Matched {len(track_uris)}/{len(songs)} songs on Spotify")

    playlist = create_playlist_with_tracks(
        manager,
        user["id"],
        name or default_playlist_name(playlist_result),
        description or default_playlist_description(playlist_result),
        track_uris,
    )
    return {
        "playlist": playlist,
        "matched": len(track_uris),
        "unmatched": unmatched,
        "total_songs": len(songs),
    }
