# timemachine_engine.py - Formative years song selection with fallback backfill

import logging
import random
from typing import Callable, Dict, List, Optional, Tuple

from fallback_catalog import (
    DEFAULT_SONGS_BY_DECADE,
    all_fallback_songs,
    decade_label,
    get_decade_songs,
)

logger = logging.getLogger(__name__)

TARGET_SONGS_PER_YEAR = 10
SYNTHESIS_ATTEMPT_CAP = 20

FORMATIVE_START_AGE = 12
FORMATIVE_END_AGE = 22

MIN_BIRTH_YEAR = 1960
MAX_BIRTH_YEAR = 2010
MAX_GENRES = 5

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def song_key(song: Dict) -> Tuple[str, str]:
    """Uniqueness key: lowercase-trimmed (title, artist)."""
    return (song["title"].lower().strip(), song["artist"].lower().strip())


def _has_text(song, field):
    value = song.get(field) if isinstance(song, dict) else None
    return isinstance(value, str) and bool(value.strip())


def formative_window(birth_year: int) -> Tuple[int, int]:
    """Ages 12-22 inclusive, always 11 years."""
    return birth_year + FORMATIVE_START_AGE, birth_year + FORMATIVE_END_AGE


def dedupe_genres(genres) -> List[str]:
    """Keep first occurrence order, drop blanks and repeats."""
    result = []
    for genre in genres or []:
        genre = str(genre).strip()
        if genre and genre not in result:
            result.append(genre)
    return result


def validate_generation_request(birth_year, birth_month, selected_genres):
    """
    Normalize raw request input.

    Returns (birth_year, birth_month, genres) or raises ValueError with a
    message that can be shown to the user.
    """
    try:
        year = int(birth_year)
    except (TypeError, ValueError):
        raise ValueError("Birth year must be a number")

    if year < MIN_BIRTH_YEAR or year > MAX_BIRTH_YEAR:
        raise ValueError(f"Birth year must be between {MIN_BIRTH_YEAR} and {MAX_BIRTH_YEAR}")

    month = str(birth_month or "").strip().title()
    if month not in MONTHS:
        raise ValueError("Birth month must be a month name, e.g. 'January'")

    if isinstance(selected_genres, str):
        selected_genres = selected_genres.split(",")
    genres = dedupe_genres(selected_genres)
    if not genres:
        raise ValueError("Please select at least one genre")
    if len(genres) > MAX_GENRES:
        raise ValueError(f"Select up to {MAX_GENRES} genres")

    return year, month, genres


class FormativeYearsEngine:
    """
    Picks exactly `songs_per_year` #1 hits for every year in a range.

    Songs come from `fetch_songs(year, genres)` first, then from the decade's
    fallback bucket, then from synthesized "(year Mix)" variants. A song
    (by title/artist) is used at most once per run.
    """

    def __init__(self, fetch_songs: Optional[Callable] = None, rng: Optional[random.Random] = None,
                 catalog: Optional[Dict] = None, songs_per_year: int = TARGET_SONGS_PER_YEAR):
        self.fetch_songs = fetch_songs
        self.rng = rng or random.Random()
        self.catalog = catalog if catalog is not None else DEFAULT_SONGS_BY_DECADE
        self.songs_per_year = songs_per_year

    def select_songs(self, start_year: int, end_year: int, selected_genres: List[str]) -> List[Dict]:
        genres = list(selected_genres)
        logger.info(f"🎵 Fetching #1 hits for years {start_year}-{end_year}, genres: {', '.join(genres)}")
        try:
            return self._select_songs(start_year, end_year, genres)
        except Exception as e:
            logger.error(f"💥 Critical error selecting songs, using random fallback: {e}")
            return self._degraded_songs(start_year, end_year)

    def _select_songs(self, start_year, end_year, genres):
        all_songs = []
        global_seen = set()

        for year in range(start_year, end_year + 1):
            year_songs = []
            year_seen = set()

            # Step 1: database songs for this exact year
            for song in self._fetch_year(year, genres):
                if len(year_songs) >= self.songs_per_year:
                    break
                self._try_add(self._stamp(song, year, keep_weeks=True), year_songs, year_seen, global_seen)
            from_database = len(year_songs)

            # Step 2: decade fallback bucket
            bucket = []
            if len(year_songs) < self.songs_per_year:
                decade, bucket = self._pick_bucket(year)
                candidates = [song for song in bucket if song["genre"] in genres] or list(bucket)
                self.rng.shuffle(candidates)
                logger.debug(f"  Backfilling {year} from {decade} ({len(candidates)} candidates)")

                for song in candidates:
                    if len(year_songs) >= self.songs_per_year:
                        break
                    self._try_add(self._stamp(song, year), year_songs, year_seen, global_seen)

            # Step 3: synthesized variants when the bucket is used up
            if len(year_songs) < self.songs_per_year:
                self._synthesize(year, bucket, year_songs, year_seen, global_seen)

            final_year_songs = year_songs[:self.songs_per_year]
            logger.info(f"  📅 {year}: {len(final_year_songs)} songs ({from_database} from database)")
            all_songs.extend(final_year_songs)

        return all_songs

    def _fetch_year(self, year, genres):
        if self.fetch_songs is None:
            return []
        try:
            candidates = list(self.fetch_songs(year, genres) or [])
        except Exception as e:
            logger.error(f"⚠️ Database fetch failed for year {year}, using fallback: {e}")
            return []
        return [song for song in candidates if _has_text(song, "title") and _has_text(song, "artist")]

    def _pick_bucket(self, year):
        decade = decade_label(year)
        if decade not in self.catalog:
            decade = self.rng.choice(sorted(self.catalog))
        return decade, get_decade_songs(decade, self.catalog)

    def _synthesize(self, year, bucket, year_songs, year_seen, global_seen):
        templates = list(bucket)
        if not templates:
            return
        self.rng.shuffle(templates)

        logger.info(f"  🔧 Creating additional unique songs for year {year}")
        attempt = 0
        while len(year_songs) < self.songs_per_year and attempt < SYNTHESIS_ATTEMPT_CAP:
            template = templates[attempt % len(templates)]
            round_number = attempt // len(templates) + 1
            suffix = f" ({year} Mix)" if round_number == 1 else f" ({year} Mix {round_number})"

            variant = self._stamp(template, year)
            variant["title"] = f"{template['title']}{suffix}"
            self._try_add(variant, year_songs, year_seen, global_seen)
            attempt += 1

    def _degraded_songs(self, start_year, end_year):
        pool = all_fallback_songs(self.catalog) or all_fallback_songs()
        songs = []
        for year in range(start_year, end_year + 1):
            for _ in range(self.songs_per_year):
                songs.append(self._stamp(self.rng.choice(pool), year))
        return songs

    @staticmethod
    def _try_add(song, year_songs, year_seen, global_seen):
        key = song_key(song)
        if key in year_seen or key in global_seen:
            return False
        year_seen.add(key)
        global_seen.add(key)
        year_songs.append(song)
        return True

    def _stamp(self, song, year, keep_weeks=False):
        # week_entered / weeks_at_one are display-only
        stamped = dict(song)
        stamped["year"] = year
        stamped["peak"] = 1
        if not (keep_weeks and stamped.get("week_entered")):
            stamped["week_entered"] = f"Week {self.rng.randint(1, 52)}, {year}"
        if not (keep_weeks and stamped.get("weeks_at_one")):
            stamped["weeks_at_one"] = self.rng.randint(1, 7)
        return stamped


def get_number_one_hits_by_year_and_genre(start_year: int, end_year: int, selected_genres: List[str],
                                         fetch_songs: Optional[Callable] = None,
                                         rng: Optional[random.Random] = None) -> List[Dict]:
    """Exactly 10 songs per year in [start_year, end_year]; never raises."""
    engine = FormativeYearsEngine(fetch_songs=fetch_songs, rng=rng)
    return engine.select_songs(start_year, end_year, selected_genres)


def group_songs_by_year(songs: List[Dict], start_year: int, end_year: int) -> Dict[int, List[Dict]]:
    songs_by_year = {year: [] for year in range(start_year, end_year + 1)}
    for song in songs:
        if song.get("year") in songs_by_year:
            songs_by_year[song["year"]].append(song)
    return songs_by_year


def generate_playlist(birth_year: int, birth_month: str, selected_genres: List[str],
                      fetch_songs: Optional[Callable] = None,
                      rng: Optional[random.Random] = None) -> Dict:
    """
    Build the PlaylistResult for a birth year: the 11 formative years
    (ages 12-22) with 10 #1 hits each.
    """
    start_year, end_year = formative_window(birth_year)
    genres = dedupe_genres(selected_genres)
    expected = (end_year - start_year + 1) * TARGET_SONGS_PER_YEAR

    logger.info("=== PLAYLIST GENERATION ===")
    logger.info(f"🎂 Birth year: {birth_year} ({birth_month})")
    logger.info(f"📅 Formative years: {start_year}-{end_year} (ages {FORMATIVE_START_AGE}-{FORMATIVE_END_AGE})")
    logger.info(f"🎼 Selected genres: {', '.join(genres)}")

    songs = get_number_one_hits_by_year_and_genre(start_year, end_year, genres, fetch_songs=fetch_songs, rng=rng)
    songs_by_year = group_songs_by_year(songs, start_year, end_year)

    if len(songs) != expected:
        logger.warning(f"⚠️ Expected {expected} songs but got {len(songs)}")
    else:
        logger.info(f"✅ Generated {len(songs)} Billboard #1 hits")

    return {
        "birth_year": birth_year,
        "birth_month": birth_month,
        "formative_years": f"{start_year}-{end_year}",
        "selected_genres": genres,
        "songs": songs,
        "songs_by_year": songs_by_year,
    }
