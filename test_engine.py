#!/usr/bin/env python3
"""
Tests for the formative-years song selection engine
Run with: python -m unittest test_engine
"""

import random
import re
import unittest
from unittest.mock import patch


def _db_song(title, artist, genre="Pop", weeks_at_one=2):
    return {
        "title": title,
        "artist": artist,
        "genre": genre,
        "peak": 1,
        "week_entered": "",
        "weeks_at_one": weeks_at_one,
        "year": 0,
    }


class TestFormativeWindow(unittest.TestCase):
    """Window arithmetic and request validation"""

    def setUp(self):
        from timemachine_engine import formative_window, validate_generation_request, dedupe_genres
        self.formative_window = formative_window
        self.validate = validate_generation_request
        self.dedupe_genres = dedupe_genres

    def test_window_is_ages_12_to_22(self):
        self.assertEqual(self.formative_window(1985), (1997, 2007))
        self.assertEqual(self.formative_window(2010), (2022, 2032))

    def test_validation_normalizes_input(self):
        year, month, genres = self.validate("1985", "march", ["Pop", "Rock", "Pop", " "])
        self.assertEqual(year, 1985)
        self.assertEqual(month, "March")
        self.assertEqual(genres, ["Pop", "Rock"])

    def test_validation_accepts_comma_separated_genres(self):
        _, _, genres = self.validate(1990, "July", "Pop, Hip-Hop")
        self.assertEqual(genres, ["Pop", "Hip-Hop"])

    def test_validation_rejects_out_of_range_year(self):
        with self.assertRaises(ValueError):
            self.validate(1959, "March", ["Pop"])
        with self.assertRaises(ValueError):
            self.validate(2011, "March", ["Pop"])
        with self.assertRaises(ValueError):
            self.validate("nineteen", "March", ["Pop"])

    def test_validation_rejects_bad_month(self):
        with self.assertRaises(ValueError):
            self.validate(1985, "Smarch", ["Pop"])

    def test_validation_genre_count(self):
        with self.assertRaises(ValueError):
            self.validate(1985, "March", [])
        with self.assertRaises(ValueError):
            self.validate(1985, "March", ["Pop", "Rock", "R&B", "Country", "Metal", "Soul"])
        _, _, genres = self.validate(1985, "March", ["Pop", "Rock", "R&B", "Country", "Metal"])
        self.assertEqual(len(genres), 5)


class TestFallbackCatalog(unittest.TestCase):

    def setUp(self):
        from fallback_catalog import DEFAULT_SONGS_BY_DECADE, decade_label, get_decade_songs
        self.catalog = DEFAULT_SONGS_BY_DECADE
        self.decade_label = decade_label
        self.get_decade_songs = get_decade_songs

    def test_decade_label(self):
        self.assertEqual(self.decade_label(1987), "1980s")
        self.assertEqual(self.decade_label(2000), "2000s")

    def test_every_bucket_has_enough_templates(self):
        for decade, songs in self.catalog.items():
            self.assertGreaterEqual(len(songs), 10, decade)

    def test_decade_songs_are_copies(self):
        songs = self.get_decade_songs("1990s")
        songs[0]["title"] = "Changed"
        self.assertNotEqual(self.catalog["1990s"][0]["title"], "Changed")

    def test_missing_decade_is_empty(self):
        self.assertEqual(self.get_decade_songs("1900s"), [])


class TestPlaylistGeneration(unittest.TestCase):
    """Core selection properties"""

    def setUp(self):
        from timemachine_engine import generate_playlist, song_key, FormativeYearsEngine
        self.generate_playlist = generate_playlist
        self.song_key = song_key
        self.Engine = FormativeYearsEngine

    def assertWellFormed(self, result, start_year, end_year):
        songs = result["songs"]
        years = end_year - start_year + 1
        self.assertEqual(len(songs), years * 10)

        keys = [self.song_key(song) for song in songs]
        self.assertEqual(len(keys), len(set(keys)), "duplicate title/artist in playlist")

        for year in range(start_year, end_year + 1):
            self.assertEqual(len(result["songs_by_year"][year]), 10)

        for song in songs:
            self.assertEqual(song["peak"], 1)
            self.assertTrue(start_year <= song["year"] <= end_year)
            self.assertGreaterEqual(song["weeks_at_one"], 1)

    def test_no_database_fills_every_year(self):
        result = self.generate_playlist(1985, "March", ["Pop", "Rock"], rng=random.Random(1))
        self.assertEqual(result["formative_years"], "1997-2007")
        self.assertEqual(result["birth_year"], 1985)
        self.assertEqual(result["birth_month"], "March")
        self.assertEqual(result["selected_genres"], ["Pop", "Rock"])
        self.assertWellFormed(result, 1997, 2007)

    def test_empty_database_uses_fallback(self):
        result = self.generate_playlist(1985, "March", ["Pop"], fetch_songs=lambda year, genres: [],
                                        rng=random.Random(2))
        self.assertWellFormed(result, 1997, 2007)

    def test_genre_without_fallback_songs_still_fills(self):
        # no Metal in the fallback catalog
        result = self.generate_playlist(1985, "March", ["Metal"], rng=random.Random(3))
        self.assertWellFormed(result, 1997, 2007)

    def test_database_errors_are_swallowed(self):
        def failing_fetch(year, genres):
            raise RuntimeError("database offline")

        result = self.generate_playlist(1990, "June", ["Hip-Hop"], fetch_songs=failing_fetch,
                                        rng=random.Random(4))
        self.assertWellFormed(result, 2002, 2012)

    def test_lazy_source_failing_mid_iteration_only_affects_that_year(self):
        def lazy_fetch(year, genres):
            yield _db_song(f"Hit {year}", "Lazy Artist")
            if year == 2000:
                raise RuntimeError("cursor lost")

        with patch.object(self.Engine, "_degraded_songs") as degraded:
            result = self.generate_playlist(1985, "March", ["Pop"], fetch_songs=lazy_fetch,
                                            rng=random.Random(12))
        degraded.assert_not_called()
        self.assertWellFormed(result, 1997, 2007)
        self.assertEqual(result["songs_by_year"][1999][0]["title"], "Hit 1999")
        self.assertNotIn("Hit 2000", [song["title"] for song in result["songs_by_year"][2000]])

    def test_non_text_fields_are_dropped(self):
        def fetch(year, genres):
            return [
                _db_song(1999, "Numeric Title"),
                _db_song("Numeric Artist", 42),
                _db_song("   ", "Blank Title"),
                _db_song(f"Real Hit {year}", "Real Artist"),
            ]

        with patch.object(self.Engine, "_degraded_songs") as degraded:
            result = self.generate_playlist(1985, "March", ["Pop"], fetch_songs=fetch, rng=random.Random(13))
        degraded.assert_not_called()
        self.assertWellFormed(result, 1997, 2007)
        for year, songs in result["songs_by_year"].items():
            self.assertEqual(songs[0]["title"], f"Real Hit {year}")

    def test_full_database_year_skips_fallback(self):
        def fetch(year, genres):
            return [_db_song(f"Hit {year}-{i}", f"Artist {i}") for i in range(12)]

        result = self.generate_playlist(1985, "March", ["Pop"], fetch_songs=fetch, rng=random.Random(5))
        self.assertWellFormed(result, 1997, 2007)
        for year, songs in result["songs_by_year"].items():
            self.assertEqual([song["title"] for song in songs], [f"Hit {year}-{i}" for i in range(10)])
            # weeks_at_one from the database is kept
            self.assertTrue(all(song["weeks_at_one"] == 2 for song in songs))

    def test_partial_database_year_is_backfilled(self):
        def fetch(year, genres):
            if year == 1997:
                return [
                    _db_song("Database Hit", "Someone"),
                    _db_song("Database Hit", "Someone"),
                    _db_song("", "No Title"),
                    {"title": "No Artist"},
                ]
            return []

        result = self.generate_playlist(1985, "March", ["Pop"], fetch_songs=fetch, rng=random.Random(6))
        self.assertWellFormed(result, 1997, 2007)
        titles_1997 = [song["title"] for song in result["songs_by_year"][1997]]
        self.assertEqual(titles_1997.count("Database Hit"), 1)
        self.assertEqual(titles_1997[0], "Database Hit")

    def test_window_past_catalog_still_fills(self):
        # 2030-2032 have no decade bucket
        result = self.generate_playlist(2010, "December", ["Pop"], rng=random.Random(11))
        self.assertEqual(result["formative_years"], "2022-2032")
        self.assertWellFormed(result, 2022, 2032)

    def test_same_seed_same_playlist(self):
        first = self.generate_playlist(1978, "May", ["R&B", "Pop"], rng=random.Random(42))
        second = self.generate_playlist(1978, "May", ["R&B", "Pop"], rng=random.Random(42))
        self.assertEqual(first, second)

    def test_week_entered_format(self):
        result = self.generate_playlist(2000, "April", ["Pop"], rng=random.Random(7))
        for song in result["songs"]:
            self.assertRegex(song["week_entered"], rf"^Week ([1-9]|[1-4][0-9]|5[0-2]), {song['year']}$")

    def test_synthesized_variants_when_bucket_runs_out(self):
        from fallback_catalog import DEFAULT_SONGS_BY_DECADE
        catalog = {"1990s": [dict(song) for song in DEFAULT_SONGS_BY_DECADE["1990s"][:3]]}
        engine = self.Engine(catalog=catalog, rng=random.Random(8))

        songs = engine.select_songs(1995, 1995, ["Rock"])
        self.assertEqual(len(songs), 10)
        titles = [song["title"] for song in songs]
        self.assertEqual(len(set(titles)), 10)
        self.assertTrue(any(title.endswith("(1995 Mix)") for title in titles))
        self.assertTrue(any(re.search(r"\(1995 Mix 3\)$", title) for title in titles))

    def test_missing_decade_uses_another_bucket(self):
        from fallback_catalog import DEFAULT_SONGS_BY_DECADE
        catalog = {"1980s": DEFAULT_SONGS_BY_DECADE["1980s"]}
        engine = self.Engine(catalog=catalog, rng=random.Random(9))

        songs = engine.select_songs(1955, 1955, ["Pop"])
        self.assertEqual(len(songs), 10)
        self.assertTrue(all(song["year"] == 1955 for song in songs))

    def test_unexpected_failure_degrades_to_random_fallback(self):
        from timemachine_engine import get_number_one_hits_by_year_and_genre

        with patch("timemachine_engine.get_decade_songs", side_effect=RuntimeError("boom")):
            songs = get_number_one_hits_by_year_and_genre(1997, 2007, ["Pop"], rng=random.Random(10))

        self.assertEqual(len(songs), 110)
        for year in range(1997, 2008):
            self.assertEqual(len([song for song in songs if song["year"] == year]), 10)


if __name__ == "__main__":
    unittest.main()
