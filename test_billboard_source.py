import unittest
from unittest.mock import MagicMock, patch


def _doc(data):
    doc = MagicMock()
    doc.to_dict.return_value = data
    return doc


class TestFetchSongsFromDatabase(unittest.TestCase):
    """Firestore song lookups"""

    def setUp(self):
        from billboard_source import fetch_songs_from_database
        self.fetch_songs_from_database = fetch_songs_from_database
        self.db = MagicMock()
        self.query = self.db.collection.return_value.where.return_value.limit.return_value

    def test_filters_invalid_and_unselected_records(self):
        self.query.stream.return_value = [
            _doc({"title": " Vogue ", "artist": "Madonna", "genre": "Pop", "release_year": 1990, "weeks_at_one": 3}),
            _doc({"title": "Black Hole Sun", "artist": "Soundgarden", "genre": "Rock", "release_year": 1990}),
            _doc({"title": "No Artist", "artist": "", "genre": "Pop", "release_year": 1990}),
            _doc({"title": "   ", "artist": "Blank", "genre": "Pop", "release_year": 1990}),
            _doc(None),
        ]

        songs = self.fetch_songs_from_database(1990, ["Pop"], db=self.db)

        self.db.collection.assert_called_once_with("songs")
        self.db.collection.return_value.where.assert_called_once_with("release_year", "==", 1990)
        self.db.collection.return_value.where.return_value.limit.assert_called_once_with(20)
        self.assertEqual(songs, [{
            "title": "Vogue",
            "artist": "Madonna",
            "genre": "Pop",
            "peak": 1,
            "week_entered": "",
            "weeks_at_one": 3,
            "year": 1990,
        }])

    def test_bad_weeks_at_one_defaults_to_one(self):
        self.query.stream.return_value = [
            _doc({"title": "Hey Ya!", "artist": "OutKast", "genre": "Hip-Hop", "release_year": 2003,
                  "weeks_at_one": "lots"}),
        ]
        songs = self.fetch_songs_from_database(2003, ["Hip-Hop"], db=self.db)
        self.assertEqual(songs[0]["weeks_at_one"], 1)

    def test_errors_propagate(self):
        self.query.stream.side_effect = RuntimeError("permission denied")
        with self.assertRaises(RuntimeError):
            self.fetch_songs_from_database(1990, ["Pop"], db=self.db)


class TestGetAllGenres(unittest.TestCase):

    def setUp(self):
        from billboard_source import get_all_genres
        from fallback_catalog import DEFAULT_GENRES
        self.get_all_genres = get_all_genres
        self.default_genres = DEFAULT_GENRES

    def test_reads_genre_names(self):
        db = MagicMock()
        db.collection.return_value.limit.return_value.stream.return_value = [
            _doc({"name": "Pop"}), _doc({"name": "Rock"}), _doc({"name": "Pop"}), _doc({}),
        ]
        self.assertEqual(self.get_all_genres(db=db), ["Pop", "Rock"])
        db.collection.assert_called_once_with("genres")

    def test_empty_collection_uses_defaults(self):
        db = MagicMock()
        db.collection.return_value.limit.return_value.stream.return_value = []
        self.assertEqual(self.get_all_genres(db=db), self.default_genres)

    def test_unavailable_database_uses_defaults(self):
        with patch("billboard_source.get_db", side_effect=Exception("no credentials")):
            self.assertEqual(self.get_all_genres(), self.default_genres)


if __name__ == "__main__":
    unittest.main()
