# Curated Billboard #1 hits used when the song database can't fill a year.
# Each entry: (title, artist, genre, weeks_at_one). Year is stamped at generation time.

DEFAULT_GENRES = ["Rock", "Pop", "Hip-Hop", "R&B", "Country", "Alternative", "Dance", "Folk", "Metal", "Soul"]

_DECADE_HITS = {
    "1960s": [
        ("I Want to Hold Your Hand", "The Beatles", "Rock", 7),
        ("Satisfaction", "The Rolling Stones", "Rock", 4),
        ("Good Vibrations", "The Beach Boys", "Rock", 1),
        ("I Heard It Through the Grapevine", "Marvin Gaye", "R&B", 7),
        ("Respect", "Aretha Franklin", "R&B", 2),
        ("Light My Fire", "The Doors", "Rock", 3),
        ("Hey Jude", "The Beatles", "Rock", 9),
        ("I Got You (I Feel Good)", "James Brown", "R&B", 1),
        ("Strangers in the Night", "Frank Sinatra", "Pop", 1),
        ("Sugar, Sugar", "The Archies", "Pop", 4),
        ("I'm a Believer", "The Monkees", "Pop", 7),
        ("These Boots Are Made for Walkin'", "Nancy Sinatra", "Pop", 1),
        ("Downtown", "Petula Clark", "Pop", 2),
        ("My Girl", "The Temptations", "R&B", 1),
        ("Everyday People", "Sly & the Family Stone", "R&B", 1),
    ],
    "1970s": [
        ("Stairway to Heaven", "Led Zeppelin", "Rock", 1),
        ("Hotel California", "Eagles", "Rock", 1),
        ("Bohemian Rhapsody", "Queen", "Rock", 9),
        ("Superstition", "Stevie Wonder", "R&B", 1),
        ("Let's Get It On", "Marvin Gaye", "R&B", 2),
        ("Dancing Queen", "ABBA", "Pop", 1),
        ("Imagine", "John Lennon", "Pop", 1),
        ("Stayin' Alive", "Bee Gees", "Disco", 4),
        ("I Will Survive", "Gloria Gaynor", "Disco", 3),
        ("Dream On", "Aerosmith", "Rock", 1),
        ("Let It Be", "The Beatles", "Pop", 2),
        ("Your Song", "Elton John", "Pop", 1),
        ("Midnight Train to Georgia", "Gladys Knight & the Pips", "R&B", 2),
        ("Papa Was a Rollin' Stone", "The Temptations", "R&B", 1),
        ("Le Freak", "Chic", "Disco", 7),
    ],
    "1980s": [
        ("With or Without You", "U2", "Rock", 3),
        ("Livin' on a Prayer", "Bon Jovi", "Rock", 4),
        ("Sweet Child O' Mine", "Guns N' Roses", "Rock", 2),
        ("Billie Jean", "Michael Jackson", "Pop", 7),
        ("Like a Virgin", "Madonna", "Pop", 6),
        ("When Doves Cry", "Prince", "R&B", 5),
        ("Every Breath You Take", "The Police", "Rock", 8),
        ("Sweet Dreams (Are Made of This)", "Eurythmics", "Pop", 1),
        ("Take On Me", "a-ha", "Pop", 1),
        ("Girls Just Want to Have Fun", "Cyndi Lauper", "Pop", 2),
        ("Thriller", "Michael Jackson", "Pop", 1),
        ("Beat It", "Michael Jackson", "Pop", 3),
        ("Sexual Healing", "Marvin Gaye", "R&B", 1),
        ("Jump", "Van Halen", "Rock", 5),
        ("Blue Monday", "New Order", "Dance", 1),
    ],
    "1990s": [
        ("Smells Like Teen Spirit", "Nirvana", "Rock", 1),
        ("Wonderwall", "Oasis", "Rock", 1),
        ("Vogue", "Madonna", "Pop", 3),
        ("...Baby One More Time", "Britney Spears", "Pop", 2),
        ("Gangsta's Paradise", "Coolio", "Hip-Hop", 3),
        ("Waterfalls", "TLC", "R&B", 7),
        ("No Scrubs", "TLC", "R&B", 4),
        ("Black Hole Sun", "Soundgarden", "Rock", 1),
        ("Under the Bridge", "Red Hot Chili Peppers", "Rock", 2),
        ("Wannabe", "Spice Girls", "Pop", 4),
        ("I Will Always Love You", "Whitney Houston", "Pop", 14),
        ("Nuthin' But a 'G' Thang", "Dr. Dre", "Hip-Hop", 1),
        ("Killing Me Softly", "Fugees", "Hip-Hop", 1),
        ("End of the Road", "Boyz II Men", "R&B", 13),
        ("I'll Make Love to You", "Boyz II Men", "R&B", 14),
    ],
    "2000s": [
        ("Boulevard of Broken Dreams", "Green Day", "Rock", 1),
        ("Numb", "Linkin Park", "Rock", 1),
        ("Toxic", "Britney Spears", "Pop", 1),
        ("Since U Been Gone", "Kelly Clarkson", "Pop", 1),
        ("In Da Club", "50 Cent", "Hip-Hop", 9),
        ("Hey Ya!", "OutKast", "Hip-Hop", 9),
        ("Crazy In Love", "Beyoncé ft. Jay-Z", "R&B", 8),
        ("Yeah!", "Usher ft. Lil Jon & Ludacris", "R&B", 12),
        ("How You Remind Me", "Nickelback", "Rock", 4),
        ("In the End", "Linkin Park", "Rock", 1),
        ("Poker Face", "Lady Gaga", "Pop", 1),
        ("I Gotta Feeling", "The Black Eyed Peas", "Pop", 14),
        ("Lose Yourself", "Eminem", "Hip-Hop", 12),
        ("Gold Digger", "Kanye West ft. Jamie Foxx", "Hip-Hop", 10),
        ("Irreplaceable", "Beyoncé", "R&B", 10),
    ],
    "2010s": [
        ("Rolling in the Deep", "Adele", "Pop", 7),
        ("Uptown Funk", "Mark Ronson ft. Bruno Mars", "Pop", 14),
        ("Old Town Road", "Lil Nas X ft. Billy Ray Cyrus", "Hip-Hop", 19),
        ("Sicko Mode", "Travis Scott", "Hip-Hop", 1),
        ("Blurred Lines", "Robin Thicke ft. T.I. & Pharrell", "R&B", 12),
        ("Love On Top", "Beyoncé", "R&B", 1),
        ("Somebody That I Used to Know", "Gotye ft. Kimbra", "Alternative", 8),
        ("Radioactive", "Imagine Dragons", "Alternative", 1),
        ("Shape of You", "Ed Sheeran", "Pop", 12),
        ("Despacito", "Luis Fonsi & Daddy Yankee ft. Justin Bieber", "Pop", 16),
        ("God's Plan", "Drake", "Hip-Hop", 11),
        ("Hotline Bling", "Drake", "Hip-Hop", 1),
        ("Earned It", "The Weeknd", "R&B", 3),
        ("Starboy", "The Weeknd ft. Daft Punk", "R&B", 1),
        ("Take Me to Church", "Hozier", "Alternative", 1),
    ],
    "2020s": [
        ("Blinding Lights", "The Weeknd", "Pop", 4),
        ("Levitating", "Dua Lipa", "Pop", 1),
        ("Montero (Call Me By Your Name)", "Lil Nas X", "Hip-Hop", 1),
        ("Savage", "Megan Thee Stallion ft. Beyoncé", "Hip-Hop", 1),
        ("Leave The Door Open", "Silk Sonic", "R&B", 2),
        ("Peaches", "Justin Bieber ft. Daniel Caesar & Giveon", "R&B", 1),
        ("Heat Waves", "Glass Animals", "Alternative", 5),
        ("Good 4 U", "Olivia Rodrigo", "Alternative", 1),
        ("Watermelon Sugar", "Harry Styles", "Pop", 1),
        ("Dynamite", "BTS", "Pop", 3),
        ("Butter", "BTS", "Pop", 10),
        ("WAP", "Cardi B ft. Megan Thee Stallion", "Hip-Hop", 4),
        ("Mood", "24kGoldn ft. iann dior", "Hip-Hop", 8),
        ("Essence", "Wizkid ft. Tems", "R&B", 1),
        ("Stay", "The Kid LAROI & Justin Bieber", "Alternative", 7),
    ],
}


def _template(title, artist, genre, weeks_at_one):
    return {
        "title": title,
        "artist": artist,
        "genre": genre,
        "peak": 1,
        "week_entered": "",
        "weeks_at_one": weeks_at_one,
        "year": 0,
    }


DEFAULT_SONGS_BY_DECADE = {
    decade: [_template(*entry) for entry in entries]
    for decade, entries in _DECADE_HITS.items()
}


def decade_label(year):
    """1987 -> '1980s'"""
    return f"{year // 10 * 10}s"


def get_decade_songs(decade, catalog=None):
    """Return fresh copies of a decade bucket's templates (empty list if missing)."""
    catalog = DEFAULT_SONGS_BY_DECADE if catalog is None else catalog
    return [dict(song) for song in catalog.get(decade, [])]


def all_fallback_songs(catalog=None):
    """Union of every bucket, in decade order."""
    catalog = DEFAULT_SONGS_BY_DECADE if catalog is None else catalog
    songs = []
    for decade in sorted(catalog):
        songs.extend(dict(song) for song in catalog[decade])
    return songs
