"""SQLAlchemy models for Royally Tuned.

All models are imported here so that ``Base.metadata`` knows about every
table. If you add a new model, import it in this file.
"""

from royally_tuned.models.artist import Artist, ArtistManager
from royally_tuned.models.profile import Profile
from royally_tuned.models.spotify_token import SpotifyToken
from royally_tuned.models.stream_calculation import StreamCalculation
from royally_tuned.models.track import Track

__all__ = [
    "Artist",
    "ArtistManager",
    "Profile",
    "SpotifyToken",
    "StreamCalculation",
    "Track",
]
