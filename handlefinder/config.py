"""Runtime settings, read from the environment."""

import os

LICHESS_TOKEN = os.environ.get("LICHESS_TOKEN")

CHESSCOM_API = os.environ.get("CHESSCOM_API", "https://api.chess.com/pub")
LICHESS_API = os.environ.get("LICHESS_API", "https://lichess.org/api")
FIDE_PROFILE_URL = os.environ.get("FIDE_PROFILE_URL", "https://ratings.fide.com/profile")

HTTP_TIMEOUT = float(os.environ.get("FINDER_HTTP_TIMEOUT", "30"))
# Concurrent requests per platform
MAX_CONCURRENCY = int(os.environ.get("FINDER_MAX_CONCURRENCY", "8" if LICHESS_TOKEN else "4"))
USER_AGENT = os.environ.get("FINDER_USER_AGENT", "handlefinder/0.1")
GAMES_PER_PLAYER = int(os.environ.get("FINDER_GAMES_PER_PLAYER", "100"))

# Shorter patterns are never sent to a platform.
MIN_HANDLE_LENGTH = 3

PLATFORMS = ("chess.com", "lichess")
