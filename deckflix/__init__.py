"""DeckFlix - browse addon catalogs and play torrent or direct streams from the terminal."""

__version__ = "0.3.0"
