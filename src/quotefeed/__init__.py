"""Quote library with a curated author roster, shuffled feeds and widget snapshots."""

from .app import QuoteReader
from .config import ReaderConfig, Settings
from .models import Author, Quote, SavedQueue, Work

__all__ = ["QuoteReader", "ReaderConfig", "Settings", "Author", "Quote", "SavedQueue", "Work"]
