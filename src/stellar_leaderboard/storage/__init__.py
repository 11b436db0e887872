from stellar_leaderboard.storage.sqlite import SQLiteWatchListStore

__all__ = ["SQLiteWatchListStore"]
