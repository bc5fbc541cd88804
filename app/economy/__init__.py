from app.economy.entries.service import EntriesService
from app.economy.streak.service import StreakService

__all__ = [
    "EntriesService",
    "StreakService",
]
