from app.db.models.game_sessions import GameSession
from app.db.models.prize_payouts import PrizePayout
from app.db.models.questions import Question
from app.db.models.streak_state import StreakState
from app.db.models.tournament_participants import TournamentParticipant
from app.db.models.tournaments import Tournament
from app.db.models.users import User

__all__ = [
    "GameSession",
    "PrizePayout",
    "Question",
    "StreakState",
    "Tournament",
    "TournamentParticipant",
    "User",
]
