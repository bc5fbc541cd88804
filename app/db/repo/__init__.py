from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.repo.prize_payouts_repo import PrizePayoutsRepo
from app.db.repo.questions_repo import QuestionsRepo
from app.db.repo.streak_repo import StreakRepo
from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.repo.users_repo import UsersRepo

__all__ = [
    "GameSessionsRepo",
    "PrizePayoutsRepo",
    "QuestionsRepo",
    "StreakRepo",
    "TournamentParticipantsRepo",
    "TournamentsRepo",
    "UsersRepo",
]
