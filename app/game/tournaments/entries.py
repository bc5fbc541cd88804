from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.game.sessions.types import TournamentEntry

logger = structlog.get_logger("app.game.tournaments.entries")

PAID_PARTICIPANT_STATUSES = frozenset({"NOT_REQUIRED", "SUCCESS"})


class TournamentEntryService:
    @staticmethod
    async def get_status(session: AsyncSession, *, user_id: int, tournament_id: UUID) -> TournamentEntry:
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        if tournament is None or tournament.status != "ACTIVE":
            return TournamentEntry(exists=False)
        participant = await TournamentParticipantsRepo.get(
            session,
            tournament_id=tournament_id,
            user_id=user_id,
        )
        if participant is None:
            return TournamentEntry(exists=True, name=tournament.name)
        return TournamentEntry(
            exists=True,
            name=tournament.name,
            joined=True,
            payment_complete=(
                tournament.payment_type == "FREE"
                or participant.payment_status in PAID_PARTICIPANT_STATUSES
            ),
            uses_tokens=tournament.uses_tokens,
            tokens_remaining=participant.tokens_remaining,
        )

    @staticmethod
    async def deduct_token(session: AsyncSession, *, user_id: int, tournament_id: UUID) -> bool:
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        if tournament is None:
            return False
        remaining = await TournamentParticipantsRepo.decrement_token(
            session,
            tournament_id=tournament_id,
            user_id=user_id,
            amount=max(1, tournament.tokens_per_entry),
        )
        if remaining is None:
            logger.info("tournament_token_deduct_rejected", user_id=user_id, tournament_id=str(tournament_id))
            return False
        return True

    @staticmethod
    async def refund_token(session: AsyncSession, *, user_id: int, tournament_id: UUID) -> bool:
        tournament = await TournamentsRepo.get_by_id(session, tournament_id)
        if tournament is None:
            return False
        remaining = await TournamentParticipantsRepo.add_tokens(
            session,
            tournament_id=tournament_id,
            user_id=user_id,
            amount=max(1, tournament.tokens_per_entry),
        )
        return remaining is not None

    @staticmethod
    async def record_attempt(
        session: AsyncSession,
        *,
        user_id: int,
        tournament_id: UUID,
        score: int,
    ) -> bool:
        updated = await TournamentParticipantsRepo.record_attempt(
            session,
            tournament_id=tournament_id,
            user_id=user_id,
            score=score,
        )
        return updated > 0


class DbTournamentProvider:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_status(self, user_id: int, tournament_id: UUID) -> TournamentEntry:
        async with self._session_factory() as session:
            return await TournamentEntryService.get_status(session, user_id=user_id, tournament_id=tournament_id)

    async def deduct_token(self, user_id: int, tournament_id: UUID) -> bool:
        async with self._session_factory.begin() as session:
            return await TournamentEntryService.deduct_token(session, user_id=user_id, tournament_id=tournament_id)

    async def refund_token(self, user_id: int, tournament_id: UUID) -> None:
        async with self._session_factory.begin() as session:
            refunded = await TournamentEntryService.refund_token(session, user_id=user_id, tournament_id=tournament_id)
        logger.info(
            "tournament_token_refunded",
            user_id=user_id,
            tournament_id=str(tournament_id),
            refunded=refunded,
        )

    async def record_attempt(
        self,
        *,
        user_id: int,
        tournament_id: UUID,
        session_id: UUID,
        score: int,
        questions_answered: int,
    ) -> None:
        async with self._session_factory.begin() as session:
            recorded = await TournamentEntryService.record_attempt(
                session,
                user_id=user_id,
                tournament_id=tournament_id,
                score=score,
            )
        logger.info(
            "tournament_attempt_recorded",
            user_id=user_id,
            tournament_id=str(tournament_id),
            session_id=str(session_id),
            score=score,
            questions_answered=questions_answered,
            recorded=recorded,
        )
