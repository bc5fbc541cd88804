from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.repo.users_repo import UsersRepo
from app.game.sessions.types import Channel, Player


class UserOnboardingService:
    @staticmethod
    async def ensure_player(
        session: AsyncSession,
        *,
        channel: Channel,
        address: str,
        full_name: str | None,
    ) -> Player:
        now_utc = datetime.now(timezone.utc)
        user = await UsersRepo.get_by_channel_address(session, channel=channel.value, address=address)
        if user is None:
            user = await UsersRepo.create(
                session,
                channel=channel.value,
                address=address,
                full_name=full_name,
                now_utc=now_utc,
            )
        else:
            await UsersRepo.touch_last_active(session, user.id, now_utc)
        return Player(
            user_id=user.id,
            channel=channel,
            address=address,
            display_name=user.full_name or full_name,
        )


async def resolve_player(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    channel: Channel,
    address: str,
    full_name: str | None,
) -> Player:
    try:
        async with session_factory.begin() as session:
            return await UserOnboardingService.ensure_player(
                session,
                channel=channel,
                address=address,
                full_name=full_name,
            )
    except IntegrityError:
        # concurrent first contact from the same address
        async with session_factory.begin() as session:
            return await UserOnboardingService.ensure_player(
                session,
                channel=channel,
                address=address,
                full_name=full_name,
            )
