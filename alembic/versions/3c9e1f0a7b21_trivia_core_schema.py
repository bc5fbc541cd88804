"""trivia_core_schema

Revision ID: 3c9e1f0a7b21
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3c9e1f0a7b21"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("address", sa.String(64), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'ACTIVE'")),
        sa.Column("games_remaining", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_games_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_winnings", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("highest_question_reached", sa.SmallInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('ACTIVE','BLOCKED','DELETED')", name="ck_users_status"),
        sa.CheckConstraint("channel IN ('TELEGRAM','WHATSAPP')", name="ck_users_channel"),
        sa.CheckConstraint("games_remaining >= 0", name="ck_users_games_remaining_non_negative"),
        sa.CheckConstraint(
            "highest_question_reached >= 0 AND highest_question_reached <= 16",
            name="ck_users_highest_question_range",
        ),
    )
    op.create_index("uq_users_channel_address", "users", ["channel", "address"], unique=True)
    op.create_index("idx_users_last_active", "users", ["last_active_at"])

    op.create_table(
        "tournaments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("sponsor_name", sa.String(128), nullable=True),
        sa.Column("payment_type", sa.String(8), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("uses_tokens", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("tokens_per_entry", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("payment_type IN ('FREE','PAID')", name="ck_tournaments_payment_type"),
        sa.CheckConstraint(
            "status IN ('UPCOMING','ACTIVE','COMPLETED','CANCELLED')",
            name="ck_tournaments_status",
        ),
        sa.CheckConstraint("tokens_per_entry >= 0", name="ck_tournaments_tokens_per_entry_non_negative"),
    )
    op.create_index("idx_tournaments_status_ends", "tournaments", ["status", "ends_at"])

    op.create_table(
        "questions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("option_a", sa.Text(), nullable=False),
        sa.Column("option_b", sa.Text(), nullable=False),
        sa.Column("option_c", sa.Text(), nullable=False),
        sa.Column("option_d", sa.Text(), nullable=False),
        sa.Column("correct_answer", sa.String(1), nullable=False),
        sa.Column("difficulty", sa.SmallInteger(), nullable=False),
        sa.Column("game_mode", sa.String(16), nullable=False, server_default=sa.text("'REGULAR'")),
        sa.Column("tournament_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("fun_fact", sa.Text(), nullable=True),
        sa.Column("times_asked", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("times_correct", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("correct_answer IN ('A','B','C','D')", name="ck_questions_correct_answer"),
        sa.CheckConstraint("difficulty >= 1 AND difficulty <= 15", name="ck_questions_difficulty_range"),
        sa.CheckConstraint(
            "game_mode IN ('PRACTICE','REGULAR','TOURNAMENT')",
            name="ck_questions_game_mode",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
    )
    op.create_index("idx_questions_mode_difficulty", "questions", ["game_mode", "difficulty", "is_active"])
    op.create_index("idx_questions_tournament", "questions", ["tournament_id"])

    op.create_table(
        "game_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("session_key", sa.String(64), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("game_kind", sa.String(16), nullable=False),
        sa.Column("tournament_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("entry_consumed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("recipient", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("current_question", sa.SmallInteger(), nullable=False),
        sa.Column("current_score", sa.Integer(), nullable=False),
        sa.Column("current_question_id", sa.BigInteger(), nullable=True),
        sa.Column(
            "lifeline_eliminate_two_used",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "lifeline_replace_question_used",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("final_score", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("questions_answered", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint(
            "game_kind IN ('PRACTICE','REGULAR','TOURNAMENT')",
            name="ck_game_sessions_game_kind",
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE','COMPLETED','CANCELLED')",
            name="ck_game_sessions_status",
        ),
        sa.CheckConstraint("channel IN ('TELEGRAM','WHATSAPP')", name="ck_game_sessions_channel"),
        sa.CheckConstraint(
            "current_question >= 1 AND current_question <= 16",
            name="ck_game_sessions_current_question_range",
        ),
        sa.CheckConstraint("current_score >= 0", name="ck_game_sessions_score_non_negative"),
        sa.CheckConstraint(
            "(game_kind != 'TOURNAMENT') OR tournament_id IS NOT NULL",
            name="ck_game_sessions_tournament_link",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["current_question_id"], ["questions.id"]),
        sa.UniqueConstraint("session_key", name="uq_game_sessions_session_key"),
    )
    op.create_index("idx_game_sessions_user_started", "game_sessions", ["user_id", "started_at"])
    op.create_index("idx_game_sessions_status_started", "game_sessions", ["status", "started_at"])
    op.create_index(
        "uq_game_sessions_user_active",
        "game_sessions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        "prize_payouts",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_prize_payouts_amount_positive"),
        sa.CheckConstraint(
            "payment_status IN ('PENDING','PAID','REJECTED')",
            name="ck_prize_payouts_payment_status",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["session_id"], ["game_sessions.id"]),
        sa.UniqueConstraint("session_id", name="uq_prize_payouts_session_id"),
    )
    op.create_index("idx_prize_payouts_user_created", "prize_payouts", ["user_id", "created_at"])
    op.create_index("idx_prize_payouts_created_amount", "prize_payouts", ["created_at", "amount"])

    op.create_table(
        "tournament_participants",
        sa.Column("tournament_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        sa.Column("tokens_remaining", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("best_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_score", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "tokens_remaining >= 0",
            name="ck_tournament_participants_tokens_non_negative",
        ),
        sa.CheckConstraint(
            "payment_status IN ('NOT_REQUIRED','PENDING','SUCCESS','FAILED')",
            name="ck_tournament_participants_payment_status",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("tournament_id", "user_id"),
    )
    op.create_index(
        "idx_tournament_participants_tournament_best",
        "tournament_participants",
        ["tournament_id", "best_score"],
    )

    op.create_table(
        "streak_state",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("best_streak", sa.Integer(), nullable=False),
        sa.Column("last_activity_local_date", sa.Date(), nullable=True),
        sa.Column("badge", sa.String(16), nullable=True),
        sa.Column("last_reward_streak", sa.Integer(), nullable=True),
        sa.Column("last_reward_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_streak >= 0", name="ck_streak_state_current_streak_non_negative"),
        sa.CheckConstraint("best_streak >= 0", name="ck_streak_state_best_streak_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("idx_streak_last_activity", "streak_state", ["last_activity_local_date"])


def downgrade() -> None:
    op.drop_index("idx_streak_last_activity", table_name="streak_state")
    op.drop_table("streak_state")
    op.drop_index("idx_tournament_participants_tournament_best", table_name="tournament_participants")
    op.drop_table("tournament_participants")
    op.drop_index("idx_prize_payouts_created_amount", table_name="prize_payouts")
    op.drop_index("idx_prize_payouts_user_created", table_name="prize_payouts")
    op.drop_table("prize_payouts")
    op.drop_index("uq_game_sessions_user_active", table_name="game_sessions")
    op.drop_index("idx_game_sessions_status_started", table_name="game_sessions")
    op.drop_index("idx_game_sessions_user_started", table_name="game_sessions")
    op.drop_table("game_sessions")
    op.drop_index("idx_questions_tournament", table_name="questions")
    op.drop_index("idx_questions_mode_difficulty", table_name="questions")
    op.drop_table("questions")
    op.drop_index("idx_tournaments_status_ends", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_index("uq_users_channel_address", table_name="users")
    op.drop_index("idx_users_last_active", table_name="users")
    op.drop_table("users")
