from __future__ import annotations

from collections.abc import Sequence

from app.game.prize_ladder import PrizeLadder
from app.game.questions.types import OptionLetter, TriviaQuestion
from app.game.sessions.types import GameKind, GameSessionState, LeaderboardEntry

GENERIC_APOLOGY = "❌ Sorry, something went wrong. Type RESET to start over."
NO_ACTIVE_GAME = "You don't have an active game.\n\nType PLAY to start a new game."
READY_PROMPT = "⚠️ Reply START to begin the game!"
READY_COUNTDOWN = "🎮 LET'S GO! 🎮\n\nStarting in 3... 2... 1..."
NEXT_QUESTION_PENDING = "⏳ Hold on, your next question is on its way..."
SESSION_INTEGRITY = "⚠️ We lost track of your current question.\n\nType RESET to start over."
CONTENT_EXHAUSTED = "😔 We couldn't load your next question right now.\n\nType RESET to start over."
USAGE_HINT = (
    "⚠️ Please reply with A, B, C, or D\n\n"
    "Or use a lifeline:\n"
    '- Type "50" to activate 50:50\n'
    '- Type "Skip" to skip question\n'
    '- Type "RESET" to start over'
)
MAIN_MENU_HINT = (
    "What would you like to do?\n\n"
    "PLAY - Start a new game\n"
    "PRACTICE - Play a free practice game\n"
    "LEADERBOARD - Today's top winners\n\n"
    "Having issues? Type RESET to start fresh."
)
RESET_DONE = (
    "🔄 Game Reset! 🔄\n\n"
    "All active games have been cancelled.\n\n"
    "Ready to start fresh? Type PLAY to start a new game."
)

_REJECTIONS = {
    "no_entries_remaining": "❌ You have no games remaining.\n\nBuy more games to keep playing!",
    "tournament_not_found": "❌ This tournament is not available.",
    "tournament_not_joined": "❌ You haven't joined this tournament yet.",
    "tournament_payment_required": "❌ Complete your tournament payment to play.",
    "tournament_tokens_exhausted": "❌ You have no tournament tokens left.",
    "active_session_exists": "⚠️ You already have an active game! Finish it or type RESET.",
}


def money(amount: int) -> str:
    return f"₦{amount:,}"


def rejection_message(reason: str) -> str:
    return _REJECTIONS.get(reason, GENERIC_APOLOGY)


def instructions_message(
    game_kind: GameKind,
    *,
    ladder: PrizeLadder,
    timeout_seconds: float,
    tournament_name: str | None = None,
) -> str:
    checkpoints = " & ".join(
        f"Q{rung} ({money(ladder.prize_for(rung))})" for rung in sorted(ladder.safe_checkpoints)
    )
    rules = (
        "📋 RULES:\n"
        f"- {ladder.total_rungs} questions\n"
        f"- {int(timeout_seconds)} seconds per question\n"
        f"- Win up to {money(ladder.grand_prize)}!\n\n"
        "💎 LIFELINES:\n"
        "5️⃣0️⃣ 50:50 - Remove 2 wrong answers\n"
        "⏭️ Skip - Swap the question for a new one\n\n"
        f"Safe points: {checkpoints}\n\n"
    )
    if game_kind == GameKind.PRACTICE:
        header = "🎓 PRACTICE MODE 🎓\n\nNo prizes here, just warm up!\n\n"
    elif game_kind == GameKind.TOURNAMENT:
        header = f"🏆 {tournament_name or 'TOURNAMENT'} 🏆\n\nYour tournament game is ready!\n\n"
    else:
        header = "🎮 GAME READY! 🎮\n\n"
    return f"{header}{rules}Reply START to begin!"


def _lifeline_line(state: GameSessionState) -> str:
    available = []
    if not state.eliminate_two_used:
        available.append("50:50")
    if not state.replace_question_used:
        available.append("Skip")
    if not available:
        return ""
    return f"💎 Lifelines: {' | '.join(available)}"


def _question_header(state: GameSessionState, ladder: PrizeLadder) -> str:
    rung = state.current_question
    header = f"❓ QUESTION {rung} - {money(ladder.prize_for(rung))}"
    if ladder.is_safe(rung):
        header += " (SAFE) 🔒"
    return header


def question_message(
    state: GameSessionState,
    question: TriviaQuestion,
    *,
    ladder: PrizeLadder,
    timeout_seconds: float,
) -> str:
    options = "\n".join(f"{letter.value}) {text}" for letter, text in question.options_by_letter().items())
    message = (
        f"{_question_header(state, ladder)}\n\n"
        f"{question.text}\n\n"
        f"{options}\n\n"
        f"⏱️ {int(timeout_seconds)} seconds..."
    )
    lifelines = _lifeline_line(state)
    if lifelines:
        message += f"\n\n{lifelines}"
    return message


def eliminate_two_message(
    state: GameSessionState,
    question: TriviaQuestion,
    remaining: Sequence[OptionLetter],
    *,
    ladder: PrizeLadder,
) -> str:
    options = "\n".join(f"{letter.value}) {question.option_text(letter)}" for letter in remaining)
    return (
        "5️⃣0️⃣ 50:50 ACTIVATED!\n\n"
        f"{_question_header(state, ladder)}\n\n"
        f"{question.text}\n\n"
        f"{options}\n\n"
        "⏱️ The clock is still running!"
    )


def replace_question_message() -> str:
    return "⏭️ SKIP ACTIVATED!\n\nGetting you a fresh question at the same level..."


def lifeline_already_used_message(label: str) -> str:
    return f"❌ You already used {label} in this game."


def correct_answer_message(question: TriviaQuestion, *, rung: int, ladder: PrizeLadder) -> str:
    prize = ladder.prize_for(rung)
    message = "✅ CORRECT! 🎉\n\n"
    if question.fun_fact:
        message += f"{question.fun_fact}\n\n"
    message += f"💰 You've won: {money(prize)}\n💪 Question: {rung} of {ladder.total_rungs}\n"
    if ladder.is_safe(rung):
        message += f"\n🔒 SAFE! {money(prize)} guaranteed!\n"
    return message


def _payout_block(state: GameSessionState) -> str:
    if state.game_kind == GameKind.PRACTICE:
        return f"🎓 Practice score: {money(state.current_score)}\n\nType PLAY when you're ready for a real game!"
    if state.current_score > 0:
        return (
            "You reached a safe checkpoint!\n"
            f"💰 You won: {money(state.current_score)} 🎉\n\n"
            "Your prize is being processed."
        )
    return f"💰 You won: {money(0)}\n\nType PLAY to try again!"


def wrong_answer_message(state: GameSessionState, question: TriviaQuestion) -> str:
    correct = question.correct_option
    message = "❌ WRONG ANSWER 😢\n\n"
    message += f"Correct: {correct.value}) {question.option_text(correct)}\n\n"
    if question.fun_fact:
        message += f"{question.fun_fact}\n\n"
    return f"{message}🎮 GAME OVER 🎮\n\n{_payout_block(state)}"


def timeout_message(state: GameSessionState) -> str:
    return f"⏰ TIME'S UP! 😢\n\nYou didn't answer in time.\n\n🎮 GAME OVER 🎮\n\n{_payout_block(state)}"


def game_over_message(state: GameSessionState) -> str:
    return f"🎮 GAME OVER 🎮\n\n{_payout_block(state)}"


def grand_prize_message(state: GameSessionState, *, ladder: PrizeLadder) -> str:
    if state.game_kind == GameKind.PRACTICE:
        return (
            "🎊 PERFECT PRACTICE RUN! 🎊\n\n"
            f"ALL {ladder.total_rungs} QUESTIONS CORRECT!\n\n"
            "Type PLAY to go for the real prize!"
        )
    return (
        "🎊 INCREDIBLE! 🎊\n\n🏆 CHAMPION! 🏆\n\n"
        f"ALL {ladder.total_rungs} QUESTIONS CORRECT!\n\n"
        f"💰 {money(state.current_score)} WON! 💰\n\n"
        "Prize processed in 24-48 hours."
    )


def leaderboard_message(entries: Sequence[LeaderboardEntry]) -> str:
    if not entries:
        return "🏆 TODAY'S LEADERBOARD 🏆\n\nNo winners yet today. Be the first!"
    lines = [f"{position}. {entry.display_name} - {money(entry.amount)}" for position, entry in enumerate(entries, 1)]
    return "🏆 TODAY'S LEADERBOARD 🏆\n\n" + "\n".join(lines)
