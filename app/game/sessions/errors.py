class GameSessionError(Exception):
    pass


class IneligibleToStartError(GameSessionError):
    reason = "ineligible"


class NoEntriesRemainingError(IneligibleToStartError):
    reason = "no_entries_remaining"


class TournamentNotFoundError(IneligibleToStartError):
    reason = "tournament_not_found"


class TournamentNotJoinedError(IneligibleToStartError):
    reason = "tournament_not_joined"


class TournamentPaymentRequiredError(IneligibleToStartError):
    reason = "tournament_payment_required"


class TournamentTokensExhaustedError(IneligibleToStartError):
    reason = "tournament_tokens_exhausted"


class ActiveSessionExistsError(IneligibleToStartError):
    reason = "active_session_exists"


class ContentExhaustedError(GameSessionError):
    pass


class SessionIntegrityError(GameSessionError):
    pass


class SessionNotActiveError(GameSessionError):
    pass


class LifelineAlreadyUsedError(GameSessionError):
    pass


class InvalidAnswerOptionError(GameSessionError):
    pass


class TransientStoreFailure(GameSessionError):
    pass
