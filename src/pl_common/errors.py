"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity / authorization
  2xxx: Game
  3xxx: Player
  4xxx: Cash-out request / approval
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Identity / authorization ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1005, f"User not found: {user_id}", 404)


class NotAuthorizedError(AppError):
    def __init__(self, action: str) -> None:
        super().__init__(1010, f"Not authorized to {action}", 403)


# --- 2xxx: Game ---

class GameNotFoundError(AppError):
    def __init__(self, ref: str) -> None:
        super().__init__(2001, f"Game not found: {ref}", 404)


class GameNotActiveError(AppError):
    def __init__(self, game_id: str) -> None:
        super().__init__(2002, f"Game is not active: {game_id}", 422)


class GameFullError(AppError):
    def __init__(self, game_id: str, max_players: int) -> None:
        super().__init__(2003, f"Game {game_id} is full ({max_players} players)", 422)


class AlreadyJoinedError(AppError):
    def __init__(self, game_id: str) -> None:
        super().__init__(2004, f"Already a player in game {game_id}", 409)


# --- 3xxx: Player ---

class PlayerNotFoundError(AppError):
    def __init__(self, ref: str) -> None:
        super().__init__(3001, f"Player not found: {ref}", 404)


class PlayerNotActiveError(AppError):
    def __init__(self, player_id: str, status: str) -> None:
        super().__init__(3002, f"Player {player_id} is not active (status {status})", 422)


class InvalidTransitionError(AppError):
    def __init__(self, player_id: str, current: str, target: str) -> None:
        super().__init__(
            3003,
            f"Player {player_id} cannot move from {current} to {target}",
            409,
        )


# --- 4xxx: Cash-out ---

class CashOutRequestNotFoundError(AppError):
    def __init__(self, request_id: str) -> None:
        super().__init__(4001, f"Cash-out request not found: {request_id}", 404)


class RequestAlreadyOpenError(AppError):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            4002, f"Player {player_id} already has a pending cash-out request", 409
        )


class RequestNotOpenError(AppError):
    def __init__(self, request_id: str, status: str) -> None:
        super().__init__(
            4003, f"Cash-out request {request_id} in status {status} is not open for voting", 422
        )


class AlreadyVotedError(AppError):
    def __init__(self, request_id: str) -> None:
        super().__init__(4004, f"Already voted on cash-out request {request_id}", 409)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ValidationError(AppError):
    def __init__(self, field: str, detail: str) -> None:
        self.field = field
        super().__init__(9003, f"Invalid {field}: {detail}", 422)
