"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Wallet
  9xxx: System / upstream
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


# --- 1xxx: Wallet ---

class WalletNotFoundError(AppError):
    def __init__(self, account: str) -> None:
        self.account = account
        super().__init__(1001, "Wallet not found in the system", 404)


class InvalidWalletAddressError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1002, detail, 400)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class UpstreamTimeoutError(AppError):
    """The warehouse query exceeded its time budget. Never cached."""

    def __init__(self) -> None:
        super().__init__(9003, "The request timed out. Please try again later.", 408)


class UpstreamError(AppError):
    """Any other warehouse failure. Never cached."""

    def __init__(self) -> None:
        super().__init__(9004, "An error occurred while processing your request.", 500)
