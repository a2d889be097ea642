"""
Error taxonomy shared by the web app and the sync jobs.

ConfigError and LedgerWriteError are fatal for a job run; ExternalFetchError
only costs the unit of work (one user, one batch) that raised it.
"""


class RewardsError(Exception):
    """Base class for application errors."""


class ConfigError(RewardsError):
    """Required configuration is missing or invalid."""


class ExternalFetchError(RewardsError):
    """An external API answered with a non-success status or could not be reached."""

    def __init__(self, service: str, detail: str, status_code: int | None = None) -> None:
        self.service = service
        self.detail = detail
        self.status_code = status_code
        prefix = f"{service} {status_code}" if status_code is not None else service
        super().__init__(f"{prefix}: {detail}")


class LedgerWriteError(RewardsError):
    """The payout replace transaction failed and was rolled back."""


class NotFoundError(RewardsError):
    pass


class InsufficientTokensError(RewardsError):
    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(f"insufficient tokens: required {required}, available {available}")
