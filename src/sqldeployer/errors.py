"""Domain errors for SqlDeployer."""


class DeployerError(RuntimeError):
    """Raised when a deployment cannot continue safely."""


class UnsupportedActionError(DeployerError):
    """Raised for action types or SqlPackage actions that cannot be executed."""


class InvalidConnectionStringError(DeployerError):
    """Raised when a connection string cannot be parsed or is incomplete."""


class CommandTimeoutError(DeployerError):
    """Raised when an external tool exceeds its timeout."""


class CommandFailedError(DeployerError):
    """Raised when an external tool exits with a non-zero code."""

    def __init__(self, message: str, returncode: int):
        super().__init__(message)
        self.returncode = returncode
