from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when the user configuration file cannot be read or is invalid."""


class ProviderNotConfiguredError(RuntimeError):
    def __init__(self, provider: str, env_var: str) -> None:
        self.provider = provider
        self.env_var = env_var
        super().__init__(
            f"No API key configured for provider '{provider}'. "
            f"Set {provider}.api_key in the config file or export {env_var}."
        )


class SessionAborted(SystemExit):
    """The operator declined to keep retrying; the whole session stops.

    Subclassing SystemExit means an uncaught abort ends the process with
    status 0, while tests and embedding callers can still catch it by type.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(0)
        self.reason = reason

    def __str__(self) -> str:
        return self.reason
