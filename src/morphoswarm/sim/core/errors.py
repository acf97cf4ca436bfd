from __future__ import annotations


class MorphoswarmError(Exception):
    """Base class for all morphoswarm exceptions."""


class ConfigError(MorphoswarmError):
    """Raised at startup when simulation parameters are invalid."""

    def __init__(self, param_name: str | None = None, reason: str | None = None):
        if param_name and reason:
            message = f"Invalid configuration for '{param_name}': {reason}"
            self.param_name = param_name
        else:
            message = param_name if param_name else "Invalid configuration"
            self.param_name = None
        super().__init__(message)


class TickCommitError(MorphoswarmError):
    """Raised when an agent update fails; the tick is not committed."""

    def __init__(self, tick: int, agent_id: int):
        self.tick = tick
        self.agent_id = agent_id
        super().__init__(f"Update of bird {agent_id} failed at tick {tick}; tick not committed.")


class ControlSurfaceClosed(MorphoswarmError):
    """Raised when weights are written after the control surface was released."""
