"""Exception types raised by the planner."""


class PlannerError(Exception):
    """Base class for dataset planner errors."""


class GenerationError(PlannerError):
    """An LLM provider call failed or returned no text."""


class DiscoveryError(PlannerError):
    """The discovery service returned an unusable response."""


class RefinementError(PlannerError):
    """Cleaning steps could not be generated."""


class PlanningError(PlannerError):
    """The plan could not be created. The message is safe to show to users."""


class SettingsError(PlannerError):
    """A settings value was rejected."""
