"""Exceptions raised by the minigame engine."""


class MinigameError(Exception):
    """Base class for engine errors."""


class AssetLoadError(MinigameError):
    """A single asset identifier could not be resolved."""


class AnimationLoadError(MinigameError):
    """Intro frames could not be loaded as a whole."""
