"""
ComfyImg exception types.
"""


class ComfyImgError(Exception):
    """Base class for all ComfyImg errors."""


class ConfigurationError(ComfyImgError, ValueError):
    """Invalid or incomplete configuration detected at construction time."""


class TransportError(ComfyImgError):
    """A request to the ComfyUI backend failed or timed out."""


class BindingError(ComfyImgError):
    """A request parameter could not be written into the bound workflow."""
