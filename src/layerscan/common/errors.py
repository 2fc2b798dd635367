"""Error taxonomy for layerscan.

Callers can tell "cannot fetch the layer" apart from "cannot read this
format" apart from "bad plugin wiring". Individual malformed package
records never surface here; listers log and skip them.
"""


class LayerScanError(Exception):
    """Base class for all layerscan errors."""


class RegistrationError(LayerScanError):
    """Invalid or duplicate plugin registration.

    Raised while the registries are being assembled. It indicates a
    programming error and is not meant to be recovered from at runtime.
    """


class LayerUnavailableError(LayerScanError):
    """The layer byte stream could not be obtained."""

    def __init__(self, message: str = "could not find layer"):
        super().__init__(message)


class UnsupportedFormatError(LayerScanError):
    """No extractor is registered for the requested image format."""

    def __init__(self, format_name: str):
        self.format_name = format_name
        super().__init__(f"unsupported image format '{format_name}'")


class ExtractionError(LayerScanError):
    """A layer stream was obtained but could not be decoded."""


class InvalidVersionError(LayerScanError, ValueError):
    """A version string is not valid for its version format."""

    def __init__(self, version: str, format_name: str, reason: str = ""):
        self.version = version
        self.format_name = format_name
        message = f"invalid {format_name} version '{version}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedRecordError(LayerScanError):
    """A single package record could not be parsed."""


class FeedUnavailableError(LayerScanError):
    """A vulnerability feed could not be fetched or opened."""
