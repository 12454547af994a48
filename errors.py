"""Exceptions raised by the pin generation pipeline."""


class PinGenerationError(Exception):
    """Base class for every failure the pipeline reports."""


class ConfigError(PinGenerationError, ValueError):
    """An option value is not a number or is out of range."""


class IconSizeError(ConfigError):
    """The derived icon size is zero or larger than the base pin."""


class MissingAssetError(PinGenerationError):
    """One of the base pin SVGs is missing."""


class NoIconsError(PinGenerationError):
    """The icon directory contains no SVG files."""


class RasterizeError(PinGenerationError):
    """An SVG could not be rendered or trimmed."""


class SettingsTemplateError(PinGenerationError):
    """The map settings template does not have the expected shape."""


class UploadError(PinGenerationError):
    """An uploaded file was rejected before staging."""


class DuplicateIconError(PinGenerationError):
    """Two icon files share a marker name (e.g. ``a.svg`` and ``a.SVG``)."""
