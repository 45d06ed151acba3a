"""Exception hierarchy for tvos-assets."""


class TvOSAssetsError(Exception):
    """Base error for everything the generator reports to the user."""


class ConfigError(TvOSAssetsError):
    """Missing or invalid configuration (inputs, colours, names, output)."""


class ValidationError(TvOSAssetsError):
    """An input image failed the pre-flight checks."""


class FormatError(ValidationError):
    """A file carries a .png extension but is not PNG data."""


class ImageProcessingError(TvOSAssetsError):
    """The image codec failed while producing a rendition."""


class DimensionError(TvOSAssetsError):
    """A requested output size is outside the supported range."""


class OutputWriteError(TvOSAssetsError):
    """Writing to disk failed; ``errno`` keeps the underlying code."""

    def __init__(self, message, errno=None):
        self.errno = errno
        super().__init__(message)


class AssetGenerationError(TvOSAssetsError):
    """A failure inside one asset family, tagged with the asset's name."""

    def __init__(self, asset_name, cause):
        self.asset_name = asset_name
        self.cause = cause
        super().__init__(f'Failed generating "{asset_name}": {cause}')
