"""
Error taxonomy for the simplifier.

The walker and extractors never raise these: unparsable fields are dropped.
Everything around the walker (URL parsing, credentials, transport, enrichment)
is strict and raises with the offending key in the message.
"""


class FigmaSimplifierError(Exception):
    """Base class for every error raised on purpose by this project."""


class InputFormatError(FigmaSimplifierError):
    """Malformed Figma URL, node id or option combination."""


class AuthError(FigmaSimplifierError):
    def __init__(self, message: str = "Either apiKey or oauthToken is required"):
        super().__init__(message)


class UpstreamError(FigmaSimplifierError):
    def __init__(self, file_key: str, cause: Exception | str):
        self.file_key = file_key
        self.cause = cause
        super().__init__(f"Failed to fetch Figma data for file {file_key}: {cause}")


class AssetCountMismatch(FigmaSimplifierError):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Number of image paths ({actual}) must match number of images ({expected})"
        )


class MissingAssetMapping(FigmaSimplifierError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"No image path provided for node ID: {node_id}")


class DownloadFailure(FigmaSimplifierError):
    def __init__(self, node_id: str, cause: Exception | str):
        self.node_id = node_id
        self.cause = cause
        super().__init__(f"Error downloading image for node {node_id}: {cause}")
