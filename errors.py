class AnalyzerError(Exception):
    """Base for every failure the user is told about."""

    http_status = 500
    default_message = "Error processing image. Please try again with a different image."

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AnalyzerError):
    http_status = 400
    default_message = "Invalid file type. Please upload an image file."


class EncodingError(AnalyzerError):
    http_status = 400
    default_message = "Failed to convert image to base64"


class NoSubjectDetectedError(AnalyzerError):
    http_status = 422
    default_message = "No samosa detected in the image. Please upload a clear image of a samosa."


class NoStructuredPayloadError(AnalyzerError):
    http_status = 502
    default_message = "Could not get a proper analysis. Please try with a clearer image of a samosa."


class InvalidAnalysisShapeError(AnalyzerError):
    http_status = 502
    default_message = "Invalid analysis format. Please try again with a different image."


class InferenceError(AnalyzerError):
    http_status = 502
    default_message = "No response from Gemini API"


class IllegalTransitionError(RuntimeError):
    """Raised when a session event arrives in a state that cannot accept it."""


ERRORS_BY_NAME = {
    cls.__name__: cls
    for cls in (
        InvalidInputError,
        EncodingError,
        NoSubjectDetectedError,
        NoStructuredPayloadError,
        InvalidAnalysisShapeError,
        InferenceError,
    )
}
