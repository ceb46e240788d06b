"""
Error types raised by the Tear Studio core.

Every error carries a ``user_message`` that the UI shows verbatim as a single
inline message.
"""


class TearStudioError(Exception):
    """Base class for all Tear Studio errors."""

    user_message = "Something went wrong."

    def __init__(self, message=None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class DecodeError(TearStudioError):
    """The uploaded file could not be decoded as an image."""

    user_message = "Could not read the uploaded file as an image."


class GenerationError(TearStudioError):
    """Base class for failed generation outcomes."""

    retryable = False


class SafetyBlockedError(GenerationError):
    user_message = (
        "The request was blocked by the model's safety filter. "
        "Try a different area or style."
    )


class RefusedError(GenerationError):
    """The model answered with text only."""

    def __init__(self, model_text=""):
        self.model_text = model_text
        super().__init__(f'The model did not produce an image: "{model_text}..."')


class MalformedResponseError(GenerationError):
    """The response had neither an image nor an explanation."""

    def __init__(self, finish_reason=None, message=None):
        self.finish_reason = finish_reason
        if message is None:
            if finish_reason:
                message = f"Generation did not complete (finish reason: {finish_reason})."
            else:
                message = "The response contained no image data."
        super().__init__(message)


class TransientFailureError(GenerationError):
    """The service is temporarily overloaded or rate limited."""

    retryable = True
    user_message = "The server is busy. Please wait a moment and try again. (503 Overloaded)"


class FatalFailureError(GenerationError):
    """Unexpected transport, auth or client error."""

    def __init__(self, detail="Unknown error"):
        self.detail = detail
        super().__init__(f"An error occurred during image generation: {detail}")
