# annonsanalys/errors.py
from __future__ import annotations
from typing import Optional


class AnalysisError(Exception):
    """Base for every failure the analysis flow reports to a caller."""

    status_code = 500
    user_message = "The analysis failed because of an internal error. Please try again."

    def __init__(self, message: str | None = None, *, user_message: str | None = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class InvalidInput(AnalysisError):
    status_code = 400

    def __init__(self, message: str):
        # caller's fault: the specific rule is safe to show
        super().__init__(message, user_message=message)


class ModelUnavailable(AnalysisError):
    user_message = "The AI service is unavailable right now. Please try again in a moment."

    def __init__(self, message: str, status: Optional[int] = None):
        if status is not None:
            message = f"{message} (status {status})"
        super().__init__(message)
        self.status = status


class ModelBlocked(AnalysisError):
    def __init__(self, reason: str):
        reason = (reason or "unspecified").strip()
        super().__init__(
            f"model response blocked: {reason}",
            user_message=f"The AI service refused to analyse these ads (reason: {reason}).",
        )
        self.reason = reason


class EmptyModelResponse(AnalysisError):
    user_message = "The AI service returned an empty answer. Please try again."


class UnparsableResponse(AnalysisError):
    user_message = "The AI answer could not be interpreted. Please try again."

    def __init__(self, message: str, *, raw_text: str, cleaned_text: str):
        super().__init__(message)
        self.raw_text = raw_text
        self.cleaned_text = cleaned_text


class InvalidModelOutput(AnalysisError):
    user_message = "The AI answer did not match the expected analysis format. Please try again."
