from __future__ import annotations


class SurveyError(Exception):
    # Base class for domain errors.
    pass


class NotFoundError(SurveyError):
    # Raised when an id or share token resolves to nothing.
    pass


class PermissionDenied(SurveyError):
    # Raised when a survey is accessed by someone other than its owner.
    pass


class StorageError(SurveyError):
    # Raised when the storage collaborator fails. The message is internal only.
    pass


class ShareTokenConflict(StorageError):
    # Raised when a freshly minted share token hits the unique constraint.
    pass


class TokenGenerationFailed(SurveyError):
    # Raised when no unique share token could be minted within the retry budget.
    pass


class QuestionInUse(SurveyError):
    # Raised when an edit would drop questions that already have stored answers.
    def __init__(self, question_ids):
        super().__init__(f"questions with answers: {', '.join(question_ids)}")
        self.question_ids = list(question_ids)
