"""Domain exception classes for Learnix.

Services raise these; each domain controller maps them onto HTTP responses.
Every class carries a default message that the controller reuses as the
response ``detail``, so call sites only pass a message when it differs.
"""


class LearnixError(Exception):
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ── Auth / tokens ─────────────────────────────────────────────────────────────

class TokenInvalidError(LearnixError):
    """Raised when a JWT cannot be decoded, is expired or has no subject."""

    default_message = "Token is invalid"


class InvalidCredentialsError(LearnixError):
    default_message = "Invalid credentials"


class EmailNotVerifiedError(LearnixError):
    default_message = "Please verify your email address before logging in"


class AccountBlockedError(LearnixError):
    default_message = "Your account has been blocked. Please contact support."


class EmailAlreadyExistsError(LearnixError):
    default_message = "Email already exists"


class InvalidActionTokenError(LearnixError):
    """Activation or password-reset token that is unknown or already used."""

    default_message = "Invalid or expired token"


class ActionTokenExpiredError(LearnixError):
    default_message = "Token has expired"


class AlreadyVerifiedError(LearnixError):
    default_message = "Email is already verified"


class PasswordNotSetError(LearnixError):
    """The account was created through OAuth and has no local password."""

    default_message = "This account does not have a password. Please sign in with your social account."


class IncorrectPasswordError(LearnixError):
    default_message = "Current password is incorrect"


class InvalidConfirmationError(LearnixError):
    default_message = 'Please type "DELETE" to confirm account deletion'


class OAuthError(LearnixError):
    default_message = "OAuth authentication failed"


class DevToolsDisabledError(LearnixError):
    default_message = "Dev tools are not available in production"


class UserNotFoundError(LearnixError):
    default_message = "User not found"


# ── Courses ───────────────────────────────────────────────────────────────────

class CourseNotFoundError(LearnixError):
    default_message = "Course not found"


class SectionNotFoundError(LearnixError):
    default_message = "Section not found"


class LessonNotFoundError(LearnixError):
    default_message = "Lesson not found"


class ResourceNotFoundError(LearnixError):
    default_message = "Resource not found"


class PermissionDeniedError(LearnixError):
    default_message = "Access denied"


class NotCourseOwnerError(PermissionDeniedError):
    default_message = "You can only update your own courses"


class AlreadyEnrolledError(LearnixError):
    default_message = "Already enrolled in this course"


class NotEnrolledError(LearnixError):
    default_message = "User is not enrolled in this course"


class ArchiveStateError(LearnixError):
    """Archive of an archived enrollment, or unarchive of an active one."""

    default_message = "Course is already archived"


class InvalidCourseStateError(LearnixError):
    """A moderation or publishing transition is not allowed from the current status."""

    default_message = "Invalid course status for this operation"


class InvalidReorderError(LearnixError):
    default_message = "Invalid reorder request"


class EmptyLessonContentError(LearnixError):
    default_message = "Selected lessons have no text content to generate questions from"


# ── Quizzes ───────────────────────────────────────────────────────────────────

class QuizNotFoundError(LearnixError):
    default_message = "Quiz not found"


class QuestionNotFoundError(LearnixError):
    default_message = "Question not found"


class QuestionsNotInQuizError(LearnixError):
    default_message = "Some questions do not belong to this quiz"


class AIGenerationError(LearnixError):
    default_message = "Failed to generate quiz questions"


class AIServiceUnavailableError(AIGenerationError):
    """Quota exhausted, provider overloaded or no API key; surfaces as 503."""

    default_message = "AI service is currently unavailable. Please try again later."


class AINotConfiguredError(AIServiceUnavailableError):
    default_message = "AI quiz generation is not configured"


# ── Code execution ────────────────────────────────────────────────────────────

class CodeExecutionError(LearnixError):
    """Piston unreachable, or it refused the run; surfaces as 502."""

    default_message = "Failed to execute code service"


# ── Payments ──────────────────────────────────────────────────────────────────

class PaymentNotFoundError(LearnixError):
    default_message = "Payment session not found"


class PaymentAlreadyCompletedError(LearnixError):
    default_message = "Payment already completed"


class PaymentRejectedError(LearnixError):
    default_message = "Payment rejected by card issuer"


# ── Notifications ─────────────────────────────────────────────────────────────

class NotificationNotFoundError(LearnixError):
    default_message = "Notification not found"


# ── Uploads ───────────────────────────────────────────────────────────────────

class InvalidUploadError(LearnixError):
    default_message = "Invalid file"


class InvalidFilePathError(LearnixError):
    default_message = "Invalid file path"


class StoredFileNotFoundError(LearnixError):
    default_message = "File not found"
