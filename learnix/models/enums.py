import enum

from sqlalchemy import Enum


def _values_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Store the enum *value* (lowercase string), not the member name."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class UserRole(str, enum.Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class AuthProvider(str, enum.Enum):
    GOOGLE = "google"
    GITHUB = "github"


class CourseLevel(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CourseStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


class LessonType(str, enum.Enum):
    STANDARD = "standard"
    QUIZ = "quiz"


class ResourceType(str, enum.Enum):
    FILE = "file"
    LINK = "link"


class QuizStatus(str, enum.Enum):
    DRAFT = "draft"
    AI_GENERATED = "ai_generated"
    APPROVED = "approved"


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    MULTI_SELECT = "multi_select"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class NotificationLevel(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationType(str, enum.Enum):
    ENROLLMENT = "enrollment"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    COURSE_APPROVED = "course_approved"
    COURSE_REJECTED = "course_rejected"
    COURSE_SUBMITTED = "course_submitted"
    COURSE_COMPLETED = "course_completed"
    COURSE_UNENROLLMENT = "course_unenrollment"
    QUIZ_SUBMITTED = "quiz_submitted"


user_role_enum = _values_enum(UserRole, "user_role")
auth_provider_enum = _values_enum(AuthProvider, "auth_provider")
course_level_enum = _values_enum(CourseLevel, "course_level")
course_status_enum = _values_enum(CourseStatus, "course_status")
lesson_type_enum = _values_enum(LessonType, "lesson_type")
resource_type_enum = _values_enum(ResourceType, "resource_type")
quiz_status_enum = _values_enum(QuizStatus, "quiz_status")
question_type_enum = _values_enum(QuestionType, "question_type")
payment_status_enum = _values_enum(PaymentStatus, "payment_status")
notification_level_enum = _values_enum(NotificationLevel, "notification_level")
notification_type_enum = _values_enum(NotificationType, "notification_type")
