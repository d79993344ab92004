from .course import Course
from .enrollment import Enrollment
from .enums import (
    AuthProvider,
    CourseLevel,
    CourseStatus,
    LessonType,
    NotificationLevel,
    NotificationType,
    PaymentStatus,
    QuestionType,
    QuizStatus,
    ResourceType,
    UserRole,
)
from .external_auth import ExternalAuth
from .lesson import Lesson
from .lesson_resource import LessonResource
from .notification import Notification
from .payment import Payment
from .question import Question
from .quiz import Quiz
from .quiz_submission import QuizSubmission
from .section import CourseSection
from .user import User

__all__ = [
    "AuthProvider",
    "Course",
    "CourseLevel",
    "CourseSection",
    "CourseStatus",
    "Enrollment",
    "ExternalAuth",
    "Lesson",
    "LessonResource",
    "LessonType",
    "Notification",
    "NotificationLevel",
    "NotificationType",
    "Payment",
    "PaymentStatus",
    "Question",
    "QuestionType",
    "Quiz",
    "QuizStatus",
    "QuizSubmission",
    "ResourceType",
    "User",
    "UserRole",
]
