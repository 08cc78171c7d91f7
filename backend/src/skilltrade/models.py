"""
Status constants for the work lifecycle.
Based on the lifecycle: Published → NotStarted → InProgress → AwaitingReview → Completed
"""


class WorkStatus:
    """Work lifecycle statuses."""
    PUBLISHED = 'Published'
    NOT_STARTED = 'NotStarted'  # Same transitions as Published
    IN_PROGRESS = 'InProgress'
    AWAITING_REVIEW = 'AwaitingReview'
    COMPLETED = 'Completed'

    ALL = (PUBLISHED, NOT_STARTED, IN_PROGRESS, AWAITING_REVIEW, COMPLETED)
    # Statuses in which the completion code may be redeemed
    COMPLETABLE = (IN_PROGRESS, AWAITING_REVIEW)


class ApplicationStatus:
    """Application statuses."""
    PENDING = 'Pending'
    ACCEPTED = 'Accepted'
    REJECTED = 'Rejected'
    WITHDRAWN = 'Withdrawn'

    ALL = (PENDING, ACCEPTED, REJECTED, WITHDRAWN)
    # Statuses the employer may set
    EMPLOYER_SETTABLE = (ACCEPTED, REJECTED)
    WITHDRAWABLE = (PENDING, ACCEPTED)


class ReviewType:
    """Who is being reviewed."""
    EMPLOYEE = 'Employee'
    EMPLOYER = 'Employer'

    ALL = (EMPLOYEE, EMPLOYER)


class PaymentType:
    """Payment media offered when publishing a work."""
    CASH = 'Cash'
    CARD = 'Card'
    TRANSFER = 'Transfer'

    ALL = (CASH, CARD, TRANSFER)


# Descriptive fields the employer may edit after publishing
EDITABLE_WORK_FIELDS = ('title', 'description', 'location', 'category', 'skills', 'wage', 'paymentType')

MIN_RATING = 1
MAX_RATING = 5

COMPLETION_CODE_DIGITS = 6
