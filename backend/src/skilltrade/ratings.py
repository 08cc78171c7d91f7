"""
Rating Aggregator.
Records reviews and keeps each user's denormalized average rating in step.
"""
import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional

from .errors import AuthorizationError, NotFoundError, ValidationError
from .logging import logger
from .models import MAX_RATING, MIN_RATING, ReviewType
from .utils import utc_now


def average_rating(ratings: List[int]) -> Decimal:
    """Arithmetic mean rounded half-up to one decimal; 0.0 for no ratings."""
    if not ratings:
        return Decimal('0.0')
    mean = Decimal(sum(int(r) for r in ratings)) / Decimal(len(ratings))
    return mean.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def parse_rating(value: Any) -> int:
    """Ratings must be whole numbers in [1, 5]; out-of-range values are rejected, not clamped."""
    if isinstance(value, bool):
        raise ValidationError('Rating must be a whole number')
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError('Rating must be a whole number')
    if value < MIN_RATING or value > MAX_RATING:
        raise ValidationError(f'Rating must be between {MIN_RATING} and {MAX_RATING}')
    return value


class RatingAggregator:

    def __init__(self, store, now: Callable[[], str] = utc_now):
        self.store = store
        self.now = now

    def record_review(self, reviewer_id: str, reviewer_name: str, reviewed_user_id: str, work_id: str,
                      rating: Any, comment: str = '', is_reliable: bool = True, is_paid: bool = True,
                      review_type: str = None) -> Dict[str, Any]:
        if not reviewer_id or not reviewed_user_id or not work_id or not review_type:
            raise ValidationError('Missing required fields')
        if review_type not in ReviewType.ALL:
            raise ValidationError(f'Invalid review type: {review_type}')
        if reviewer_id == reviewed_user_id:
            raise ValidationError('You cannot review yourself')
        rating = parse_rating(rating)

        work = self.store.get_work(work_id)
        if not work:
            raise NotFoundError('Work not found')

        review = {
            'reviewId': str(uuid.uuid4()),
            'reviewerId': reviewer_id,
            'reviewerName': reviewer_name or '',
            'reviewedUserId': reviewed_user_id,
            'workId': work_id,
            'workTitle': work.get('title', ''),
            'rating': rating,
            'comment': comment or '',
            # Reliability and payment flags only mean something when an employer is reviewed
            'isReliable': bool(is_reliable),
            'isPaid': bool(is_paid),
            'type': review_type,
            'createdAt': self.now()
        }
        self.store.create_review(review)
        logger.info(f"Review {review['reviewId']}: {reviewer_id} rated {reviewed_user_id} {rating}/5 on work {work_id}")

        self.recompute(reviewed_user_id)
        return review

    def recompute(self, user_id: str) -> Decimal:
        """
        Full rescan of the user's reviews; no running average is kept.

        The timestamp is taken before the scan, so the latest-stamped recompute
        has seen every review written before it, and the store drops writes
        stamped earlier than the summary already stored.
        """
        timestamp = self.now()
        reviews = self.store.list_reviews_for_user(user_id)
        average = average_rating([r['rating'] for r in reviews])
        if self.store.set_user_rating(user_id, average, len(reviews), timestamp):
            logger.info(f"User {user_id} rating updated to {average} ({len(reviews)} reviews)")
        else:
            logger.info(f"User {user_id} rating already refreshed by a later recompute")
        return average

    def delete_review(self, review_id: str, requested_by: str) -> None:
        review = self.store.get_review(review_id) if review_id else None
        if not review:
            raise NotFoundError('Review not found')
        if review['reviewerId'] != requested_by:
            raise AuthorizationError('You can only delete your own reviews')

        self.store.delete_review(review)
        logger.info(f"Review {review_id} deleted by {requested_by}")
        self.recompute(review['reviewedUserId'])

    def list_for_user(self, user_id: str, review_type: Optional[str] = None) -> List[Dict[str, Any]]:
        if review_type and review_type not in ReviewType.ALL:
            raise ValidationError(f'Invalid review type: {review_type}')
        return self._newest_first(self.store.list_reviews_for_user(user_id, review_type))

    def list_for_work(self, work_id: str) -> List[Dict[str, Any]]:
        return self._newest_first(self.store.list_reviews_for_work(work_id))

    def list_authored_by(self, reviewer_id: str) -> List[Dict[str, Any]]:
        return self._newest_first(self.store.list_reviews_by_reviewer(reviewer_id))

    def get_summary(self, user_id: str) -> Dict[str, Any]:
        user = self.store.get_user(user_id) or {}
        return {
            'userId': user_id,
            'averageRating': user.get('averageRating', Decimal('0.0')),
            'reviewCount': int(user.get('reviewCount', 0))
        }

    @staticmethod
    def _newest_first(reviews: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return sorted(reviews, key=lambda r: r.get('createdAt', ''), reverse=True)
