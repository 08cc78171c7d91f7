"""
Record Review Handler.
POST /reviews
Body: { "reviewedUserId": "...", "workId": "...", "rating": 1-5, "comment": "...",
        "isReliable": true, "isPaid": true, "type": "Employee" | "Employer", "reviewerName": "..." }
The caller is the reviewer. Recomputes the reviewed user's average rating.
"""
from skilltrade.auth import get_user_name
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, parse_body

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        body = parse_body(event)

        review = services.ratings.record_review(
            reviewer_id=caller.user_id,
            reviewer_name=body.get('reviewerName') or get_user_name(event),
            reviewed_user_id=body.get('reviewedUserId'),
            work_id=body.get('workId'),
            rating=body.get('rating'),
            comment=body.get('comment', ''),
            is_reliable=body.get('isReliable', True),
            is_paid=body.get('isPaid', True),
            review_type=body.get('type')
        )

        return format_response(201, {'message': 'Review submitted successfully', 'reviewId': review['reviewId']})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error recording review: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
