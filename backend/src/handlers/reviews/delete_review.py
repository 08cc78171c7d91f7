"""
Delete Review Handler.
DELETE /reviews/{reviewId}
Author only. Recomputes the reviewed user's average rating.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        review_id = get_path_param(event, 'reviewId')

        services.ratings.delete_review(review_id, requested_by=caller.user_id)

        return format_response(200, {'message': 'Review deleted successfully', 'reviewId': review_id})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error deleting review: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
