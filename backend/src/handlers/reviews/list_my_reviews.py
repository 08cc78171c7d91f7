"""
List My Reviews Handler.
GET /reviews/my-reviews
Reviews written by the caller.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        reviews = services.ratings.list_authored_by(caller.user_id)
        return format_response(200, {'reviews': reviews, 'count': len(reviews)})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error listing authored reviews: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
