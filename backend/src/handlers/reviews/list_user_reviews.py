"""
List User Reviews Handler.
GET /reviews/user/{userId}?type=Employee|Employer
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param, get_query_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        reviews = services.ratings.list_for_user(
            get_path_param(event, 'userId'),
            review_type=get_query_param(event, 'type')
        )
        return format_response(200, {'reviews': reviews, 'count': len(reviews)})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error listing user reviews: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
