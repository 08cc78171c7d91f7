"""
List Work Reviews Handler.
GET /reviews/work/{workId}
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        reviews = services.ratings.list_for_work(get_path_param(event, 'workId'))
        return format_response(200, {'reviews': reviews, 'count': len(reviews)})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error listing work reviews: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
