"""
List Works Handler.
GET /works?employerId=...&limit=50
Newest works first, optionally only one employer's.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_query_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        employer_id = get_query_param(event, 'employerId')
        limit = get_query_param(event, 'limit')

        works = services.works.list_works(employer_id=employer_id, limit=limit)

        return format_response(200, {'works': works, 'count': len(works)})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error listing works: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
