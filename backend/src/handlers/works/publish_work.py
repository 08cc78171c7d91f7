"""
Publish Work Handler.
POST /works
Body: { "title": "...", "employerName": "...", "wage": 5000, "paymentType": "Cash",
        "location": "...", "category": "...", "skills": [...], "description": "..." }
The caller becomes the work's employer.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, parse_body

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        work = services.works.publish(caller.user_id, parse_body(event))

        return format_response(201, {
            'message': 'Work published successfully',
            'workId': work['workId'],
            'work': work
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error publishing work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
