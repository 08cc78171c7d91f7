"""
Verify And Complete Handler.
POST /works/{workId}/complete
Body: { "code": "123456" }
Completes the work when the submitted code matches the latest generated one.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param, parse_body

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        caller = services.identity.resolve_caller(event)
        work_id = get_path_param(event, 'workId')

        work = services.completion.verify_and_complete(
            work_id,
            parse_body(event).get('code'),
            requested_by=caller.user_id
        )

        return format_response(200, {
            'message': 'Work completed successfully',
            'workId': work_id,
            'status': work.get('status'),
            'duration': work.get('duration'),
            'earnings': work.get('earnings')
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error completing work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
