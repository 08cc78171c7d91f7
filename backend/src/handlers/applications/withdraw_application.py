"""
Withdraw Application Handler.
POST /applications/{applicationId}/withdraw
Applicant only.
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
        application = services.applications.withdraw(
            get_path_param(event, 'applicationId'),
            requested_by=caller.user_id
        )
        return format_response(200, {
            'message': 'Application withdrawn',
            'applicationId': application['applicationId'],
            'status': application['status']
        })

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error withdrawing application: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
