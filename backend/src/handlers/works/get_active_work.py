"""
Get Active Work Handler.
GET /works/employee/{employeeId}/active
Returns the employee's work in progress.
"""
from skilltrade.errors import SkillTradeError
from skilltrade.logging import logger, log_event
from skilltrade.services import build_services
from skilltrade.utils import error_response, format_response, get_path_param

services = build_services()


def handler(event, context):
    log_event(event)

    try:
        services.identity.resolve_caller(event)
        work = services.works.fetch_active_for_employee(get_path_param(event, 'employeeId'))
        return format_response(200, {'work': work})

    except SkillTradeError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error getting active work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
