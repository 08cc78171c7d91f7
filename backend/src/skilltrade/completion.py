"""
Completion Handshake.

The employer generates a six-digit code once the work is under way and tells it
to the employee in person. Submitting the matching code is the only way the
employee can close the work, so neither side can mark it Completed alone.
"""
import hmac
import secrets
from typing import Any, Callable, Dict

from .errors import AuthorizationError, NotFoundError, ValidationError
from .logging import logger
from .models import COMPLETION_CODE_DIGITS, WorkStatus
from .utils import utc_now


def generate_completion_code() -> str:
    """Uniformly random code in 000000-999999."""
    return f"{secrets.randbelow(10 ** COMPLETION_CODE_DIGITS):0{COMPLETION_CODE_DIGITS}d}"


class CompletionHandshake:

    def __init__(self, store, registry, code_generator: Callable[[], str] = generate_completion_code,
                 now: Callable[[], str] = utc_now):
        self.store = store
        self.registry = registry
        self.code_generator = code_generator
        self.now = now

    def generate_code(self, work_id: str, requested_by: str) -> str:
        """Create a new code for the work, replacing any previous one."""
        work = self.registry.fetch(work_id)
        if requested_by != work['employerId']:
            logger.warning(f"User {requested_by} may not generate a completion code for work {work_id}")
            raise AuthorizationError('Only the employer can generate a completion code')

        code = self.code_generator()
        self.store.put_completion_code({
            'workId': work_id,
            'code': code,
            'createdBy': requested_by,
            'createdAt': self.now()
        })
        logger.info(f"Completion code generated for work {work_id}")
        return code

    def get_code(self, work_id: str, requested_by: str, is_admin: bool = False) -> str:
        """Re-display the current code. Only the employer (or an admin) may read it back."""
        work = self.registry.fetch(work_id)
        if requested_by != work['employerId'] and not is_admin:
            raise AuthorizationError('Only the employer can view the completion code')

        record = self.store.get_completion_code(work_id)
        if not record:
            raise NotFoundError('No completion code has been generated for this work')
        return record['code']

    def verify_and_complete(self, work_id: str, submitted_code: str, requested_by: str) -> Dict[str, Any]:
        """
        Complete the work if `submitted_code` matches the latest code.
        A mismatch leaves the work untouched; the code is never regenerated here.
        """
        work = self.registry.fetch(work_id)
        if requested_by not in (work['employerId'], work.get('employeeId')):
            raise AuthorizationError('No permission to complete this work')
        if work.get('status') not in WorkStatus.COMPLETABLE:
            raise ValidationError('Work is not in progress')

        record = self.store.get_completion_code(work_id)
        if not record:
            raise NotFoundError('No completion code has been generated for this work')

        submitted = submitted_code if isinstance(submitted_code, str) else ''
        if not hmac.compare_digest(submitted.encode(), str(record['code']).encode()):
            logger.warning(f"Wrong completion code submitted for work {work_id} by {requested_by}")
            raise ValidationError('Invalid completion code')

        completed = self.registry.complete(work_id)
        logger.info(f"Work {work_id} closed with completion code by {requested_by}")
        return completed
