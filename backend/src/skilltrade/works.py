"""
Work Registry.
Owns the lifecycle of a single work item: publish, assignment, status changes,
pause/resume time tracking, descriptive edits and deletion.
"""
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional

from .applications import ApplicationLedger
from .config import config
from .errors import (
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    SkillTradeError,
    ValidationError,
)
from .logging import logger
from .models import EDITABLE_WORK_FIELDS, PaymentType, WorkStatus
from .utils import seconds_between, utc_now

REQUIRED_PUBLISH_FIELDS = ('title', 'employerName', 'employerId', 'wage', 'paymentType')


def parse_wage(value: Any) -> Decimal:
    """Parse a wage into a positive Decimal."""
    if isinstance(value, bool):
        raise ValidationError('Wage must be a number')
    try:
        wage = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError('Wage must be a number')
    if not wage.is_finite() or wage <= 0:
        raise ValidationError('Wage must be greater than zero')
    return wage


def parse_payment_type(value: Any) -> str:
    if value not in PaymentType.ALL:
        raise ValidationError(f"Payment type must be one of: {', '.join(PaymentType.ALL)}")
    return value


def parse_skills(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise ValidationError('Skills must be a list of strings')
    return [s.strip() for s in value if s.strip()]


def calculate_earnings(wage: Decimal, worked_seconds: int) -> Decimal:
    """Wage is hourly; earnings are rounded to two decimals."""
    hours = Decimal(worked_seconds) / Decimal(3600)
    return (Decimal(wage) * hours).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class WorkRegistry:
    """Work item lifecycle against the persistence store."""

    def __init__(self, store, identity, applications=None, now: Callable[[], str] = utc_now):
        self.store = store
        self.identity = identity
        self.applications = applications or ApplicationLedger(store, identity, now=now)
        self.now = now

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch(self, work_id: str) -> Dict[str, Any]:
        work = self.store.get_work(work_id) if work_id else None
        if not work:
            raise NotFoundError('Work not found')
        return work

    def list_works(self, employer_id: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if limit is None:
            limit = config.DEFAULT_WORK_LIST_LIMIT
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            raise ValidationError('Limit must be an integer')
        if limit <= 0:
            raise ValidationError('Limit must be positive')
        limit = min(limit, config.MAX_WORK_LIST_LIMIT)
        return self.store.list_works(employer_id=employer_id, limit=limit)

    def fetch_by_employer(self, employer_id: str) -> List[Dict[str, Any]]:
        return self.store.list_works(employer_id=employer_id)

    def fetch_active_for_employee(self, employee_id: str) -> Dict[str, Any]:
        """
        The employee's InProgress work. At most one is expected; if several exist
        the most recently updated one wins.
        """
        active = [
            w for w in self.store.list_works_for_employee(employee_id)
            if w.get('status') == WorkStatus.IN_PROGRESS
        ]
        if not active:
            raise NotFoundError('No active work')
        active.sort(key=lambda w: (w.get('updatedAt', ''), w['workId']), reverse=True)
        if len(active) > 1:
            logger.warning(f"Employee {employee_id} has {len(active)} works in progress, returning latest")
        return active[0]

    def fetch_by_manual_code(self, code: str) -> Dict[str, Any]:
        """Look a work up by the first characters of its ID (typed instead of scanning the QR code)."""
        code = (code or '').strip().lower()
        if len(code) < config.MANUAL_CODE_LENGTH:
            raise ValidationError(f'Work code must be at least {config.MANUAL_CODE_LENGTH} characters')
        matches = self.store.find_works_by_id_prefix(code)
        if not matches:
            raise NotFoundError('No work found with this code')
        if len(matches) > 1:
            raise ConflictError('Work code is ambiguous')
        return matches[0]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def publish(self, employer_id: str, details: Dict[str, Any]) -> Dict[str, Any]:
        details = dict(details or {})
        details['employerId'] = employer_id

        missing = [f for f in REQUIRED_PUBLISH_FIELDS if details.get(f) in (None, '')]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        timestamp = self.now()
        work = {
            'workId': str(uuid.uuid4()),
            'title': str(details['title']).strip(),
            'employerName': str(details['employerName']).strip(),
            'employerId': employer_id,
            'employeeId': None,
            'wage': parse_wage(details['wage']),
            'paymentType': parse_payment_type(details['paymentType']),
            'status': WorkStatus.PUBLISHED,
            'location': details.get('location') or '',
            'category': details.get('category') or '',
            'description': details.get('description') or '',
            'skills': parse_skills(details.get('skills')),
            'pausedSeconds': 0,
            'createdAt': timestamp,
            'updatedAt': timestamp
        }
        if not work['title']:
            raise ValidationError('Missing required fields: title')

        self.store.put_work(work)
        logger.info(f"Work {work['workId']} published by {employer_id}")
        return work

    def assign_employee(self, work_id: str, employee_id: str, requested_by: str,
                        status: Optional[str] = None) -> Dict[str, Any]:
        """
        Set the work's employee and move it to `status` (InProgress by default).
        Allowed for the employer, or for the employee themself when they hold an
        accepted application for this work.
        """
        status = status or WorkStatus.IN_PROGRESS
        if status not in WorkStatus.ALL:
            raise ValidationError(f'Unknown status: {status}')

        work = self.fetch(work_id)
        if not self.identity.user_exists(employee_id):
            raise NotFoundError('Employee not found')

        if requested_by != work['employerId']:
            if requested_by != employee_id or not self.applications.has_accepted(work_id, employee_id):
                logger.warning(f"User {requested_by} may not assign {employee_id} to work {work_id}")
                raise AuthorizationError('No permission to modify this work')

        current_employee = work.get('employeeId')
        if (work.get('status') == WorkStatus.IN_PROGRESS
                and current_employee and current_employee != employee_id):
            raise ConflictError('Work is already in progress with another employee')

        fields = {'employeeId': employee_id, 'status': status}
        timestamp = self.now()
        fields.update(self._entering_status_fields(work, status, timestamp))
        updated = self._write(work_id, fields, timestamp)
        logger.info(f"Work {work_id}: employee {employee_id} assigned, status {status}")
        return updated

    def set_status(self, work_id: str, new_status: str, requested_by: str) -> Dict[str, Any]:
        """
        Free-form status overwrite by the employer. There is no transition graph:
        any known status may follow any other.
        """
        if new_status not in WorkStatus.ALL:
            raise ValidationError(f'Unknown status: {new_status}')

        work = self.fetch(work_id)
        self._require_employer(work, requested_by)

        if new_status == WorkStatus.IN_PROGRESS and not work.get('employeeId'):
            raise ValidationError('An employee must be assigned before the work can start')

        fields = {'status': new_status}
        timestamp = self.now()
        fields.update(self._entering_status_fields(work, new_status, timestamp))
        updated = self._write(work_id, fields, timestamp)
        logger.info(f"Work {work_id}: status {work.get('status')} -> {new_status}")
        return updated

    def update_details(self, work_id: str, updates: Dict[str, Any], requested_by: str) -> Dict[str, Any]:
        work = self.fetch(work_id)
        self._require_employer(work, requested_by)

        fields = {k: v for k, v in (updates or {}).items() if k in EDITABLE_WORK_FIELDS}
        if not fields:
            raise ValidationError('No valid fields to update')
        if 'wage' in fields:
            fields['wage'] = parse_wage(fields['wage'])
        if 'skills' in fields:
            fields['skills'] = parse_skills(fields['skills'])
        if 'title' in fields:
            fields['title'] = str(fields['title'] or '').strip()
            if not fields['title']:
                raise ValidationError('Title cannot be empty')
        if 'paymentType' in fields:
            fields['paymentType'] = parse_payment_type(fields['paymentType'])

        updated = self._write(work_id, fields)
        logger.info(f"Work {work_id} updated: {', '.join(sorted(fields))}")
        return updated

    def pause(self, work_id: str, requested_by: str) -> Dict[str, Any]:
        work = self._fetch_running(work_id, requested_by)
        if work.get('pausedAt'):
            raise ConflictError('Work is already paused')
        updated = self._write(work_id, {'pausedAt': self.now()})
        logger.info(f"Work {work_id} paused by {requested_by}")
        return updated

    def resume(self, work_id: str, requested_by: str) -> Dict[str, Any]:
        work = self._fetch_running(work_id, requested_by)
        paused_at = work.get('pausedAt')
        if not paused_at:
            raise ConflictError('Work is not paused')
        timestamp = self.now()
        paused_seconds = int(work.get('pausedSeconds') or 0) + seconds_between(paused_at, timestamp)
        updated = self._write(work_id, {'pausedAt': None, 'pausedSeconds': paused_seconds}, timestamp)
        logger.info(f"Work {work_id} resumed by {requested_by}")
        return updated

    def complete(self, work_id: str) -> Dict[str, Any]:
        """Terminal transition, reached through the completion handshake."""
        work = self.fetch(work_id)
        fields = {'status': WorkStatus.COMPLETED}
        timestamp = self.now()
        fields.update(self._entering_status_fields(work, WorkStatus.COMPLETED, timestamp))
        updated = self._write(work_id, fields, timestamp)
        logger.info(f"Work {work_id} completed")
        return updated

    def delete(self, work_id: str, requested_by: str) -> None:
        """
        Delete the work and its applications. Applications go first; if that step
        fails the work is left untouched. If the work delete fails afterwards the
        deleted applications are not restored.
        """
        work = self.fetch(work_id)
        self._require_employer(work, requested_by)

        try:
            removed = self.store.delete_applications_for_work(work_id)
        except SkillTradeError as e:
            logger.error(f"Deleting applications of work {work_id} failed: {e}")
            raise InternalError('Error while deleting applications', step='applications') from e

        try:
            self.store.delete_work(work_id)
        except SkillTradeError as e:
            logger.error(f"Deleting work {work_id} failed after removing {removed} applications: {e}")
            raise InternalError('Error while deleting work', step='work') from e

        logger.info(f"Work {work_id} deleted with {removed} applications")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write(self, work_id: str, fields: Dict[str, Any], timestamp: Optional[str] = None) -> Dict[str, Any]:
        fields['updatedAt'] = timestamp or self.now()
        return self.store.update_work(work_id, fields)

    def _require_employer(self, work: Dict[str, Any], requested_by: str) -> None:
        if requested_by != work['employerId']:
            logger.warning(f"User {requested_by} is not the employer of work {work['workId']}")
            raise AuthorizationError('No permission to modify this work')

    def _fetch_running(self, work_id: str, requested_by: str) -> Dict[str, Any]:
        work = self.fetch(work_id)
        if requested_by not in (work['employerId'], work.get('employeeId')):
            raise AuthorizationError('No permission to modify this work')
        if work.get('status') != WorkStatus.IN_PROGRESS:
            raise ValidationError('Work is not in progress')
        return work

    def _entering_status_fields(self, work: Dict[str, Any], status: str, timestamp: str) -> Dict[str, Any]:
        """Time-tracking fields stamped when a work enters InProgress or Completed."""
        fields = {}
        if status == WorkStatus.IN_PROGRESS and not work.get('startTime'):
            fields['startTime'] = timestamp
        elif status == WorkStatus.COMPLETED and work.get('status') != WorkStatus.COMPLETED:
            fields.update(self._work_summary(work, timestamp))
        return fields

    def _work_summary(self, work: Dict[str, Any], end_time: str) -> Dict[str, Any]:
        """End time, worked seconds (pauses excluded) and earnings at the hourly wage."""
        summary = {'endTime': end_time, 'pausedAt': None}
        start_time = work.get('startTime')
        if not start_time:
            return summary
        paused = int(work.get('pausedSeconds') or 0)
        if work.get('pausedAt'):
            paused += seconds_between(work['pausedAt'], end_time)
        worked = max(seconds_between(start_time, end_time) - paused, 0)
        summary['pausedSeconds'] = paused
        summary['duration'] = worked
        summary['earnings'] = calculate_earnings(work['wage'], worked)
        return summary
