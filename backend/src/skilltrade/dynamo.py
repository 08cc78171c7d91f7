"""
DynamoDB persistence store for works, applications, completion codes, reviews and users.

Uniqueness invariants (one live application per work/applicant pair, one review per
reviewer/reviewed/work triple) are enforced with guard items written in the same
transaction as the record, conditioned on `attribute_not_exists`.
"""
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from .config import config as default_config
from .errors import ConflictError, InternalError, NotFoundError
from .logging import logger

GUARD_PREFIX = 'guard#'


def application_guard_id(work_id: str, applicant_id: str) -> str:
    return f"{GUARD_PREFIX}{work_id}#{applicant_id}"


def review_guard_id(reviewer_id: str, reviewed_user_id: str, work_id: str) -> str:
    return f"{GUARD_PREFIX}{reviewer_id}#{reviewed_user_id}#{work_id}"


def _is_guard(item: Optional[Dict[str, Any]], key_name: str) -> bool:
    return bool(item) and str(item.get(key_name, '')).startswith(GUARD_PREFIX)


def without_nulls(item: Dict[str, Any]) -> Dict[str, Any]:
    """Index key attributes (employeeId) must be absent rather than NULL."""
    return {k: v for k, v in item.items() if v is not None}


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def _condition_failed(error: ClientError) -> bool:
    code = _error_code(error)
    if code == 'ConditionalCheckFailedException':
        return True
    if code == 'TransactionCanceledException':
        reasons = error.response.get('CancellationReasons') or []
        # Cancellation reasons correspond to the TransactItems list order
        return any(r.get('Code') == 'ConditionalCheckFailed' for r in reasons) or not reasons
    return False


@contextmanager
def store_errors(action: str):
    """Translate botocore failures into InternalError."""
    try:
        yield
    except ClientError as e:
        logger.error(f"DynamoDB error while {action}: {_error_code(e)} {e}")
        raise InternalError(f"Database error while {action}") from e


class DynamoStore:
    """Entity-level CRUD over the platform's DynamoDB tables."""

    def __init__(self, dynamodb=None, config=default_config):
        self.dynamodb = dynamodb or boto3.resource('dynamodb', region_name=config.AWS_REGION)
        # The resource client serializes native values, transactions included
        self.client = self.dynamodb.meta.client
        self.works_table_name = config.WORKS_TABLE
        self.applications_table_name = config.APPLICATIONS_TABLE
        self.reviews_table_name = config.REVIEWS_TABLE
        self.works = self.dynamodb.Table(config.WORKS_TABLE)
        self.applications = self.dynamodb.Table(config.APPLICATIONS_TABLE)
        self.completion_codes = self.dynamodb.Table(config.COMPLETION_CODES_TABLE)
        self.reviews = self.dynamodb.Table(config.REVIEWS_TABLE)
        self.users = self.dynamodb.Table(config.USERS_TABLE)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _query_all(self, table, limit: Optional[int] = None, **params) -> List[Dict[str, Any]]:
        """Query following LastEvaluatedKey until exhausted or `limit` items collected."""
        items = []
        while True:
            response = table.query(**params)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key or (limit and len(items) >= limit):
                break
            params['ExclusiveStartKey'] = last_key
        return items[:limit] if limit else items

    def _scan_all(self, table, **params) -> List[Dict[str, Any]]:
        items = []
        while True:
            response = table.scan(**params)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                break
            params['ExclusiveStartKey'] = last_key
        return items

    def _update(self, table, key: Dict[str, Any], fields: Dict[str, Any], key_name: str) -> Dict[str, Any]:
        """
        SET every non-None field and REMOVE the None ones.
        Fails with NotFoundError if the item does not exist.
        """
        names = {}
        values = {}
        set_parts = []
        remove_parts = []
        for i, (field, value) in enumerate(fields.items()):
            names[f'#f{i}'] = field
            if value is None:
                remove_parts.append(f'#f{i}')
            else:
                values[f':v{i}'] = value
                set_parts.append(f'#f{i} = :v{i}')

        expression = ''
        if set_parts:
            expression += 'SET ' + ', '.join(set_parts)
        if remove_parts:
            expression += ' REMOVE ' + ', '.join(remove_parts)

        names['#pk'] = key_name
        params = {
            'Key': key,
            'UpdateExpression': expression.strip(),
            'ConditionExpression': 'attribute_exists(#pk)',
            'ExpressionAttributeNames': names,
            'ReturnValues': 'ALL_NEW'
        }
        if values:
            params['ExpressionAttributeValues'] = values

        try:
            response = table.update_item(**params)
        except ClientError as e:
            if _condition_failed(e):
                raise NotFoundError(f"{key_name} {key[key_name]} not found") from e
            logger.error(f"Error updating {key} in {table.name}: {e}")
            raise InternalError('Database error while updating record') from e
        return response.get('Attributes', {})

    # ------------------------------------------------------------------
    # Works
    # ------------------------------------------------------------------

    def get_work(self, work_id: str) -> Optional[Dict[str, Any]]:
        with store_errors('reading work'):
            return self.works.get_item(Key={'workId': work_id}).get('Item')

    def put_work(self, item: Dict[str, Any]) -> None:
        item = without_nulls(item)
        try:
            self.works.put_item(Item=item, ConditionExpression='attribute_not_exists(workId)')
        except ClientError as e:
            if _condition_failed(e):
                raise ConflictError(f"Work {item['workId']} already exists") from e
            logger.error(f"Error writing work {item.get('workId')}: {e}")
            raise InternalError('Database error while saving work') from e

    def update_work(self, work_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._update(self.works, {'workId': work_id}, fields, 'workId')

    def delete_work(self, work_id: str) -> None:
        with store_errors('deleting work'):
            self.works.delete_item(Key={'workId': work_id})

    def list_works(self, employer_id: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Works newest first, optionally restricted to one employer."""
        with store_errors('listing works'):
            if employer_id:
                params = {
                    'IndexName': 'EmployerIndex',
                    'KeyConditionExpression': Key('employerId').eq(employer_id),
                    'ScanIndexForward': False
                }
                if limit:
                    params['Limit'] = limit
                return self._query_all(self.works, limit=limit, **params)

            items = self._scan_all(self.works)
        items.sort(key=lambda w: w.get('createdAt', ''), reverse=True)
        return items[:limit] if limit else items

    def list_works_for_employee(self, employee_id: str) -> List[Dict[str, Any]]:
        """Works assigned to an employee, most recently updated first."""
        with store_errors('listing employee works'):
            return self._query_all(
                self.works,
                IndexName='EmployeeIndex',
                KeyConditionExpression=Key('employeeId').eq(employee_id),
                ScanIndexForward=False
            )

    def find_works_by_id_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        with store_errors('looking up work by code'):
            return self._scan_all(self.works, FilterExpression=Attr('workId').begins_with(prefix))

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def create_application(self, item: Dict[str, Any]) -> None:
        """
        Insert an application together with its (workId, applicantId) guard.
        Raises ConflictError if a live application for the pair already exists.
        """
        guard = {
            'applicationId': application_guard_id(item['workId'], item['applicantId']),
            'guardFor': item['applicationId']
        }
        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        'Put': {
                            'TableName': self.applications_table_name,
                            'Item': without_nulls(guard),
                            'ConditionExpression': 'attribute_not_exists(applicationId)'
                        }
                    },
                    {
                        'Put': {
                            'TableName': self.applications_table_name,
                            'Item': without_nulls(item),
                            'ConditionExpression': 'attribute_not_exists(applicationId)'
                        }
                    }
                ]
            )
        except ClientError as e:
            if _condition_failed(e):
                raise ConflictError('You have already applied for this work') from e
            logger.error(f"Error creating application for work {item['workId']}: {e}")
            raise InternalError('Database error while saving application') from e

    def get_application(self, application_id: str) -> Optional[Dict[str, Any]]:
        with store_errors('reading application'):
            item = self.applications.get_item(Key={'applicationId': application_id}).get('Item')
        return None if _is_guard(item, 'applicationId') else item

    def list_applications(self, work_id: str) -> List[Dict[str, Any]]:
        """Applications for a work, newest first. Guard items are not in the index."""
        with store_errors('listing applications'):
            return self._query_all(
                self.applications,
                IndexName='WorkIndex',
                KeyConditionExpression=Key('workId').eq(work_id),
                ScanIndexForward=False
            )

    def find_applications(self, work_id: str, applicant_id: str) -> List[Dict[str, Any]]:
        with store_errors('checking application'):
            return self._query_all(
                self.applications,
                IndexName='WorkIndex',
                KeyConditionExpression=Key('workId').eq(work_id),
                FilterExpression=Attr('applicantId').eq(applicant_id),
                ScanIndexForward=False
            )

    def update_application(self, application_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._update(self.applications, {'applicationId': application_id}, fields, 'applicationId')

    def withdraw_application(self, application: Dict[str, Any], fields: Dict[str, Any],
                             allowed_statuses: tuple) -> None:
        """Set the withdrawn fields and release the uniqueness guard atomically."""
        names = {'#status': 'status'}
        status_placeholders = [f':s{i}' for i in range(len(allowed_statuses))]
        values = dict(zip(status_placeholders, allowed_statuses))
        set_parts = []
        for i, (field, value) in enumerate(fields.items()):
            names[f'#f{i}'] = field
            values[f':v{i}'] = value
            set_parts.append(f'#f{i} = :v{i}')

        guard_id = application_guard_id(application['workId'], application['applicantId'])
        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        'Update': {
                            'TableName': self.applications_table_name,
                            'Key': {'applicationId': application['applicationId']},
                            'UpdateExpression': 'SET ' + ', '.join(set_parts),
                            'ConditionExpression': f"#status IN ({', '.join(status_placeholders)})",
                            'ExpressionAttributeNames': names,
                            'ExpressionAttributeValues': values
                        }
                    },
                    {
                        'Delete': {
                            'TableName': self.applications_table_name,
                            'Key': {'applicationId': guard_id}
                        }
                    }
                ]
            )
        except ClientError as e:
            if _condition_failed(e):
                raise ConflictError('Application can no longer be withdrawn') from e
            logger.error(f"Error withdrawing application {application['applicationId']}: {e}")
            raise InternalError('Database error while withdrawing application') from e

    def delete_applications_for_work(self, work_id: str) -> int:
        """Delete every application (and its guard) referencing the work. Returns the count."""
        applications = self.list_applications(work_id)
        # A withdrawn and a re-submitted application share one guard; a batch must not repeat a key
        keys = {a['applicationId'] for a in applications}
        keys.update(application_guard_id(work_id, a['applicantId']) for a in applications)
        with store_errors('deleting applications'):
            with self.applications.batch_writer() as batch:
                for key in sorted(keys):
                    batch.delete_item(Key={'applicationId': key})
        logger.info(f"Deleted {len(applications)} applications of work {work_id}")
        return len(applications)

    # ------------------------------------------------------------------
    # Completion codes
    # ------------------------------------------------------------------

    def put_completion_code(self, item: Dict[str, Any]) -> None:
        """Overwrite the code for the work (last writer wins)."""
        with store_errors('saving completion code'):
            self.completion_codes.put_item(Item=item)

    def get_completion_code(self, work_id: str) -> Optional[Dict[str, Any]]:
        with store_errors('reading completion code'):
            return self.completion_codes.get_item(Key={'workId': work_id}).get('Item')

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def create_review(self, item: Dict[str, Any]) -> None:
        """Insert a review with its (reviewer, reviewed, work) guard. ConflictError on duplicates."""
        guard = {
            'reviewId': review_guard_id(item['reviewerId'], item['reviewedUserId'], item['workId']),
            'guardFor': item['reviewId']
        }
        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        'Put': {
                            'TableName': self.reviews_table_name,
                            'Item': without_nulls(guard),
                            'ConditionExpression': 'attribute_not_exists(reviewId)'
                        }
                    },
                    {
                        'Put': {
                            'TableName': self.reviews_table_name,
                            'Item': without_nulls(item),
                            'ConditionExpression': 'attribute_not_exists(reviewId)'
                        }
                    }
                ]
            )
        except ClientError as e:
            if _condition_failed(e):
                raise ConflictError('You have already reviewed this user for this work') from e
            logger.error(f"Error creating review for work {item['workId']}: {e}")
            raise InternalError('Database error while saving review') from e

    def get_review(self, review_id: str) -> Optional[Dict[str, Any]]:
        with store_errors('reading review'):
            item = self.reviews.get_item(Key={'reviewId': review_id}).get('Item')
        return None if _is_guard(item, 'reviewId') else item

    def delete_review(self, review: Dict[str, Any]) -> None:
        guard_id = review_guard_id(review['reviewerId'], review['reviewedUserId'], review['workId'])
        with store_errors('deleting review'):
            self.client.transact_write_items(
                TransactItems=[
                    {
                        'Delete': {
                            'TableName': self.reviews_table_name,
                            'Key': {'reviewId': review['reviewId']}
                        }
                    },
                    {
                        'Delete': {
                            'TableName': self.reviews_table_name,
                            'Key': {'reviewId': guard_id}
                        }
                    }
                ]
            )

    def _list_reviews(self, index_name: str, key_name: str, value: str,
                      review_type: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {
            'IndexName': index_name,
            'KeyConditionExpression': Key(key_name).eq(value),
            'ScanIndexForward': False
        }
        if review_type:
            params['FilterExpression'] = Attr('type').eq(review_type)
        with store_errors('listing reviews'):
            return self._query_all(self.reviews, **params)

    def list_reviews_for_user(self, user_id: str, review_type: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._list_reviews('ReviewedUserIndex', 'reviewedUserId', user_id, review_type)

    def list_reviews_for_work(self, work_id: str) -> List[Dict[str, Any]]:
        return self._list_reviews('WorkIndex', 'workId', work_id)

    def list_reviews_by_reviewer(self, reviewer_id: str) -> List[Dict[str, Any]]:
        return self._list_reviews('ReviewerIndex', 'reviewerId', reviewer_id)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        with store_errors('reading user'):
            return self.users.get_item(Key={'userId': user_id}).get('Item')

    def set_user_rating(self, user_id: str, average, count: int, timestamp: str) -> bool:
        """
        Write the rating summary unless a recompute stamped later has already written.
        Returns False when this write was superseded.
        """
        try:
            self.users.update_item(
                Key={'userId': user_id},
                UpdateExpression='SET averageRating = :avg, reviewCount = :count, ratingUpdatedAt = :ts',
                ConditionExpression='attribute_not_exists(ratingUpdatedAt) OR ratingUpdatedAt <= :ts',
                ExpressionAttributeValues={
                    ':avg': average,
                    ':count': count,
                    ':ts': timestamp
                }
            )
        except ClientError as e:
            if _condition_failed(e):
                return False
            logger.error(f"Error updating rating of user {user_id}: {e}")
            raise InternalError('Database error while updating user rating') from e
        return True
