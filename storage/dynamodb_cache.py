"""DynamoDB-backed cache store."""
import json
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from storage.cache_store import CacheEntry, CacheStore

logger = logging.getLogger(__name__)


class DynamoDBCacheStore(CacheStore):
    """
    Cache store keeping one item per key.

    Item layout: ``cache_key`` (hash key), ``cached_at`` (epoch ms) and
    ``payload`` (JSON text, avoids DynamoDB's Decimal conversion of floats).
    """

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBCacheStore for table: {table_name}")

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Read a cache entry.

        Unreadable items and read errors are reported as a missing entry.

        Args:
            key: Cache key

        Returns:
            CacheEntry or None
        """
        try:
            response = self.table.get_item(Key={'cache_key': key})
        except ClientError as e:
            logger.error(f"Error reading cache entry '{key}': {e}")
            return None

        item = response.get('Item')
        if not item:
            return None

        try:
            return CacheEntry(
                value=json.loads(item['payload']),
                timestamp=int(item['cached_at'])
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring corrupt cache entry '{key}': {e}")
            return None

    def set(self, key: str, value: Any, timestamp: int) -> None:
        """
        Write a cache entry. Write errors are logged, not raised.

        Args:
            key: Cache key
            value: JSON-serializable value
            timestamp: Write time in epoch milliseconds
        """
        try:
            self.table.put_item(Item={
                'cache_key': key,
                'cached_at': int(timestamp),
                'payload': json.dumps(value)
            })
        except ClientError as e:
            logger.error(f"Error writing cache entry '{key}': {e}")

    def claim(self, key: str, timestamp: int, older_than: int) -> bool:
        """
        Conditionally stamp ``key`` so concurrent containers cannot both claim it.

        Args:
            key: Throttle key
            timestamp: New stamp in epoch milliseconds
            older_than: Existing stamps below this value may be replaced

        Returns:
            True if this caller won the claim
        """
        try:
            self.table.put_item(
                Item={
                    'cache_key': key,
                    'cached_at': int(timestamp),
                    'payload': json.dumps(None)
                },
                ConditionExpression='attribute_not_exists(cache_key) OR cached_at < :cutoff',
                ExpressionAttributeValues={':cutoff': int(older_than)}
            )
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                return False
            logger.error(f"Error claiming '{key}': {e}")
            return False
