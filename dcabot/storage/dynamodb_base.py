#!/usr/bin/env python3
"""
Base DynamoDB Storage Class

Shared boto3 plumbing for the DynamoDB-backed bot store and action queue:
table bootstrap, item CRUD with optional conditions, paginated scans and
conversion between Python floats and DynamoDB Decimals.
"""

import logging
import os
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class DynamoDBBase:
    """Base class for DynamoDB-backed storage"""

    def __init__(self, region_name: str = None, endpoint_url: str = None):
        """
        Initialize DynamoDB resources

        Args:
            region_name: AWS region (defaults to env var AWS_REGION or us-east-1)
            endpoint_url: Optional endpoint (e.g. DynamoDB Local)
        """
        self.region_name = region_name or os.getenv('AWS_REGION', 'us-east-1')
        self.endpoint_url = endpoint_url or os.getenv('DYNAMODB_ENDPOINT_URL') or None

        try:
            self.dynamodb = boto3.resource('dynamodb', region_name=self.region_name,
                                           endpoint_url=self.endpoint_url)
        except Exception as e:
            logger.error(f"Failed to connect to DynamoDB: {e}")
            raise

    def ensure_table(self, table_name: str, hash_key: str):
        """
        Return the table, creating it with a single string hash key if missing
        """
        table = self.dynamodb.Table(table_name)
        try:
            table.load()
            return table
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                raise

        logger.info(f"Creating DynamoDB table: {table_name}")
        try:
            table = self.dynamodb.create_table(
                TableName=table_name,
                KeySchema=[{'AttributeName': hash_key, 'KeyType': 'HASH'}],
                AttributeDefinitions=[{'AttributeName': hash_key, 'AttributeType': 'S'}],
                BillingMode='PAY_PER_REQUEST'
            )
            table.wait_until_exists()
            logger.info(f"✅ Created table: {table_name}")
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceInUseException':
                raise
            logger.info(f"Table {table_name} already exists")
            table = self.dynamodb.Table(table_name)
        return table

    def put_item(self, table, item: Dict[str, Any]):
        table.put_item(Item=self.convert_number_to_decimal(item))

    def get_item(self, table, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = table.get_item(Key=key)
        item = response.get('Item')
        return self.convert_decimal_to_number(item) if item else None

    def delete_item(self, table, key: Dict[str, Any], condition: Any = None) -> bool:
        """
        Delete an item, optionally only if a condition holds

        Returns:
            True if deleted, False if the condition check failed
        """
        kwargs = {'Key': key}
        if condition is not None:
            kwargs['ConditionExpression'] = condition
        try:
            table.delete_item(**kwargs)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                logger.debug(f"Condition check failed for delete of {key}")
                return False
            raise

    def scan_with_filter(self, table, filter_expression: Any = None) -> List[Dict[str, Any]]:
        """Scan a table (all pages) with an optional filter"""
        items = []
        scan_kwargs = {}
        if filter_expression is not None:
            scan_kwargs['FilterExpression'] = filter_expression

        response = table.scan(**scan_kwargs)
        items.extend(response.get('Items', []))

        while 'LastEvaluatedKey' in response:
            scan_kwargs['ExclusiveStartKey'] = response['LastEvaluatedKey']
            response = table.scan(**scan_kwargs)
            items.extend(response.get('Items', []))

        return [self.convert_decimal_to_number(item) for item in items]

    def convert_decimal_to_number(self, obj: Any) -> Any:
        """Convert DynamoDB Decimal types to Python int/float"""
        if isinstance(obj, list):
            return [self.convert_decimal_to_number(item) for item in obj]
        elif isinstance(obj, dict):
            return {k: self.convert_decimal_to_number(v) for k, v in obj.items()}
        elif isinstance(obj, Decimal):
            if obj % 1 == 0:
                return int(obj)
            return float(obj)
        return obj

    def convert_number_to_decimal(self, obj: Any) -> Any:
        """Convert Python floats to Decimal for DynamoDB storage"""
        if isinstance(obj, list):
            return [self.convert_number_to_decimal(item) for item in obj]
        elif isinstance(obj, dict):
            return {k: self.convert_number_to_decimal(v) for k, v in obj.items()}
        elif isinstance(obj, bool):
            return obj
        elif isinstance(obj, float):
            return Decimal(str(obj))
        return obj
