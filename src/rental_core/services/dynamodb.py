"""DynamoDB service wrapper for table operations."""

from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from rental_core.config import get_settings

# Module-level singleton for connection reuse
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service() -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    This avoids creating new boto3 clients on every request.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService()
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(self, table_prefix: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            table_prefix: Table name prefix. Defaults to the configured
                DYNAMODB_TABLE_PREFIX.
        """
        self.name_prefix = table_prefix or get_settings().table_prefix
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")
        self._serializer = TypeSerializer()

    def table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        """Get DynamoDB table resource."""
        return self._dynamodb.Table(self.table_name(table))

    def serialize(self, item: dict[str, Any]) -> dict[str, Any]:
        """Convert a plain item to low-level attribute values.

        None values are dropped so optional fields are simply absent.
        """
        return {
            k: self._serializer.serialize(v) for k, v in item.items() if v is not None
        }

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Read the latest committed value

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(
            Key=key, ConsistentRead=consistent_read
        )
        item: dict[str, Any] | None = response.get("Item")
        return item

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        scan_index_forward: bool = True,
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """Query table or GSI, following pagination.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)
            scan_index_forward: Sort order (True=ascending)
            consistent_read: Strongly consistent read (base table only)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if consistent_read:
            kwargs["ConsistentRead"] = True

        items: list[dict[str, Any]] = []
        while True:
            response = self._get_table(table).query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def scan(self, table: str) -> list[dict[str, Any]]:
        """Read every item in a table, following pagination."""
        kwargs: dict[str, Any] = {}
        items: list[dict[str, Any]] = []
        while True:
            response = self._get_table(table).scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query a GSI by partition key.

        Args:
            table: Table name without prefix
            index_name: GSI name
            partition_key_name: Name of partition key attribute
            partition_key_value: Value to query
            scan_index_forward: Sort order (True=ascending)

        Returns:
            List of items
        """
        return self.query(
            table,
            Key(partition_key_name).eq(partition_key_value),
            index_name=index_name,
            scan_index_forward=scan_index_forward,
        )

    def transact_write(
        self,
        items: list[dict[str, Any]],
    ) -> bool:
        """Execute transactional write for multiple items.

        Either every write applies or none does.

        Args:
            items: List of TransactWriteItem dicts

        Returns:
            True if successful, False if a condition check cancelled the
            transaction
        """
        try:
            self._client.transact_write_items(TransactItems=items)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                return False
            raise

    # TransactWriteItem builders

    def build_put(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_names: dict[str, str] | None = None,
        expression_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build a conditional Put for transact_write."""
        op: dict[str, Any] = {
            "TableName": self.table_name(table),
            "Item": self.serialize(item),
        }
        self._add_condition(op, condition_expression, expression_names, expression_values)
        return {"Put": op}

    def build_update(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        condition_expression: str | None = None,
        expression_names: dict[str, str] | None = None,
        expression_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build a conditional Update for transact_write."""
        op: dict[str, Any] = {
            "TableName": self.table_name(table),
            "Key": self.serialize(key),
            "UpdateExpression": update_expression,
        }
        self._add_condition(op, condition_expression, expression_names, expression_values)
        return {"Update": op}

    def build_delete(self, table: str, key: dict[str, Any]) -> dict[str, Any]:
        """Build an unconditional Delete for transact_write."""
        return {"Delete": {"TableName": self.table_name(table), "Key": self.serialize(key)}}

    def _add_condition(
        self,
        op: dict[str, Any],
        condition_expression: str | None,
        expression_names: dict[str, str] | None,
        expression_values: dict[str, Any] | None,
    ) -> None:
        if condition_expression:
            op["ConditionExpression"] = condition_expression
        if expression_names:
            op["ExpressionAttributeNames"] = expression_names
        if expression_values:
            op["ExpressionAttributeValues"] = self.serialize(expression_values)
