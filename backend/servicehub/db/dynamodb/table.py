from __future__ import annotations

from typing import Any, Iterator

from ...infrastructure.aws_clients import dynamodb_resource
from ...settings import get_settings
from .errors import DdbInternal
from .retry import ddb_call


class DynamoTable:
    """The one table every repository writes to.

    Arguments use snake_case and are dropped when None; every call goes
    through ``ddb_call``, so callers only ever see the ``DdbError`` family.
    """

    def __init__(self, *, table_name: str, table: Any | None = None):
        self.table_name = str(table_name)
        self._table = table if table is not None else dynamodb_resource().Table(self.table_name)

    def _call(self, operation: str, method: str, *, key: dict[str, Any] | None = None, **params: Any) -> Any:
        kwargs = {name: value for name, value in params.items() if value is not None}
        if key is not None:
            kwargs["Key"] = key
        return ddb_call(
            operation,
            lambda: getattr(self._table, method)(**kwargs),
            table_name=self.table_name,
            key=key,
        )

    def get_item(self, *, key: dict[str, Any]) -> dict[str, Any] | None:
        return self._call("GetItem", "get_item", key=key).get("Item")

    def put_item(self, *, item: dict[str, Any], condition_expression: str | None = None) -> dict[str, Any]:
        return self._call("PutItem", "put_item", Item=item, ConditionExpression=condition_expression)

    def delete_item(self, *, key: dict[str, Any], condition_expression: str | None = None) -> dict[str, Any]:
        return self._call("DeleteItem", "delete_item", key=key, ConditionExpression=condition_expression)

    def update_item(
        self,
        *,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_names: dict[str, str] | None,
        expression_attribute_values: dict[str, Any],
        condition_expression: str | None = None,
        return_values: str = "ALL_NEW",
    ) -> dict[str, Any] | None:
        resp = self._call(
            "UpdateItem",
            "update_item",
            key=key,
            UpdateExpression=update_expression,
            ExpressionAttributeNames=expression_attribute_names or None,
            ExpressionAttributeValues=expression_attribute_values,
            ConditionExpression=condition_expression,
            ReturnValues=return_values,
        )
        return resp.get("Attributes")

    def _pages(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None,
        scan_index_forward: bool,
        page_size: int | None,
    ) -> Iterator[list[dict[str, Any]]]:
        start_key: dict[str, Any] | None = None
        while True:
            resp = self._call(
                "Query",
                "query",
                KeyConditionExpression=key_condition_expression,
                IndexName=index_name,
                ScanIndexForward=bool(scan_index_forward),
                Limit=page_size,
                # Absent on the first page; DynamoDB rejects an empty one.
                ExclusiveStartKey=start_key or None,
            )
            yield resp.get("Items") or []
            start_key = resp.get("LastEvaluatedKey")
            if not start_key:
                return

    def query_all(
        self,
        *,
        key_condition_expression: Any,
        index_name: str | None = None,
        scan_index_forward: bool = True,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Every matching item in index order, following LastEvaluatedKey (stops early at ``limit``)."""
        out: list[dict[str, Any]] = []
        for page in self._pages(
            key_condition_expression=key_condition_expression,
            index_name=index_name,
            scan_index_forward=scan_index_forward,
            page_size=int(limit) if limit else None,
        ):
            out.extend(page)
            if limit and len(out) >= limit:
                return out[:limit]
        return out


def get_main_table() -> DynamoTable:
    s = get_settings()
    if not s.ddb_table_name:
        raise DdbInternal(message="DDB_TABLE_NAME is not set", operation="Config")
    return DynamoTable(table_name=s.ddb_table_name)
