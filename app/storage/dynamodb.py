from typing import Dict
from botocore.exceptions import BotoCoreError, ClientError
import logging

from app.exceptions import CounterStoreError, error_code
from app.settings import Settings
from app.storage.session import build_session, client_kwargs

log = logging.getLogger(__name__)

LIKES_PARTITION = "Likes"
LIKES_ATTRIBUTE = "likes"

# -------------------------
# DynamoDB Service
# -------------------------
class DynamoDBService:
    def __init__(self, settings: Settings, session=None):
        self.table_name = settings.likes_table
        session = session or build_session(settings)

        self.resource = session.resource("dynamodb", **client_kwargs(settings))
        self.table = self.resource.Table(self.table_name)
        log.info("Initialized DynamoDB resource for table %s", self.table_name)

    # Refer here: https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/dynamodb/client/create_table.html
    def ensure_table(self):
        try:
            self.table.load()
            log.debug("Table %s already exists", self.table_name)
            return
        except ClientError as e:
            if error_code(e) != "ResourceNotFoundException":
                log.error("Failed to check table: %s", e)
                raise CounterStoreError("ensure_table", self.table_name, e) from e
        except BotoCoreError as e:
            raise CounterStoreError("ensure_table", self.table_name, e) from e

        try:
            table = self.resource.create_table(
                TableName=self.table_name,
                KeySchema=[
                    {"AttributeName": "partition_key", "KeyType": "HASH"},
                    {"AttributeName": "row_key", "KeyType": "RANGE"},
                ],
                AttributeDefinitions=[
                    {"AttributeName": "partition_key", "AttributeType": "S"},
                    {"AttributeName": "row_key", "AttributeType": "S"},
                ],
                BillingMode="PAY_PER_REQUEST",
            )
            table.wait_until_exists()
        except ClientError as e:
            # Lost a creation race with another instance
            if error_code(e) != "ResourceInUseException":
                raise CounterStoreError("ensure_table", self.table_name, e) from e
            log.debug("Table %s created concurrently, waiting for it", self.table_name)
            try:
                self.table.wait_until_exists()
            except (BotoCoreError, ClientError) as wait_error:
                raise CounterStoreError("ensure_table", self.table_name, wait_error) from wait_error
            return
        except BotoCoreError as e:
            raise CounterStoreError("ensure_table", self.table_name, e) from e
        log.info("Created table %s", self.table_name)

    @staticmethod
    def _key(item_key: str) -> Dict[str, str]:
        return {"partition_key": LIKES_PARTITION, "row_key": item_key}

    def get_count(self, item_key: str) -> int:
        try:
            resp = self.table.get_item(Key=self._key(item_key), ConsistentRead=True)
        except (BotoCoreError, ClientError) as e:
            raise CounterStoreError("get_count", item_key, e) from e
        item = resp.get("Item")
        if not item:
            return 0
        return int(item.get(LIKES_ATTRIBUTE, 0))

    def increment_count(self, item_key: str) -> int:
        """Adds one like server-side; ADD creates the counter at 1 when absent."""
        try:
            resp = self.table.update_item(
                Key=self._key(item_key),
                UpdateExpression="ADD #likes :one",
                ExpressionAttributeNames={"#likes": LIKES_ATTRIBUTE},
                ExpressionAttributeValues={":one": 1},
                ReturnValues="UPDATED_NEW",
            )
        except (BotoCoreError, ClientError) as e:
            raise CounterStoreError("increment_count", item_key, e) from e
        likes = int(resp["Attributes"][LIKES_ATTRIBUTE])
        log.debug("Incremented likes for %s to %d", item_key, likes)
        return likes

    def close(self):
        log.info("Closed DynamoDB resource")
