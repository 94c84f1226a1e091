"""
    Request-scoped access to the gateways built once in the app lifespan.
"""
from fastapi import Request
from app.storage.dynamodb import DynamoDBService
from app.storage.s3 import S3Service

def get_s3_service(request: Request) -> S3Service:
    """Object store gateway holding the gallery images."""
    return request.app.state.s3

def get_dynamodb_service(request: Request) -> DynamoDBService:
    """Counter store gateway holding the like counts."""
    return request.app.state.db
