from typing import Optional
from datetime import datetime
from pydantic import BaseModel

class Item(BaseModel):
    storage_key: str
    created_on: Optional[datetime] = None
    size: int = 0

class GalleryEntry(BaseModel):
    name: str
    url: str
    likes: int = 0

class LikeResponse(BaseModel):
    success: bool
    likes: Optional[int] = None
    message: Optional[str] = None
