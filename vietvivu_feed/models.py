from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Video(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    video_url: str
    uploader_username: str = ""
    uploaded_at: Optional[datetime] = None
    like_count: int = Field(default=0, ge=0)
    tour_id: Optional[str] = None
    approved: bool = True


class VideoRequest(CamelModel):
    title: str
    description: Optional[str] = None
    video_url: str
    tour_id: Optional[str] = None


class SharePayload(CamelModel):
    title: str
    text: str
    url: str


class FeedItem(Video):
    stream_url: str
    poster_url: Optional[str] = None
    book_path: Optional[str] = None
    share: SharePayload
