from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from vietvivu_feed.client import FeedClientError
from vietvivu_feed.config import Settings
from vietvivu_feed.models import SharePayload, Video
from vietvivu_feed.post import PlaybackRejected, VideoPost


class FakeMedia:
    def __init__(self, duration: float = 20.0, autoplay_allowed: bool = True) -> None:
        self.src = ""
        self.current_time = 0.0
        self.duration = duration
        self.muted = False
        self.paused = True
        self.autoplay_allowed = autoplay_allowed
        self.play_calls = 0

    def play(self) -> None:
        self.play_calls += 1
        if not self.autoplay_allowed:
            raise PlaybackRejected()
        self.paused = False

    def pause(self) -> None:
        self.paused = True


class FakeHost:
    def __init__(self, can_share: bool = True) -> None:
        self.can_share = can_share
        self.shared: List[SharePayload] = []
        self.copied: List[str] = []
        self.navigated: List[str] = []
        self.notices: List[tuple[str, str]] = []
        self.share_error: Optional[Exception] = None
        self.clipboard_error: Optional[Exception] = None

    async def share(self, payload: SharePayload) -> None:
        if self.share_error is not None:
            raise self.share_error
        self.shared.append(payload)

    async def copy_to_clipboard(self, text: str) -> None:
        if self.clipboard_error is not None:
            raise self.clipboard_error
        self.copied.append(text)

    def navigate(self, path: str) -> None:
        self.navigated.append(path)

    def notify(self, level: str, message: str) -> None:
        self.notices.append((level, message))


class FakeBackend:
    def __init__(self, videos: Optional[List[Video]] = None) -> None:
        self.videos = videos or []
        self.fail_fetch = False
        self.like_results: List[bool] = []
        self.like_calls: List[tuple[str, bool]] = []

    async def fetch_videos(self) -> List[Video]:
        if self.fail_fetch:
            raise FeedClientError("Could not load videos")
        return list(self.videos)

    async def set_liked(self, video_id: str, liked: bool) -> bool:
        self.like_calls.append((video_id, liked))
        return self.like_results.pop(0) if self.like_results else True


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def make_video(video_id: str, **overrides) -> Video:
    data = {
        "id": video_id,
        "title": f"Trip {video_id}",
        "description": "Ha Long Bay at sunrise",
        "videoUrl": f"https://res.cloudinary.com/demo/video/upload/v1/explore/{video_id}.mp4",
        "uploaderUsername": "minh",
        "uploadedAt": "2025-05-01T08:00:00",
        "likeCount": 3,
        "tourId": "tour-1",
    }
    data.update(overrides)
    return Video.model_validate(data)


@pytest.fixture()
def settings() -> Settings:
    return Settings(api_base_url="http://backend.test/vietvivu", api_token="")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend([make_video("A"), make_video("B"), make_video("C")])


@pytest.fixture()
def media_factory() -> Callable[..., FakeMedia]:
    created: dict[str, FakeMedia] = {}

    def factory(video: Video) -> FakeMedia:
        media = FakeMedia()
        created[video.id] = media
        return media

    factory.created = created  # type: ignore[attr-defined]
    return factory


@pytest.fixture()
def video_factory() -> Callable[..., Video]:
    return make_video



@pytest.fixture()
def media() -> FakeMedia:
    return FakeMedia()


@pytest.fixture()
def make_post(media, backend, host, settings, clock):
    def build(video: Optional[Video] = None, **kwargs) -> VideoPost:
        kwargs.setdefault("page_url", "https://vietvivu.test/explore")
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("clock", clock)
        return VideoPost(video or make_video("A"), kwargs.pop("media", media), backend, host, **kwargs)

    return build
