import logging
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from .client import FeedClientError
from .config import Settings, get_settings
from .models import Video
from .post import Engagement, Host, MediaElement, VideoPost

logger = logging.getLogger(__name__)

Visibility = Tuple[str, float]


def pick_active(entries: Iterable[Visibility], threshold: float = 0.6) -> Optional[str]:
    """Choose the one video that should play from a batch of visibility reports.

    Entries under ``threshold`` never win. Among the rest the highest ratio
    wins and equal ratios go to the entry reported last.
    """
    winner: Optional[str] = None
    best = -1.0
    for video_id, ratio in entries:
        if ratio < threshold:
            continue
        if ratio >= best:
            winner, best = video_id, ratio
    return winner


class FeedStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    FAILED = "failed"


class FeedClient(Engagement, Protocol):
    async def fetch_videos(self) -> List[Video]: ...


class FeedSession:
    """Owns the video list, the active video and the shared mute flag."""

    def __init__(
        self,
        client: FeedClient,
        host: Host,
        media_factory: Callable[[Video], MediaElement],
        *,
        page_url: str = "",
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.host = host
        self.media_factory = media_factory
        self.page_url = page_url
        self.settings = settings or get_settings()
        self._clock = clock
        self.status = FeedStatus.LOADING
        self.error: Optional[str] = None
        self.videos: Tuple[Video, ...] = ()
        self.posts: Dict[str, VideoPost] = {}
        self.active_video_id: Optional[str] = None
        self.is_muted = True
        self.closed = False

    async def load(self) -> FeedStatus:
        try:
            videos = await self.client.fetch_videos()
        except FeedClientError as exc:
            if self.closed:
                return self.status
            self.status = FeedStatus.FAILED
            self.error = str(exc)
            return self.status
        if self.closed:
            logger.debug("Feed closed before videos arrived; discarding %d", len(videos))
            return self.status
        self.videos = tuple(videos)
        self.posts = {v.id: self._make_post(v) for v in self.videos}
        self.status = FeedStatus.READY if self.videos else FeedStatus.EMPTY
        logger.info("Feed loaded with %d videos", len(self.videos))
        return self.status

    def _make_post(self, video: Video) -> VideoPost:
        return VideoPost(
            video,
            self.media_factory(video),
            self.client,
            self.host,
            is_muted=self.is_muted,
            on_toggle_mute=self.toggle_mute,
            page_url=self.page_url,
            settings=self.settings,
            clock=self._clock,
        )

    @property
    def active_post(self) -> Optional[VideoPost]:
        if self.active_video_id is None:
            return None
        return self.posts.get(self.active_video_id)

    def report_visibility(self, entries: Iterable[Visibility]) -> Optional[str]:
        if self.closed:
            return self.active_video_id
        known = [(vid, ratio) for vid, ratio in entries if vid in self.posts]
        winner = pick_active(known, self.settings.activation_threshold)
        if winner is not None and winner != self.active_video_id:
            self._activate(winner)
        return self.active_video_id

    def _activate(self, video_id: str) -> None:
        previous = self.active_post
        if previous is not None:
            previous.deactivate()
        self.active_video_id = video_id
        self.posts[video_id].activate()
        logger.debug("Active video %s", video_id)

    def toggle_mute(self) -> None:
        self.is_muted = not self.is_muted
        for post in self.posts.values():
            post.apply_mute(self.is_muted)

    def close(self) -> None:
        self.closed = True
        for post in self.posts.values():
            if post.is_active:
                post.deactivate()
        self.active_video_id = None
