import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Protocol

from .config import Settings, get_settings
from .media import optimize_url, poster_url
from .models import SharePayload, Video
from .optimistic import Optimistic, Outcome

logger = logging.getLogger(__name__)


class PlaybackRejected(Exception):
    """The runtime refused to start playback (no user gesture yet)."""


class ShareCancelled(Exception):
    pass


class ClipboardError(Exception):
    pass


class MediaElement(Protocol):
    src: str
    current_time: float
    duration: float
    muted: bool

    def play(self) -> None: ...

    def pause(self) -> None: ...


class Engagement(Protocol):
    async def set_liked(self, video_id: str, liked: bool) -> bool: ...


class Host(Protocol):
    can_share: bool

    async def share(self, payload: SharePayload) -> None: ...

    async def copy_to_clipboard(self, text: str) -> None: ...

    def navigate(self, path: str) -> None: ...

    def notify(self, level: str, message: str) -> None: ...


class PlaybackState(str, Enum):
    INACTIVE = "inactive"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class LikeState:
    liked: bool
    count: int


def share_payload(video: Video, page_url: str, settings: Optional[Settings] = None) -> SharePayload:
    s = settings or get_settings()
    return SharePayload(title=video.title, text=f"{s.share_text}: {video.title}", url=page_url)


def book_path(video: Video, settings: Optional[Settings] = None) -> Optional[str]:
    if not video.tour_id:
        return None
    s = settings or get_settings()
    return s.tour_route.format(tour_id=video.tour_id)


class VideoPost:
    """One feed item: playback, scrubbing, likes and the item's actions."""

    def __init__(
        self,
        video: Video,
        media: MediaElement,
        engagement: Engagement,
        host: Host,
        *,
        is_muted: bool = True,
        on_toggle_mute: Callable[[], None] = lambda: None,
        page_url: str = "",
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.video = video
        self.media = media
        self.engagement = engagement
        self.host = host
        self.settings = settings or get_settings()
        self.page_url = page_url
        self.state = PlaybackState.INACTIVE
        self.progress = 0.0
        self.is_expanded = False
        self.like = Optimistic(LikeState(liked=False, count=video.like_count))
        self._muted = is_muted
        self._on_toggle_mute = on_toggle_mute
        self._clock = clock
        self._heart_until = float("-inf")
        self._scrubbing = False

    @property
    def stream_url(self) -> str:
        return optimize_url(self.video.video_url, self.settings.feed_transform)

    @property
    def poster_url(self) -> str:
        return poster_url(self.video.video_url, self.settings.feed_transform)

    @property
    def is_active(self) -> bool:
        return self.state is not PlaybackState.INACTIVE

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    @property
    def is_liked(self) -> bool:
        return self.like.value.liked

    @property
    def like_count(self) -> int:
        return self.like.value.count

    @property
    def heart_visible(self) -> bool:
        return self._clock() < self._heart_until

    # playback

    def activate(self) -> None:
        if not self.media.src:
            self.media.src = self.stream_url
        self.media.muted = self._muted
        self.media.current_time = 0
        self.progress = 0.0
        self._start()

    def deactivate(self) -> None:
        self.media.pause()
        self.state = PlaybackState.INACTIVE

    def tap(self) -> None:
        if self.state is PlaybackState.PLAYING:
            self.media.pause()
            self.state = PlaybackState.PAUSED
        elif self.state is PlaybackState.PAUSED:
            self._start()

    def _start(self) -> None:
        try:
            self.media.play()
        except PlaybackRejected:
            logger.debug("Autoplay rejected for video %s", self.video.id)
            self.state = PlaybackState.PAUSED
        else:
            self.state = PlaybackState.PLAYING

    def on_time_update(self) -> None:
        if self._scrubbing:
            return
        duration = self.media.duration or 0
        if duration > 0:
            self.progress = min(100.0, self.media.current_time / duration * 100)

    # scrubbing

    def begin_scrub(self) -> None:
        self._scrubbing = True

    def scrub(self, value: float) -> None:
        value = max(0.0, min(100.0, float(value)))
        self.progress = value
        duration = self.media.duration or 0
        if duration > 0:
            self.media.current_time = value / 100 * duration

    def end_scrub(self) -> None:
        self._scrubbing = False

    def seek(self, value: float) -> None:
        self.begin_scrub()
        try:
            self.scrub(value)
        finally:
            self.end_scrub()

    # mute

    def apply_mute(self, muted: bool) -> None:
        self._muted = muted
        self.media.muted = muted

    def toggle_mute(self) -> None:
        self._on_toggle_mute()

    # engagement

    async def toggle_like(self) -> Outcome:
        current = self.like.value
        liked = not current.liked
        count = max(0, current.count + (1 if liked else -1))
        return await self.like.apply(
            replace(current, liked=liked, count=count),
            lambda: self.engagement.set_liked(self.video.id, liked),
        )

    async def double_tap(self) -> Optional[Outcome]:
        self._heart_until = self._clock() + self.settings.heart_overlay_seconds
        if self.is_liked or self.like.pending:
            return None
        return await self.toggle_like()

    def toggle_description(self) -> None:
        self.is_expanded = not self.is_expanded

    async def share(self) -> None:
        payload = share_payload(self.video, self.page_url, self.settings)
        if self.host.can_share:
            try:
                await self.host.share(payload)
            except ShareCancelled:
                pass
            return
        try:
            await self.host.copy_to_clipboard(payload.url)
        except ClipboardError:
            logger.warning("Clipboard copy failed for video %s", self.video.id)
            self.host.notify("error", "Could not copy the link")
        else:
            self.host.notify("success", "Link copied to clipboard")

    def book_now(self) -> None:
        path = book_path(self.video, self.settings)
        if path is None:
            self.host.notify("info", "This video is not linked to a tour")
            return
        self.host.navigate(path)
