import logging
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

from .client import ExploreClient, FeedClientError
from .config import get_settings
from .engine import pick_active
from .media import optimize_url, poster_url
from .models import CamelModel, FeedItem, Video
from .post import book_path, share_payload

load_dotenv()
settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="VietViVu Video Feed", version="0.1.0")


def get_client() -> ExploreClient:
    return ExploreClient()


class VisibilityEntry(BaseModel):
    id: str
    ratio: float = Field(..., ge=0.0, le=1.0)


class ActivationRequest(BaseModel):
    entries: List[VisibilityEntry] = Field(default_factory=list)
    current: Optional[str] = None


class ActivationResponse(CamelModel):
    active_id: Optional[str] = None


class LikeResult(CamelModel):
    video_id: str
    liked: bool
    ok: bool


def to_feed_item(video: Video, page_url: str) -> FeedItem:
    return FeedItem(
        **video.model_dump(),
        stream_url=optimize_url(video.video_url, settings.feed_transform),
        poster_url=poster_url(video.video_url, settings.feed_transform) or None,
        book_path=book_path(video, settings),
        share=share_payload(video, page_url, settings),
    )


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "backend_configured": bool(settings.api_base_url),
    }


@app.get("/feed", response_model=List[FeedItem], response_model_by_alias=True)
async def feed(request: Request, client: ExploreClient = Depends(get_client)):
    try:
        videos = await client.fetch_videos()
    except FeedClientError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    page_url = str(request.base_url)
    return [to_feed_item(v, page_url) for v in videos if v.approved]


@app.post("/feed/{video_id}/like", response_model=LikeResult, response_model_by_alias=True)
async def like(
    video_id: str,
    liked: bool = Query(default=True),
    client: ExploreClient = Depends(get_client),
):
    ok = await client.set_liked(video_id, liked)
    if not ok:
        raise HTTPException(status_code=502, detail="Like could not be saved")
    return LikeResult(video_id=video_id, liked=liked, ok=ok)


@app.post("/feed/activation", response_model=ActivationResponse, response_model_by_alias=True)
async def activation(payload: ActivationRequest):
    winner = pick_active(((e.id, e.ratio) for e in payload.entries), settings.activation_threshold)
    return ActivationResponse(active_id=winner or payload.current)


@app.get("/", response_class=HTMLResponse)
async def index():
    return HTMLResponse(content=FEED_PAGE)


FEED_PAGE = """<!doctype html>
<html lang="vi">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>VietViVu Explore</title>
  <style>
    * { box-sizing: border-box; }
    body { margin: 0; background: #000; color: #fff; font-family: Inter, -apple-system, "Segoe UI", Roboto, Arial, sans-serif; }
    .feed { max-width: 28rem; height: 100vh; margin: 0 auto; overflow-y: scroll; scroll-snap-type: y mandatory; scrollbar-width: none; }
    .feed::-webkit-scrollbar { display: none; }
    .post { position: relative; height: 100vh; scroll-snap-align: start; display: flex; align-items: center; justify-content: center; }
    video { width: 100%; height: 100%; object-fit: contain; }
    .info { position: absolute; left: 0; right: 0; bottom: 0; padding: 16px 16px 56px; background: linear-gradient(to top, rgba(0,0,0,.7), transparent); }
    .info .who { font-weight: 800; }
    .info .desc { opacity: .9; font-size: 14px; display: -webkit-box; -webkit-line-clamp: 2; -webkit-box-orient: vertical; overflow: hidden; }
    .info .desc.open { -webkit-line-clamp: unset; }
    .actions { position: absolute; right: 10px; bottom: 120px; display: grid; gap: 14px; text-align: center; }
    .actions button { background: rgba(0,0,0,.45); color: #fff; border: 0; border-radius: 999px; width: 48px; height: 48px; font-size: 20px; cursor: pointer; }
    .actions .liked { color: #f43f5e; }
    .mute { position: absolute; top: 16px; right: 16px; }
    .heart { position: absolute; font-size: 96px; color: #f43f5e; opacity: 0; transition: opacity .2s; pointer-events: none; }
    .heart.show { opacity: 1; }
    .bar { position: absolute; left: 0; right: 0; bottom: 8px; width: 100%; }
    .center { display: flex; height: 100vh; align-items: center; justify-content: center; }
    .toast { position: fixed; left: 50%; bottom: 20px; transform: translateX(-50%); background: rgba(15,23,42,.95); padding: 10px 14px; border-radius: 12px; }
    .hidden { display: none; }
  </style>
</head>
<body>
  <div id="feed" class="feed"><div class="center">Loading videos...</div></div>
  <div id="toast" class="toast hidden"></div>
  <script>
    const HEART_MS = 800;
    const TAP_MS = 250;
    let reportSeq = 0;
    let appliedSeq = 0;
    let muted = true;
    let activeId = null;
    const posts = {};

    function toast(msg) {
      const t = document.getElementById('toast');
      t.textContent = msg; t.classList.remove('hidden');
      setTimeout(() => t.classList.add('hidden'), 2500);
    }

    function activate(id) {
      if (!id || id === activeId) return;
      if (activeId && posts[activeId]) posts[activeId].video.pause();
      activeId = id;
      const v = posts[id].video;
      if (!v.src) v.src = v.dataset.src;
      v.muted = muted; v.currentTime = 0;
      v.play().catch(() => {});
    }

    async function report(entries) {
      const seq = ++reportSeq;
      const body = { entries: entries.map(e => ({ id: e.target.dataset.id, ratio: e.intersectionRatio })) };
      const r = await fetch('/feed/activation', { method: 'POST', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify(body) }).catch(() => null);
      if (!r || !r.ok) return;
      const { activeId: winner } = await r.json();
      // responses can land out of order; a newer applied batch wins
      if (!winner || seq < appliedSeq) return;
      appliedSeq = seq;
      activate(winner);
    }

    async function like(item, el, count) {
      const prev = { liked: el.liked, count: el.count };
      el.liked = !el.liked; el.count = Math.max(0, el.count + (el.liked ? 1 : -1));
      paintLike(el, count);
      const r = await fetch(`/feed/${encodeURIComponent(item.id)}/like?liked=${el.liked}`, { method: 'POST' }).catch(() => null);
      if (!r || !r.ok) { el.liked = prev.liked; el.count = prev.count; paintLike(el, count); }
    }

    function paintLike(el, count) { el.classList.toggle('liked', el.liked); count.textContent = el.count; }

    async function share(item) {
      if (navigator.share) {
        try { await navigator.share(item.share); } catch (e) { /* cancelled */ }
        return;
      }
      try { await navigator.clipboard.writeText(item.share.url); toast('Link copied to clipboard'); }
      catch (e) { toast('Could not copy the link'); }
    }

    function render(items) {
      const feed = document.getElementById('feed');
      feed.innerHTML = '';
      const observer = new IntersectionObserver(report, { root: feed, threshold: [0.6, 0.8, 1] });
      for (const item of items) {
        const post = document.createElement('div');
        post.className = 'post'; post.dataset.id = item.id;
        post.innerHTML = `
          <video loop playsinline preload="none" data-src="${item.streamUrl}" ${item.posterUrl ? `poster="${item.posterUrl}"` : ''}></video>
          <div class="heart">&#10084;</div>
          <button class="mute actions-btn">&#128263;</button>
          <div class="actions">
            <div><button class="like">&#10084;</button><div class="count"></div></div>
            <div><button class="share">&#8599;</button></div>
            <div><button class="book">&#9992;</button></div>
          </div>
          <div class="info"><div class="who"></div><div class="title"></div><div class="desc"></div></div>
          <input class="bar" type="range" min="0" max="100" step="0.1" value="0" />`;
        post.querySelector('.who').textContent = item.uploaderUsername;
        post.querySelector('.title').textContent = item.title;
        post.querySelector('.desc').textContent = item.description || '';
        const video = post.querySelector('video');
        const bar = post.querySelector('.bar');
        const likeBtn = post.querySelector('.like');
        const count = post.querySelector('.count');
        const heart = post.querySelector('.heart');
        likeBtn.liked = false; likeBtn.count = item.likeCount; paintLike(likeBtn, count);
        let scrubbing = false;
        let tapTimer = null;
        video.addEventListener('click', () => {
          clearTimeout(tapTimer);
          tapTimer = setTimeout(() => {
            if (item.id !== activeId) return;
            video.paused ? video.play().catch(() => {}) : video.pause();
          }, TAP_MS);
        });
        video.addEventListener('dblclick', () => {
          clearTimeout(tapTimer);
          heart.classList.add('show'); setTimeout(() => heart.classList.remove('show'), HEART_MS);
          if (!likeBtn.liked) like(item, likeBtn, count);
        });
        video.addEventListener('timeupdate', () => { if (!scrubbing && video.duration) bar.value = video.currentTime / video.duration * 100; });
        bar.addEventListener('pointerdown', () => { scrubbing = true; });
        bar.addEventListener('pointerup', () => { scrubbing = false; });
        bar.addEventListener('input', () => { if (video.duration) video.currentTime = bar.value / 100 * video.duration; });
        post.querySelector('.mute').addEventListener('click', () => {
          muted = !muted;
          for (const p of Object.values(posts)) p.video.muted = muted;
        });
        likeBtn.addEventListener('click', () => like(item, likeBtn, count));
        post.querySelector('.share').addEventListener('click', () => share(item));
        post.querySelector('.book').addEventListener('click', () => item.bookPath ? (window.location.href = item.bookPath) : toast('This video is not linked to a tour'));
        post.querySelector('.desc').addEventListener('click', (e) => e.target.classList.toggle('open'));
        posts[item.id] = { video };
        feed.appendChild(post);
        observer.observe(post);
      }
    }

    async function bootstrap() {
      const feed = document.getElementById('feed');
      try {
        const r = await fetch('/feed');
        if (!r.ok) throw new Error(r.status);
        const items = await r.json();
        if (!items.length) { feed.innerHTML = '<div class="center">No approved videos yet.</div>'; return; }
        render(items);
      } catch (e) {
        feed.innerHTML = '<div class="center">Could not load videos. Try again later.</div>';
      }
    }

    bootstrap();
  </script>
</body>
</html>
"""

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vietvivu_feed.main:app", host="0.0.0.0", port=8000, reload=True)
