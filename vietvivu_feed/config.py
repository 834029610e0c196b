from pydantic import BaseModel, Field
from functools import lru_cache
import os


class Settings(BaseModel):
    api_base_url: str = Field(default_factory=lambda: os.getenv("VIETVIVU_API_URL", "http://localhost:8080/vietvivu"))
    api_token: str = Field(default_factory=lambda: os.getenv("VIETVIVU_API_TOKEN", ""))
    request_timeout: float = Field(default_factory=lambda: float(os.getenv("VIETVIVU_TIMEOUT", "10")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    activation_threshold: float = 0.6
    heart_overlay_seconds: float = 0.8
    feed_transform: str = "f_auto,q_auto:good,h_800,c_limit,dpr_auto"
    tour_route: str = "/tours/{tour_id}"
    share_text: str = "Watch this video on VietViVu"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
