"""
EngineConfig — settings read from dcadm.yml.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_UPDATES_SERVER_URL = "https://updates.joyent.com"
DEFAULT_CONCURRENCY = 4


class EngineConfig(BaseModel):
    """Engine configuration. Every field has a working default."""

    # ── Image source ─────────────────────────────────────────────
    updates_server_url: str = DEFAULT_UPDATES_SERVER_URL
    channel: str | None = None

    # ── Execution ────────────────────────────────────────────────
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)

    # ── Target application (service directory) ───────────────────
    application_name: str = "sdc"
    application_uuid: str = ""

    # ── Persistence ──────────────────────────────────────────────
    state_dir: str = ".state"

    # ── Transport hook: "package.module:callable" returning Clients
    client_factory: str | None = None

    @property
    def image_source_url(self) -> str:
        """Default import source, with the update channel if one is set."""
        if self.channel:
            return f"{self.updates_server_url}?channel={self.channel}"
        return self.updates_server_url
