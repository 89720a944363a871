"""Transient toast notifications shown by the portal"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str = "default"  # default, destructive
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


class ToastCenter:
    """Collects toasts for the host UI to render"""

    def __init__(self, limit: int = 20):
        self.limit = limit
        self.toasts: list[Toast] = []

    def toast(self, title: str, description: str, variant: str = "default") -> Toast:
        item = Toast(title=title, description=description, variant=variant)
        self.toasts.append(item)
        del self.toasts[: -self.limit]

        if item.is_error:
            logger.warning(f"❌ {title}: {description}")
        else:
            logger.info(f"✅ {title}: {description}")
        return item

    def error(self, title: str, description: str) -> Toast:
        return self.toast(title, description, variant="destructive")

    @property
    def latest(self):
        return self.toasts[-1] if self.toasts else None

    def clear(self) -> None:
        self.toasts.clear()
