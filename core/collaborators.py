"""
External collaborator interfaces.

The capture core depends on these at its boundary but never calls them from
the sampling loop:

- ModelPathResolver: supplies the model file handed to load_model()
- SessionStore: persists completed session summaries
- AlertSink: user notifications / alert sound
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .config import MODEL_CONFIG, ModelConfig
from .errors import ModelLoadError

logger = logging.getLogger(__name__)


class ModelPathResolver(ABC):
    """Resolves the pose model location"""

    @abstractmethod
    def resolve(self) -> Path:
        """
        Return an existing model path.

        Raises:
            ModelLoadError: If the model file is missing
        """
        pass


class ResourceModelPathResolver(ModelPathResolver):
    """Looks for the model under the application resource directory"""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or MODEL_CONFIG

    def candidate(self) -> Path:
        return Path(self.config.resource_dir) / self.config.model_filename

    def resolve(self) -> Path:
        path = self.candidate()
        if not path.exists():
            raise ModelLoadError(f"Model missing at {path}", path=str(path), missing=True)
        return path


class SessionSummary(BaseModel):
    """Completed tracking session, as handed to the persistence layer"""
    id: str = Field(..., description="Session identifier (UUID)")
    start_time: str = Field(..., description="ISO-8601 start timestamp")
    end_time: str = Field(..., description="ISO-8601 end timestamp")
    duration_sec: int = Field(..., ge=0)
    avg_score: int = Field(..., ge=0, le=100)
    good_time_sec: int = Field(..., ge=0)
    bad_time_sec: int = Field(..., ge=0)
    breakdown_json: str = Field("{}", description="Per-metric score breakdown")


class SessionStore(ABC):
    """Persistence layer for session summaries"""

    @abstractmethod
    def save_session(self, summary: SessionSummary) -> None:
        pass


class AlertSink(ABC):
    """Notification / sound sink for user alerts"""

    @abstractmethod
    def notify(self, title: str, body: str) -> None:
        pass

    @abstractmethod
    def play_alert_sound(self) -> None:
        pass


class LoggingAlertSink(AlertSink):
    """Headless alert sink that only logs"""

    def notify(self, title: str, body: str) -> None:
        logger.info(f"[alert] {title}: {body}")

    def play_alert_sound(self) -> None:
        logger.info("[alert] BEEP")
