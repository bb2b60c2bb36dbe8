"""Per-run pipeline session state."""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from scenecast.core.config import Settings
from scenecast.utils.io_utils import generate_session_id


class PipelineSession(BaseModel):
    """
    Mutable state shared by the stages of one pipeline run.

    A session is created once per script and passed explicitly to every
    stage, so two runs never see each other's photographers or totals.
    """

    session_id: str = Field(..., description="Unique session identifier")
    temp_dir: str = Field(..., description="Directory for this session's intermediate files")
    output_dir: str = Field(..., description="Directory for compiled videos")
    total_audio_duration: float = Field(default=0.0, description="Sum of measured narration durations")
    processed_scene_ids: list[int] = Field(default_factory=list, description="Scenes with narration audio")
    downloaded_photographers: set[str] = Field(default_factory=set, description="Photographers already used")
    rendered_scene_ids: list[int] = Field(default_factory=list, description="Scenes with a rendered clip")
    started_at: datetime = Field(default_factory=datetime.now, description="Session creation time")

    @classmethod
    def create(cls, settings: Settings, session_id: Optional[str] = None) -> "PipelineSession":
        """
        Create a session with its own temp directory.

        Args:
            settings: Application settings
            session_id: Optional explicit identifier

        Returns:
            New session with directories created
        """
        session_id = session_id or generate_session_id()
        temp_dir = Path(settings.temp_dir) / session_id
        output_dir = Path(settings.output_dir)
        temp_dir.mkdir(parents=True, exist_ok=True)
        output_dir.mkdir(parents=True, exist_ok=True)
        return cls(session_id=session_id, temp_dir=str(temp_dir), output_dir=str(output_dir))

    @property
    def temp_path(self) -> Path:
        return Path(self.temp_dir)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    def ensure_dirs(self) -> None:
        """Recreate directories (e.g. after a session is reloaded from storage)."""
        self.temp_path.mkdir(parents=True, exist_ok=True)
        self.output_path.mkdir(parents=True, exist_ok=True)

    def record_audio(self, scene_id: int, duration: float) -> None:
        self.total_audio_duration += duration
        if scene_id not in self.processed_scene_ids:
            self.processed_scene_ids.append(scene_id)

    def record_photographer(self, photographer: Optional[str]) -> None:
        if photographer:
            self.downloaded_photographers.add(photographer)

    def reset_audio(self) -> None:
        self.total_audio_duration = 0.0
        self.processed_scene_ids = []

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PipelineSession":
        return cls.model_validate(data)
