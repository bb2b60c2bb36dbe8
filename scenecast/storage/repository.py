"""Storage repository for per-session scene state."""

import json
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from scenecast.core.config import Settings
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import Scene

STAGE_SEGMENTED = "segmented"
STAGE_AUDIO = "audio"
STAGE_VISUALS = "visuals"
STAGE_COMPILED = "compiled"
STAGES = (STAGE_SEGMENTED, STAGE_AUDIO, STAGE_VISUALS, STAGE_COMPILED)
SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def validate_session_id(session_id: str) -> str:
    """
    Reject ids that could escape the storage directory.

    Raises:
        ValueError: If the id has characters other than letters, digits, "_" and "-"
    """
    if not isinstance(session_id, str) or not SESSION_ID_PATTERN.fullmatch(session_id):
        raise ValueError(f"Invalid session id: {session_id!r}")
    return session_id


class SceneRepository:
    """Saves scenes after each stage so a later stage can resume by session id."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the repository.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.storage_path = Path(settings.storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

    def _session_dir(self, session_id: str) -> Path:
        return self.storage_path / validate_session_id(session_id)

    def save_stage(
        self,
        session: PipelineSession,
        stage: str,
        scenes: list[Scene],
        extra: Optional[dict[str, Any]] = None,
    ) -> Path:
        """
        Save the session and its scenes after a stage.

        Args:
            session: Pipeline session
            stage: One of STAGES
            scenes: Scenes as of the end of the stage
            extra: Optional stage payload (e.g. the compiled manifest)

        Returns:
            Path to the written file
        """
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage}")

        session_dir = self._session_dir(session.session_id)
        session_dir.mkdir(parents=True, exist_ok=True)
        file_path = session_dir / f"{stage}.json"

        payload = {
            "stage": stage,
            "saved_at": datetime.now().isoformat(),
            "session": session.to_dict(),
            "scenes": [scene.model_dump(mode="json") for scene in scenes],
            "extra": extra or {},
        }
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

        self.logger.info(f"Saved {stage} state for {session.session_id} ({len(scenes)} scenes)")
        return file_path

    def load_stage(self, session_id: str, stage: str) -> Optional[tuple[PipelineSession, list[Scene], dict[str, Any]]]:
        """
        Load a saved stage.

        Args:
            session_id: Session identifier
            stage: One of STAGES

        Returns:
            (session, scenes, extra), or None if not saved
        """
        file_path = self._session_dir(session_id) / f"{stage}.json"
        if not file_path.exists():
            self.logger.warning(f"No {stage} state for session {session_id}")
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            payload = json.load(f)

        session = PipelineSession.from_dict(payload["session"])
        scenes = [Scene.model_validate(s) for s in payload.get("scenes", [])]
        return session, scenes, payload.get("extra", {})

    def load_latest(self, session_id: str) -> Optional[tuple[str, PipelineSession, list[Scene]]]:
        """
        Load the most advanced stage saved for a session.

        Returns:
            (stage, session, scenes), or None if nothing is saved
        """
        for stage in reversed(STAGES):
            if (self._session_dir(session_id) / f"{stage}.json").exists():
                loaded = self.load_stage(session_id, stage)
                if loaded:
                    session, scenes, _ = loaded
                    return stage, session, scenes
        return None

    def list_sessions(self) -> list[str]:
        """List saved session ids."""
        sessions = sorted(p.name for p in self.storage_path.iterdir() if p.is_dir())
        self.logger.debug(f"Found {len(sessions)} sessions")
        return sessions

    def delete_session(self, session_id: str) -> bool:
        """Remove all saved state for a session. Returns True if anything was deleted."""
        session_dir = self._session_dir(session_id)
        if not session_dir.exists():
            return False
        shutil.rmtree(session_dir)
        self.logger.info(f"Deleted stored state for {session_id}")
        return True
