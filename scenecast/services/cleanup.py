"""Cleanup of per-session intermediate files."""

from typing import Any, Optional

from scenecast.core.session import PipelineSession
from scenecast.storage.repository import SceneRepository

TEMP_FILE_PATTERNS = ("scene_*", "temp_scene_*", "concat_list.txt", "master_subtitles.vtt")


def cleanup_session(
    session: PipelineSession,
    logger: Any,
    repository: Optional[SceneRepository] = None,
) -> dict[str, Any]:
    """
    Delete a session's temp files and, optionally, its stored state.

    Files that cannot be removed are logged and counted, not raised.

    Args:
        session: Session to clean
        logger: Logger instance
        repository: Optional repository holding the session's saved stages

    Returns:
        Dict with files_deleted, files_failed and state_deleted
    """
    deleted = 0
    failed = 0
    temp_path = session.temp_path
    if temp_path.exists():
        for pattern in TEMP_FILE_PATTERNS:
            for path in temp_path.glob(pattern):
                if not path.is_file():
                    continue
                try:
                    path.unlink()
                    deleted += 1
                except OSError as e:
                    failed += 1
                    logger.warning(f"⚠️ Could not delete {path}: {e}")
        try:
            temp_path.rmdir()
        except OSError:
            logger.debug(f"Temp directory not empty, leaving it: {temp_path}")

    state_deleted = repository.delete_session(session.session_id) if repository else False
    logger.info(f"🧹 Cleaned session {session.session_id}: {deleted} files deleted, {failed} failed")
    return {"files_deleted": deleted, "files_failed": failed, "state_deleted": state_deleted}
