"""Shared pytest fixtures and configuration."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from scenecast.core.config import Settings
from scenecast.core.logging_config import get_logger
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import Scene, SceneAudio, SceneVisual, SelectedVisual, VisualType

SAMPLE_SCRIPT = (
    "The sun rose over the quiet city. A lone bicycle rider pedaled down Main Street "
    "while cafes opened their doors to the morning light."
)


@pytest.fixture
def settings(tmp_path):
    """Create test settings with temp directories, no credentials and no pacing delays."""
    return Settings(
        openai_api_key=None,
        pexels_api_key=None,
        elevenlabs_api_key=None,
        tts_provider="stub",
        temp_dir=str(tmp_path / "temp"),
        output_dir=str(tmp_path / "outputs"),
        storage_path=str(tmp_path / "storage"),
        audio_scene_delay_seconds=0,
        visual_scene_delay_seconds=0,
        render_scene_delay_seconds=0,
        max_parallel_tts=1,
    )


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def session(settings):
    """Create a pipeline session rooted in the test temp directory."""
    return PipelineSession.create(settings, session_id="session_test")


@pytest.fixture
def sample_script():
    return SAMPLE_SCRIPT


@pytest.fixture
def sample_scenes():
    """Two scenes with keywords, as produced by the text stage."""
    return [
        Scene(
            id=1,
            text="The sun rose over the quiet city.",
            word_count=7,
            keywords=["sun rose", "quiet city"],
            primary_keywords=["sun rose", "quiet city"],
        ),
        Scene(
            id=2,
            text="A lone bicycle rider pedaled down Main Street.",
            word_count=8,
            keywords=["lone bicycle rider", "main street", "pedaled"],
            primary_keywords=["lone bicycle rider", "main street"],
            entities=["Main Street"],
        ),
    ]


def write_clip(args):
    """Stand-in for ffmpeg: writes a non-empty file at the output path (last argument)."""
    Path(args[-1]).write_bytes(b"clip")


@pytest.fixture
def ffmpeg():
    """ffmpeg runner that produces output files without encoding."""
    runner = MagicMock()
    runner.run.side_effect = write_clip
    return runner


@pytest.fixture
def make_scene():
    """Factory for scenes whose audio (and optionally visual) files exist on disk."""

    def factory(directory: Path, scene_id: int, with_visual: bool = True, visual_type=VisualType.IMAGE) -> Scene:
        directory.mkdir(parents=True, exist_ok=True)
        audio_path = directory / f"scene_{scene_id}_audio.mp3"
        audio_path.write_bytes(b"audio")
        visual_path = directory / f"scene_{scene_id}_{visual_type.value}.jpg"
        if with_visual:
            visual_path.write_bytes(b"visual")
        return Scene(
            id=scene_id,
            text=f"Scene number {scene_id} narration text.",
            actual_duration=6,
            audio=SceneAudio(
                success=True,
                scene_id=scene_id,
                file_path=str(audio_path),
                file_name=audio_path.name,
                duration=5.4,
            ),
            visual=SceneVisual(
                selected=SelectedVisual(
                    id=f"v{scene_id}",
                    type=visual_type,
                    download_url="https://example.com/v.jpg",
                    scene_id=scene_id,
                    local_path=str(visual_path) if with_visual else None,
                    file_name=visual_path.name if with_visual else None,
                    download_success=with_visual,
                )
            ),
        )

    return factory
