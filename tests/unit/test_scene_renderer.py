"""Tests for per-scene clip rendering."""

import pytest
from pathlib import Path
from unittest.mock import MagicMock

from scenecast.core.exceptions import MediaEncodingError, SceneRenderError
from scenecast.models.schemas import CompileOptions
from scenecast.services.scene_renderer import SceneRenderer, resolve_preset, scale_and_pad_filter


@pytest.fixture
def renderer(settings, logger, ffmpeg):
    return SceneRenderer(settings, logger, ffmpeg=ffmpeg, media_inspector=MagicMock())


def test_resolve_preset():
    assert resolve_preset("1080p") == (1080, 1920, "4000k")
    assert resolve_preset("480p") == (480, 854, "1000k")
    assert resolve_preset("4k") == (720, 1280, "2500k")


def test_scale_and_pad_filter():
    assert scale_and_pad_filter(720, 1280) == (
        "scale=720:1280:force_original_aspect_ratio=decrease,pad=720:1280:(ow-iw)/2:(oh-ih)/2,setsar=1"
    )


def test_build_args_for_still_image(renderer):
    args = renderer.build_args(Path("v.jpg"), Path("a.mp3"), Path("out.mp4"), 6, CompileOptions(resolution="720p"))

    assert args[:3] == ["-y", "-loop", "1"]
    assert args[args.index("-t") + 1] == "6"
    assert args[args.index("-b:v") + 1] == "2500k"
    assert args[args.index("-pix_fmt") + 1] == "yuv420p"
    assert args[-1] == "out.mp4"


def test_build_args_for_video_loops_stream(renderer):
    args = renderer.build_args(Path("v.mp4"), Path("a.mp3"), Path("out.mp4"), 4, CompileOptions(), is_video=True)

    assert args[1:3] == ["-stream_loop", "-1"]


def test_render_success(renderer, ffmpeg, session, make_scene):
    scene = make_scene(session.temp_path, 1)

    result = renderer.render(scene, session, CompileOptions())

    assert result.success is True
    assert result.file_name == "temp_scene_1.mp4"
    assert result.duration == 6.0
    ffmpeg.run.assert_called_once()


def test_missing_visual_never_starts_encoder(renderer, ffmpeg, session, make_scene):
    """Precondition failures are raised before ffmpeg runs."""
    scene = make_scene(session.temp_path, 1, with_visual=False)

    with pytest.raises(SceneRenderError):
        renderer.render(scene, session, CompileOptions())
    ffmpeg.run.assert_not_called()


def test_empty_audio_file_rejected(renderer, ffmpeg, session, make_scene):
    scene = make_scene(session.temp_path, 1)
    Path(scene.audio.file_path).write_bytes(b"")

    with pytest.raises(SceneRenderError):
        renderer.render(scene, session, CompileOptions())
    ffmpeg.run.assert_not_called()


def test_render_all_records_failures(renderer, ffmpeg, session, make_scene):
    scenes = [make_scene(session.temp_path, 1), make_scene(session.temp_path, 2)]
    ffmpeg.run.side_effect = [None, MediaEncodingError("ffmpeg failed", stderr="boom", returncode=1)]
    (session.temp_path / "temp_scene_1.mp4").write_bytes(b"clip")

    results = renderer.render_all(scenes, session, CompileOptions())

    assert [r.success for r in results] == [True, False]
    assert "boom" in results[1].error
    assert session.rendered_scene_ids == [1]


def test_clip_duration_measured_when_missing(renderer, session, make_scene):
    scene = make_scene(session.temp_path, 1).model_copy(update={"actual_duration": None})
    renderer.media_inspector.get_duration.return_value = 4.2

    assert renderer.clip_duration(scene, Path(scene.audio.file_path)) == 5
