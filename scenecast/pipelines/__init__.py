"""Pipeline orchestrators for SceneCast."""

from scenecast.pipelines.run_full_pipeline import ScenePipeline, main

__all__ = ["ScenePipeline", "main"]
