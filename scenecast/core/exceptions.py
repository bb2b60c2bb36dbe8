"""Exception types raised by the scene pipeline."""


class ScenePipelineError(RuntimeError):
    """Base class for pipeline failures."""


class SceneValidationError(ValueError):
    """Input to a stage entry point is malformed (raised synchronously)."""


class SpeechSynthesisError(ScenePipelineError):
    """Narration audio could not be produced."""


class VisualSearchError(ScenePipelineError):
    """Stock-media search or download failed."""


class MediaEncodingError(ScenePipelineError):
    """The media encoder exited with a non-zero status."""

    def __init__(self, message: str, stderr: str = "", returncode: int = 0):
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            tail = self.stderr.strip().splitlines()[-5:]
            return f"{base} (exit {self.returncode}): {' | '.join(tail)}"
        return base


class SceneRenderError(ScenePipelineError):
    """A scene clip could not be rendered."""

    def __init__(self, scene_id: int, message: str):
        super().__init__(f"Scene {scene_id}: {message}")
        self.scene_id = scene_id
