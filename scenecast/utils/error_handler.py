"""Error Handler - provides readable error messages and fallback hints."""

from typing import Optional


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a readable error message.

    Args:
        operation: What operation was being performed (e.g., "Rendering scene clip")
        error: The exception that occurred
        context: Additional context (e.g., {"scene_id": 3, "session_id": "session_..."})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    context_str = ""
    if context:
        context_str = f" ({', '.join(f'{k}={v}' for k, v in context.items())})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {type(error).__name__}: {error}"
    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"
    return message


def get_fallback_suggestion(service: str, error: Exception) -> Optional[str]:
    """
    Get a suggestion for how to handle a service failure.

    Args:
        service: Service name ("Speech Synthesis", "Visual Search", "Media Encoding", "LLM")
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()
    rate_limited = "rate limit" in error_msg or "429" in error_msg
    network = "network" in error_msg or "timeout" in error_msg or "timed out" in error_msg

    if service == "Speech Synthesis":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check your TTS credentials in .env or set TTS_PROVIDER=gtts. This scene will have no audio."
        elif rate_limited:
            return "Speech provider rate limit exceeded. Raise AUDIO_SCENE_DELAY_SECONDS and retry."
        elif network:
            return "Network error reaching the speech provider. The scene is skipped at render time."
        return "Narration failed for this scene. It will be excluded from the final video."

    elif service == "Visual Search":
        if "401" in error_msg or "403" in error_msg or "api key" in error_msg:
            return "Check PEXELS_API_KEY in .env. Falling back to the default image."
        elif rate_limited:
            return "Pexels rate limit exceeded. Wait a few minutes. Falling back to the default image."
        elif network:
            return "Network error. Check your internet connection. Falling back to the default image."
        return "Stock-media lookup failed. Falling back to the default image."

    elif service == "Media Encoding":
        if "no such file" in error_msg or "not found" in error_msg:
            return "Make sure ffmpeg and ffprobe are installed and on PATH (or set FFMPEG_BINARY)."
        elif "invalid data" in error_msg:
            return "An input file is corrupt. Re-run the audio or visuals stage for this scene."
        return "Encoding failed. The scene is skipped; check the ffmpeg output above."

    elif service == "LLM":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check your OPENAI_API_KEY in .env file. Falling back to sentence segmentation."
        elif rate_limited:
            return "OpenAI rate limit exceeded. Falling back to sentence segmentation."
        elif network:
            return "Network error. Check your internet connection. Falling back to sentence segmentation."
        return "Semantic segmentation failed. Falling back to sentence segmentation."

    return None
