"""Tests for visual resolution."""

import pytest
from unittest.mock import MagicMock
from PIL import Image

from scenecast.core.exceptions import SceneValidationError, VisualSearchError
from scenecast.models.schemas import Scene, VisualCandidate, VisualDimensions, VisualOptions
from scenecast.services.visual_resolver import (
    GENERIC_QUERIES,
    VisualResolver,
    build_search_query,
    generate_search_queries,
)


def write_jpeg(url, destination):
    """Stand-in for a download: writes a real 90x160 JPEG."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (90, 160), color=(200, 120, 40)).save(destination, format="JPEG")
    return destination.stat().st_size


@pytest.fixture
def candidate():
    return VisualCandidate(
        id="101",
        download_url="https://images.example.com/101.jpg",
        description="Sunrise over a quiet city",
        photographer="Ann Lee",
        dimensions=VisualDimensions.from_size(1080, 1920),
    )


@pytest.fixture
def client(candidate):
    mock_client = MagicMock()
    mock_client.search_photos.return_value = [candidate]
    mock_client.search_videos.return_value = []
    mock_client.download.side_effect = write_jpeg
    return mock_client


@pytest.fixture
def resolver(settings, logger, client):
    return VisualResolver(settings, logger, client=client)


@pytest.fixture
def options():
    return VisualOptions(max_results=15)


def test_generate_search_queries(sample_scenes):
    queries = generate_search_queries(sample_scenes[0])

    assert queries == ["sun rose quiet city", "sun rose", "quiet city"]


def test_generate_search_queries_includes_entity(sample_scenes):
    queries = generate_search_queries(sample_scenes[1])

    assert queries[0] == "lone bicycle rider main street"
    assert "Main Street" in queries
    assert len(queries) <= 5


def test_generate_search_queries_generic_without_keywords():
    assert generate_search_queries(Scene(id=1, text="Hmm.")) == GENERIC_QUERIES


def test_build_search_query():
    assert build_search_query(["a", "sun's", "city", "rose", "extra"]) == "suns city rose"
    assert build_search_query([]) == ""


def test_resolve_downloads_best_candidate(resolver, sample_scenes, session, options):
    visual = resolver.resolve(sample_scenes[0], session, options)

    selected = visual.selected
    assert selected.id == "101"
    assert selected.download_success is True
    assert selected.file_name == "scene_1_image.jpg"
    assert (session.temp_path / "scene_1_image.jpg").exists()
    assert selected.dimensions.width == 90
    assert selected.dimensions.height == 160
    assert selected.selection_reason.startswith("Score: ")
    assert visual.search_results == 1
    assert visual.search_query == "sun rose quiet city"
    assert "Ann Lee" in session.downloaded_photographers


def test_resolve_uses_fallback_without_results(resolver, client, sample_scenes, session, options):
    client.search_photos.return_value = []

    visual = resolver.resolve(sample_scenes[0], session, options)

    assert visual.selected.is_fallback is True
    assert visual.selected.id == "fallback_1"
    assert visual.selected.selection_reason == "Fallback used - no search results found"
    assert visual.selected.download_success is True


def test_resolve_records_download_failure(resolver, client, sample_scenes, session, options):
    client.download.side_effect = VisualSearchError("connection reset")

    visual = resolver.resolve(sample_scenes[0], session, options)

    assert visual.selected.download_success is False
    assert visual.selected.local_path is None
    assert "connection reset" in visual.selected.download_error
    assert session.downloaded_photographers == set()


def test_resolve_rejects_corrupt_image(resolver, client, sample_scenes, session, options):
    def write_garbage(url, destination):
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"not an image")
        return 12

    client.download.side_effect = write_garbage

    visual = resolver.resolve(sample_scenes[0], session, options)

    assert visual.selected.download_success is False
    assert not (session.temp_path / "scene_1_image.jpg").exists()


def test_search_skips_failing_query(resolver, client, candidate, sample_scenes, options):
    client.search_photos.side_effect = [VisualSearchError("timeout"), [candidate], [candidate]]

    results = resolver.search(sample_scenes[0], options)

    assert len(results) == 2
    assert client.search_photos.call_count == 3


def test_search_adds_videos_when_photos_scarce(resolver, client, sample_scenes):
    resolver.search(sample_scenes[0], VisualOptions(prefer_videos=True))

    assert client.search_videos.called


def test_process_scenes_report(resolver, sample_scenes, session, options):
    result = resolver.process_scenes(sample_scenes, session, options)

    assert result.success is True
    assert result.data.total_scenes == 2
    assert result.data.successful_downloads == 2
    assert result.data.unique_photographers == 1
    assert [s.visual.selected.scene_id for s in result.data.scenes] == [1, 2]


def test_process_scenes_fails_when_nothing_downloads(resolver, client, sample_scenes, session, options):
    client.download.side_effect = VisualSearchError("offline")

    result = resolver.process_scenes(sample_scenes, session, options)

    assert result.success is False
    assert result.data.failed_downloads == 2


def test_process_scenes_rejects_empty_list(resolver, session):
    with pytest.raises(SceneValidationError):
        resolver.process_scenes([], session)
