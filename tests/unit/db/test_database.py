"""Tests for the SQLite persistence gateway."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from podvault.db.database import Database
from podvault.db.repository import Repository
from podvault.utils.errors import PersistenceError

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestDatabaseSetup:
    """Tests for engine and schema creation."""

    def test_creates_file_and_parent_dirs(self, tmp_path: Path) -> None:
        """Test the database file and its directory are created."""
        path = tmp_path / "nested" / "dir" / "library.db"
        db = Database(path)

        assert path.exists()
        assert db.list_podcasts() == []
        db.close()

    def test_reopen_keeps_data(self, tmp_path: Path) -> None:
        """Test data survives reopening the same file."""
        path = tmp_path / "library.db"
        first = Database(path)
        first.upsert_podcast("p", "Persisted", "https://example.com/f", None, NOW)
        first.close()

        second = Database(path)
        assert second.get_podcast("p").title == "Persisted"
        second.close()


class TestPodcastUpsert:
    """Tests for podcast upserts keyed by feed URL."""

    def test_insert_returns_id(self, db: Database) -> None:
        """Test a new feed URL inserts a row."""
        podcast_id = db.upsert_podcast("p-1", "Show", "https://example.com/f", None, NOW)

        assert podcast_id == "p-1"
        podcast = db.get_podcast("p-1")
        assert podcast.title == "Show"
        assert podcast.last_fetched_at == NOW

    def test_conflict_keeps_existing_id(self, db: Database) -> None:
        """Test a known feed URL keeps its original id."""
        db.upsert_podcast("p-1", "Show", "https://example.com/f", None, NOW)
        podcast_id = db.upsert_podcast("p-2", "Renamed", "https://example.com/f", None, NOW)

        assert podcast_id == "p-1"
        assert db.get_podcast("p-2") is None
        assert db.get_podcast("p-1").title == "Renamed"

    def test_custom_prompt_survives_upsert(self, seeded_db: Database) -> None:
        """Test sync never overwrites the user's prompt."""
        seeded_db.update_custom_prompt("pod-1", "Be brief")

        seeded_db.upsert_podcast(
            "pod-1", "New Title", "https://example.com/feed.xml", "https://example.com/new.jpg", NOW
        )

        podcast = seeded_db.get_podcast("pod-1")
        assert podcast.custom_prompt == "Be brief"
        assert podcast.title == "New Title"
        assert podcast.artwork_url == "https://example.com/new.jpg"

    def test_lookup_by_feed_url(self, seeded_db: Database) -> None:
        """Test finding a podcast by feed URL."""
        assert seeded_db.get_podcast_by_feed_url("https://example.com/feed.xml").id == "pod-1"
        assert seeded_db.get_podcast_by_feed_url("https://other.example.com") is None

    def test_list_sorted_by_title(self, db: Database) -> None:
        """Test podcasts are listed alphabetically."""
        db.upsert_podcast("b", "Beta", "https://example.com/b", None, NOW)
        db.upsert_podcast("a", "Alpha", "https://example.com/a", None, NOW)

        assert [p.title for p in db.list_podcasts()] == ["Alpha", "Beta"]

    def test_update_prompt_unknown_podcast(self, db: Database) -> None:
        """Test updating a missing podcast reports False."""
        assert db.update_custom_prompt("missing", "x") is False


class TestEpisodeUpsert:
    """Tests for episode upserts."""

    def test_download_state_preserved(self, seeded_db: Database) -> None:
        """Test re-syncing an episode keeps its download flag and path."""
        seeded_db.update_download_status("ep-1", True, "/music/ep1.mp3")

        seeded_db.upsert_episode(
            "ep-1",
            "pod-1",
            "Episode 1 (remastered)",
            datetime(2024, 1, 1, 10, tzinfo=timezone.utc),
            3000,
            "https://cdn.example.com/ep1.mp3",
        )

        episode = seeded_db.get_episode("ep-1")
        assert episode.is_downloaded is True
        assert episode.local_file_path == "/music/ep1.mp3"
        assert episode.title == "Episode 1 (remastered)"
        assert episode.duration == 3000
        assert episode.audio_url == "https://cdn.example.com/ep1.mp3"

    def test_new_episode_not_downloaded(self, seeded_db: Database) -> None:
        """Test inserted episodes start without a download."""
        episode = seeded_db.get_episode("ep-2")
        assert episode.is_downloaded is False
        assert episode.local_file_path is None

    def test_list_newest_first(self, seeded_db: Database) -> None:
        """Test episodes are ordered by publication date, newest first."""
        assert [e.id for e in seeded_db.list_episodes("pod-1")] == ["ep-2", "ep-1"]

    def test_dates_are_utc_aware(self, seeded_db: Database) -> None:
        """Test datetimes come back timezone-aware."""
        episode = seeded_db.get_episode("ep-1")
        assert episode.pub_date == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        assert episode.pub_date.tzinfo is not None

    def test_list_downloaded(self, seeded_db: Database) -> None:
        """Test only downloaded episodes are listed."""
        seeded_db.update_download_status("ep-2", True, "/music/ep2.mp3")
        assert [e.id for e in seeded_db.list_downloaded_episodes()] == ["ep-2"]

    def test_records_are_immutable(self, seeded_db: Database) -> None:
        """Test records cannot be mutated by callers."""
        episode = seeded_db.get_episode("ep-1")
        with pytest.raises(ValidationError):
            episode.title = "changed"

    def test_orphan_episode_rejected(self, db: Database) -> None:
        """Test foreign keys are enforced."""
        with pytest.raises(PersistenceError):
            db.upsert_episode("e", "no-such-podcast", "T", NOW, 0, "https://example.com/a.mp3")


class TestDocuments:
    """Tests for summary documents."""

    def test_insert_and_list(self, seeded_db: Database) -> None:
        """Test stored documents are listed newest first."""
        seeded_db.insert_document("ep-1", "first", "prompt")
        seeded_db.insert_document("ep-1", "second", "prompt")

        documents = seeded_db.list_documents("ep-1")
        assert [d.content for d in documents] == ["second", "first"]
        assert seeded_db.has_documents("ep-1") is True
        assert seeded_db.has_documents("ep-2") is False

    def test_replace_documents(self, seeded_db: Database) -> None:
        """Test replace leaves exactly the new document."""
        seeded_db.insert_document("ep-1", "old", "p1")
        new = seeded_db.replace_documents("ep-1", "new", "p2")

        documents = seeded_db.list_documents("ep-1")
        assert [d.id for d in documents] == [new.id]
        assert documents[0].used_prompt == "p2"

    def test_list_by_podcast_includes_episode(self, seeded_db: Database) -> None:
        """Test per-podcast listing joins episode title and date."""
        seeded_db.insert_document("ep-2", "summary", "p")

        (document,) = seeded_db.list_documents_by_podcast("pod-1")
        assert document.episode_title == "Episode 2"
        assert document.episode_pub_date == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)

    def test_delete_document(self, seeded_db: Database) -> None:
        """Test deleting a single document."""
        document = seeded_db.insert_document("ep-1", "x", None)

        assert seeded_db.delete_document(document.id) is True
        assert seeded_db.get_document(document.id) is None
        assert seeded_db.delete_document(document.id) is False


class TestTransactions:
    """Tests for run_in_transaction atomicity."""

    def test_rollback_on_error(self, seeded_db: Database) -> None:
        """Test every write is undone and the error escapes unchanged."""

        class Boom(Exception):
            pass

        def work(repo: Repository) -> None:
            repo.upsert_episode("ep-3", "pod-1", "Episode 3", NOW, 0, "https://example.com/3.mp3")
            repo.update_custom_prompt("pod-1", "changed")
            raise Boom("stop")

        with pytest.raises(Boom, match="stop"):
            seeded_db.run_in_transaction(work)

        assert seeded_db.get_episode("ep-3") is None
        assert seeded_db.get_podcast("pod-1").custom_prompt is None

    def test_returns_result(self, seeded_db: Database) -> None:
        """Test the function's result is returned after commit."""
        count = seeded_db.run_in_transaction(lambda repo: len(repo.list_episodes("pod-1")))
        assert count == 2


class TestCascade:
    """Tests for cascading deletes."""

    def test_delete_podcast_cascades(self, seeded_db: Database) -> None:
        """Test episodes and documents go with their podcast."""
        seeded_db.insert_document("ep-1", "summary", None)

        assert seeded_db.delete_podcast("pod-1") is True

        assert seeded_db.get_episode("ep-1") is None
        assert seeded_db.list_documents("ep-1") == []
        stats = seeded_db.stats()
        assert (stats.podcasts, stats.episodes, stats.documents) == (0, 0, 0)

    def test_delete_missing_podcast(self, db: Database) -> None:
        """Test deleting an unknown podcast reports False."""
        assert db.delete_podcast("missing") is False

    def test_stats(self, seeded_db: Database) -> None:
        """Test library counts."""
        seeded_db.update_download_status("ep-1", True, "/music/ep1.mp3")
        seeded_db.insert_document("ep-1", "summary", None)

        stats = seeded_db.stats()
        assert stats.podcasts == 1
        assert stats.episodes == 2
        assert stats.documents == 1
        assert stats.downloaded == 1
