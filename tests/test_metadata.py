from ytdlp_runner.models.metadata import Metadata


class TestMetadata:
    def test_typed_fields(self):
        metadata = Metadata.model_validate(
            {"id": "abc", "title": "A Video", "duration": 12.5, "view_count": 7}
        )
        assert metadata.id == "abc"
        assert metadata.duration == 12.5
        assert metadata.view_count == 7
        assert metadata.display_title == "A Video"

    def test_keys_match_case_insensitively(self):
        metadata = Metadata.model_validate({"ID": "abc", "Uploader": "someone"})
        assert metadata.id == "abc"
        assert metadata.uploader == "someone"

    def test_exact_case_wins(self):
        metadata = Metadata.model_validate({"Title": "loose", "title": "exact"})
        assert metadata.title == "exact"

        metadata = Metadata.model_validate({"title": "exact", "TITLE": "loose"})
        assert metadata.title == "exact"

    def test_unknown_keys_are_kept(self):
        metadata = Metadata.model_validate({"id": "abc", "age_limit": 18})
        assert metadata.model_extra == {"age_limit": 18}

    def test_null_lists_become_empty(self):
        metadata = Metadata.model_validate({"tags": None, "formats": None})
        assert metadata.tags == []
        assert metadata.formats == []

    def test_display_title_fallbacks(self):
        assert Metadata(id="abc").display_title == "abc"
        assert Metadata().display_title == "Unknown Title"
