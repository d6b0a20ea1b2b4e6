"""Unit tests for feature list document I/O."""

import json
from pathlib import Path

import pytest

from workflow_pilot.features import (
    DocumentShape,
    FeatureListNotFoundError,
    InvalidFeatureListError,
    feature_list_from_dict,
    load_feature_list,
    save_feature_list,
)
from workflow_pilot.features.document import detect_shape

FLAT_DOCUMENT = {
    "version": "1.0.0",
    "project": {"name": "demo", "description": "Demo"},
    "sprints": [{"number": 1, "status": "active"}],
    "features": [
        {"id": "a", "name": "A", "sprint": 1},
        {"id": "b", "name": "B", "sprint": 1, "dependsOn": ["a"]},
    ],
}

SPRINTED_DOCUMENT = {
    "project": {"name": "demo"},
    "sprints": [
        {"number": 1, "features": [{"id": "a", "name": "A"}]},
        {"number": 2, "features": [{"id": "b", "name": "B"}, {"id": "c", "name": "C"}]},
    ],
}


@pytest.mark.unit
class TestDetectShape:
    """Tests for detect_shape."""

    def test_flat(self) -> None:
        assert detect_shape(FLAT_DOCUMENT) == DocumentShape.FLAT

    def test_sprinted(self) -> None:
        assert detect_shape(SPRINTED_DOCUMENT) == DocumentShape.SPRINTED

    def test_empty_document_is_flat(self) -> None:
        assert detect_shape({}) == DocumentShape.FLAT


@pytest.mark.unit
class TestFeatureListFromDict:
    """Tests for feature_list_from_dict."""

    def test_flat_document(self) -> None:
        fl = feature_list_from_dict(FLAT_DOCUMENT)

        assert fl.project.name == "demo"
        assert [f.id for f in fl.features] == ["a", "b"]
        assert fl.features[1].depends_on == ["a"]

    def test_sprinted_document_is_flattened_in_order(self) -> None:
        """Nested features are flattened and take their sprint's number."""
        fl = feature_list_from_dict(SPRINTED_DOCUMENT)

        assert [f.id for f in fl.features] == ["a", "b", "c"]
        assert [f.sprint for f in fl.features] == [1, 2, 2]

    def test_missing_feature_id_is_invalid(self) -> None:
        with pytest.raises(InvalidFeatureListError):
            feature_list_from_dict({"features": [{"name": "no id"}]})


@pytest.mark.unit
class TestLoadAndSave:
    """Tests for load_feature_list and save_feature_list."""

    def test_load_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FeatureListNotFoundError):
            load_feature_list(tmp_path / "feature_list.json")

    def test_load_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "feature_list.json"
        path.write_text("{not json")

        with pytest.raises(InvalidFeatureListError):
            load_feature_list(path)

    def test_load_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "feature_list.json"
        path.write_text("[]")

        with pytest.raises(InvalidFeatureListError):
            load_feature_list(path)

    def test_save_then_load_keeps_order_and_updates(self, tmp_path: Path) -> None:
        """A read-modify-write keeps feature order and the modification."""
        path = tmp_path / "feature_list.json"
        path.write_text(json.dumps(FLAT_DOCUMENT))

        fl = load_feature_list(path)
        fl.feature("b").github_issue = 42
        save_feature_list(path, fl)

        reloaded = load_feature_list(path)
        assert [f.id for f in reloaded.features] == ["a", "b"]
        assert reloaded.feature("b").github_issue == 42
        assert "lastUpdated" in reloaded.metadata

    def test_save_leaves_no_temp_files(self, tmp_path: Path) -> None:
        """The atomic write cleans up after renaming."""
        path = tmp_path / "feature_list.json"
        save_feature_list(path, feature_list_from_dict(FLAT_DOCUMENT))

        assert [p.name for p in tmp_path.iterdir()] == ["feature_list.json"]

    def test_save_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "feature_list.json"
        save_feature_list(path, feature_list_from_dict(FLAT_DOCUMENT))
        assert path.exists()

    def test_sprinted_document_saves_in_sprinted_shape(self, tmp_path: Path) -> None:
        """Features stay nested under their sprints, with unknown keys kept."""
        path = tmp_path / "feature_list.json"
        path.write_text(
            json.dumps(
                {
                    "project": {"name": "demo", "owner": "x"},
                    "schema": 2,
                    "sprints": [
                        {"number": 1, "capacity": 3, "features": [{"id": "a", "name": "A"}]},
                        {
                            "number": 2,
                            "features": [{"id": "b", "name": "B"}, {"id": "c", "name": "C"}],
                        },
                    ],
                }
            )
        )

        fl = load_feature_list(path)
        fl.feature("c").github_issue = 7
        save_feature_list(path, fl)

        saved = json.loads(path.read_text())
        assert "features" not in saved
        assert saved["schema"] == 2
        assert saved["project"]["owner"] == "x"
        assert saved["sprints"][0]["capacity"] == 3
        assert [[f["id"] for f in s["features"]] for s in saved["sprints"]] == [["a"], ["b", "c"]]
        assert saved["sprints"][1]["features"][1]["githubIssue"] == 7
        assert "sprint" not in saved["sprints"][0]["features"][0]

        reloaded = load_feature_list(path)
        assert reloaded.shape == DocumentShape.SPRINTED
        assert [f.id for f in reloaded.features] == ["a", "b", "c"]
        assert [f.sprint for f in reloaded.features] == [1, 2, 2]

    def test_sprinted_feature_without_sprint_entry_is_kept(self) -> None:
        """A feature moved to an undeclared sprint gets a new sprint entry."""
        fl = feature_list_from_dict(SPRINTED_DOCUMENT)
        fl.feature("c").sprint = 3

        sprints = fl.to_dict()["sprints"]

        assert [s["number"] for s in sprints] == [1, 2, 3]
        assert [f["id"] for f in sprints[2]["features"]] == ["c"]
        assert sprints[2]["status"] == "planned"

    def test_flat_document_keeps_unknown_keys(self) -> None:
        data = {**FLAT_DOCUMENT, "owner": "team-a"}
        data["sprints"] = [{"number": 1, "status": "active", "capacity": 2}]

        result = feature_list_from_dict(data).to_dict()

        assert result["owner"] == "team-a"
        assert result["sprints"] == [{"number": 1, "status": "active", "capacity": 2}]
        assert [f["id"] for f in result["features"]] == ["a", "b"]
