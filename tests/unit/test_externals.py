"""Tests for the externals merger."""

from code_variants.models.enums import ImportKind
from code_variants.models.externals import ExternalImport
from code_variants.pipeline.externals import externals_to_packaged, merge_externals

REACT_DEFAULT = ExternalImport(name="React", type=ImportKind.DEFAULT)
USE_STATE = ExternalImport(name="useState", type=ImportKind.NAMED)
FC_TYPE = ExternalImport(name="FC", type=ImportKind.NAMED, is_type=True)


class TestMergeExternals:
    """Tests for merge_externals."""

    def test_concatenates_in_first_seen_order(self):
        """Test that module order and import order follow the inputs."""
        merged = merge_externals(
            [
                {"react": [REACT_DEFAULT]},
                {"@mui/material": [ExternalImport(name="Button", type=ImportKind.NAMED)]},
                {"react": [USE_STATE, FC_TYPE]},
            ]
        )

        assert list(merged) == ["react", "@mui/material"]
        assert merged["react"] == [REACT_DEFAULT, USE_STATE, FC_TYPE]

    def test_skips_empty_contributions(self):
        """Test that None and empty maps contribute nothing."""
        assert merge_externals([None, {}, {"react": [USE_STATE]}]) == {"react": [USE_STATE]}
        assert merge_externals([]) == {}

    def test_identical_imports_not_repeated(self):
        """Test that the same import from two files is recorded once."""
        merged = merge_externals([{"react": [USE_STATE]}, {"react": [USE_STATE]}])
        assert merged["react"] == [USE_STATE]

    def test_type_only_import_is_distinct(self):
        """Test that a type-only import differs from a value import."""
        type_only = ExternalImport(name="useState", type=ImportKind.NAMED, is_type=True)
        merged = merge_externals([{"react": [USE_STATE]}, {"react": [type_only]}])
        assert merged["react"] == [USE_STATE, type_only]

    def test_accepts_plain_dicts(self):
        """Test that camelCase dict descriptors are validated."""
        merged = merge_externals([{"react": [{"name": "FC", "type": "named", "isType": True}]}])
        assert merged["react"] == [FC_TYPE]

    def test_inputs_not_modified(self):
        """Test that contributions are not mutated."""
        first = {"react": [REACT_DEFAULT]}
        merge_externals([first, {"react": [USE_STATE]}])
        assert first == {"react": [REACT_DEFAULT]}


class TestExternalsToPackaged:
    """Tests for externals_to_packaged."""

    def test_module_names(self):
        """Test reduction to the module names."""
        assert externals_to_packaged({"react": [USE_STATE], "clsx": []}) == ["react", "clsx"]

    def test_empty(self):
        """Test that no externals yields None."""
        assert externals_to_packaged({}) is None
