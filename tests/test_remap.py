"""Tests for the remap collaborators and mapping tables."""

import json

import pytest

from commentpp.errors import MappingError
from commentpp.remap import IdentifierRemapper, MappedSources, MappingTable, build_remapper


class TestMappedSources:
    def test_records_group_errors_by_line(self, tmp_path):
        path = tmp_path / "remapped.json"
        path.write_text(json.dumps({
            "pkg/A.java": {
                "source": "bar();\nbaz();\nqux();",
                "errors": [[1, "first"], [1, "second"], [2, "third"]],
            }
        }))
        sources = MappedSources.load(str(path))

        remap = sources.for_file("pkg/A.java")
        assert remap(["foo();", "x();", "y();"]) == [
            ("bar();", []),
            ("baz();", ["first", "second"]),
            ("qux();", ["third"]),
        ]

    def test_unknown_file_has_no_remap(self):
        assert MappedSources({}).for_file("A.java") is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "remapped.json"
        path.write_text("[")
        with pytest.raises(MappingError):
            MappedSources.load(str(path))

    @pytest.mark.parametrize(
        "data,message",
        [
            (["A.java"], "must contain a JSON object"),
            ({"A.java": {"errors": []}}, "needs a 'source' string"),
            ({"A.java": "a();"}, "needs a 'source' string"),
            ({"A.java": {"source": "a();", "errors": [["one", "bad"]]}}, r"\[line, message\] pairs"),
            ({"A.java": {"source": "a();", "errors": [[0]]}}, r"\[line, message\] pairs"),
        ],
    )
    def test_malformed_entries(self, tmp_path, data, message):
        path = tmp_path / "remapped.json"
        path.write_text(json.dumps(data))
        with pytest.raises(MappingError, match=message):
            MappedSources.load(str(path))


class TestMappingTable:
    def test_load_text(self, tmp_path):
        path = tmp_path / "map.txt"
        path.write_text("# renames\nOldName NewName\ngetFoo getBar  # member\nGone\n")
        table = MappingTable.load(str(path))
        assert table == MappingTable({"OldName": "NewName", "getFoo": "getBar", "Gone": ""})

    def test_load_text_bad_line(self, tmp_path):
        path = tmp_path / "map.txt"
        path.write_text("a b c\n")
        with pytest.raises(MappingError, match="map.txt:1"):
            MappingTable.load(str(path))

    def test_load_json_keeps_order(self, tmp_path):
        path = tmp_path / "map.json"
        path.write_text('{"b": "x", "a": "y"}')
        assert list(MappingTable.load(str(path)).entries) == ["b", "a"]

    def test_write_and_load(self, tmp_path):
        path = tmp_path / "build" / "mapping.json"
        table = MappingTable({"a": "b"})
        table.write(str(path))
        assert MappingTable.load(str(path)) == table

    def test_reverse(self):
        assert MappingTable({"a": "b", "c": "d", "e": ""}).reverse() == MappingTable({"b": "a", "d": "c"})

    def test_reverse_collision(self):
        with pytest.raises(MappingError, match="both a and c map to b"):
            MappingTable({"a": "b", "c": "b"}).reverse()

    def test_join(self):
        left = MappingTable({"a": "b", "x": "y"})
        right = MappingTable({"b": "c"})
        assert left.join(right) == MappingTable({"a": "c"})

    def test_merge_overlays(self):
        merged = MappingTable({"a": "b", "c": "d"}).merge(MappingTable({"a": "z"}))
        assert merged == MappingTable({"a": "z", "c": "d"})


class TestIdentifierRemapper:
    def test_renames_whole_identifiers(self):
        remapper = IdentifierRemapper(MappingTable({"getFoo": "getBar", "Foo": "Bar"}))
        text, errors = remapper.remap_line("Foo f = obj.getFoo(); FooBar g; myFoo();")
        assert text == "Bar f = obj.getBar(); FooBar g; myFoo();"
        assert errors == []

    def test_dotted_names_longest_first(self):
        remapper = IdentifierRemapper(MappingTable({"a.b": "q", "a.b.C": "x.y.Z"}))
        assert remapper.remap_line("import a.b.C;")[0] == "import x.y.Z;"

    def test_missing_target_is_an_error(self):
        remapper = IdentifierRemapper(MappingTable({"Gone": ""}))
        text, errors = remapper.remap_line("Gone.call();")
        assert text == "Gone.call();"
        assert errors == ["Gone has no mapping in the target"]

    def test_for_file_by_extension(self):
        remapper = IdentifierRemapper(MappingTable({"a": "b"}))
        assert remapper.for_file("pkg/A.java")(["a();"]) == [("b();", [])]
        assert remapper.for_file("build.gradle") is None

    def test_empty_table(self):
        assert IdentifierRemapper(MappingTable()).remap(["a();"]) == [("a();", [])]

    def test_directive_lines_are_left_alone(self):
        remapper = IdentifierRemapper(MappingTable({"MC": "McVersion"}))
        assert remapper.remap(["//#if MC >= 11400", "    //#ifdef MC", "int x = MC;"]) == [
            ("//#if MC >= 11400", []),
            ("    //#ifdef MC", []),
            ("int x = McVersion;", []),
        ]

    def test_directive_lines_follow_given_keywords(self):
        from commentpp.keywords import CFG_KEYWORDS

        remapper = IdentifierRemapper(MappingTable({"MC": "McVersion"}), keywords=CFG_KEYWORDS)
        assert remapper.remap_line("##if MC > 1") == ("##if MC > 1", [])
        assert remapper.remap_line("//#if MC > 1") == ("//#if McVersion > 1", [])


class TestBuildRemapper:
    def write(self, tmp_path, name, entries):
        path = tmp_path / name
        path.write_text(json.dumps(entries))
        return str(path)

    def test_nothing_configured(self):
        assert build_remapper() is None

    def test_source_without_destination(self, tmp_path):
        assert build_remapper(source_mappings=self.write(tmp_path, "src.json", {"a": "b"})) is None

    def test_single_mapping_reversed(self, tmp_path):
        remapper = build_remapper(mapping=self.write(tmp_path, "m.json", {"Old": "New"}), reverse=True)
        assert remapper.table == MappingTable({"New": "Old"})

    def test_source_joined_with_reversed_destination(self, tmp_path):
        src = self.write(tmp_path, "src.json", {"named_a": "inter_1", "named_b": "inter_2"})
        dst = self.write(tmp_path, "dst.json", {"other_a": "inter_1"})
        remapper = build_remapper(source_mappings=src, destination_mappings=dst)
        assert remapper.table == MappingTable({"named_a": "other_a"})

    def test_mapping_survives_join(self, tmp_path):
        mapping = self.write(tmp_path, "m.json", {"Custom": "Renamed"})
        src = self.write(tmp_path, "src.json", {"named_a": "inter_1"})
        dst = self.write(tmp_path, "dst.json", {"other_a": "inter_1"})
        build_dir = tmp_path / "build"

        remapper = build_remapper(mapping=mapping, source_mappings=src, destination_mappings=dst,
                                  build_dir=str(build_dir))

        assert remapper.table == MappingTable({"Custom": "Renamed", "named_a": "other_a"})
        assert MappingTable.load(str(build_dir / "mapping.json")) == remapper.table
