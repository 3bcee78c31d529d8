"""Tests for package.json parsing."""

import pytest

from pkgbump.errors import ManifestError
from pkgbump.models import DependencyGroup
from pkgbump.parse_node import classify_source, parse_package_json, read_manifest


class TestNodeParser:
    """Test package.json parsing."""

    def test_parse_groups(self, sample_package_json):
        """Should read every dependency group."""
        manifest = parse_package_json(sample_package_json)

        assert manifest.ecosystem == "node"
        assert manifest.raw == sample_package_json
        assert [(e.group, e.name, e.spec) for e in manifest.entries] == [
            (DependencyGroup.NORMAL, "leftpad", "^1.2.0"),
            (DependencyGroup.NORMAL, "lodash", "~4.17.0"),
            (DependencyGroup.DEV, "jest", "^29.0.0"),
        ]

    def test_parse_peer_and_optional_groups(self):
        """Should map peer and optional dependency groups."""
        content = '{"peerDependencies": {"react": ">=16"}, "optionalDependencies": {"fsevents": "^2.3.0"}}'
        manifest = parse_package_json(content)

        groups = {entry.name: entry.group for entry in manifest.entries}
        assert groups == {"react": DependencyGroup.PEER, "fsevents": DependencyGroup.OPTIONAL}

    def test_spans_point_at_range_tokens(self, sample_package_json):
        """Should record where each range string sits in the raw text."""
        manifest = parse_package_json(sample_package_json)

        for entry in manifest.entries:
            start, end = entry.span
            assert manifest.raw[start:end] == f'"{entry.spec}"'

    def test_spans_with_escapes_and_odd_spacing(self):
        """Should locate tokens regardless of formatting and escapes."""
        content = '{"dependencies":{"a\\u0062c":"^1.0.0" ,  "d" :\t"~2.0.0"}}'
        manifest = parse_package_json(content)

        names = [entry.name for entry in manifest.entries]
        assert names == ["abc", "d"]
        for entry in manifest.entries:
            start, end = entry.span
            assert content[start:end] == f'"{entry.spec}"'

    def test_nested_dependency_keys_are_ignored(self):
        """Should only read top-level dependency groups."""
        content = '{"config": {"dependencies": {"x": "1.0.0"}}, "dependencies": {"y": "2.0.0"}}'
        manifest = parse_package_json(content)

        assert [entry.name for entry in manifest.entries] == ["y"]
        start, end = manifest.entries[0].span
        assert content[start:end] == '"2.0.0"'

    def test_duplicate_keys_use_last_value(self):
        """Should match json.loads, where the last duplicate wins."""
        content = '{"dependencies": {"a": "1.0.0", "a": "2.0.0"}}'
        manifest = parse_package_json(content)

        assert len(manifest.entries) == 1
        entry = manifest.entries[0]
        assert entry.spec == "2.0.0"
        assert content[entry.span[0]:entry.span[1]] == '"2.0.0"'

    def test_byte_order_mark(self):
        """Should accept a leading BOM and keep it in raw."""
        content = '\ufeff{"dependencies": {"a": "^1.0.0"}}'
        manifest = parse_package_json(content)

        assert manifest.raw.startswith("\ufeff")
        start, end = manifest.entries[0].span
        assert content[start:end] == '"^1.0.0"'

    def test_no_dependency_groups(self):
        """Should return an empty manifest when nothing is declared."""
        manifest = parse_package_json('{"name": "empty"}')
        assert manifest.entries == []
        assert manifest.data == {"name": "empty"}

    @pytest.mark.parametrize("content,message", [
        ("{not json", "invalid json"),
        ("[1, 2]", "json object"),
        ('{"dependencies": ["a"]}', "must be an object"),
        ('{"dependencies": {"a": 1}}', "must be a string"),
    ])
    def test_malformed_manifests(self, content, message):
        """Should raise ManifestError for malformed structure."""
        with pytest.raises(ManifestError) as exc_info:
            parse_package_json(content)
        assert message in str(exc_info.value).lower()

    def test_read_manifest_missing_file(self, tmp_path):
        """Should raise ManifestError for an unreadable path."""
        with pytest.raises(ManifestError) as exc_info:
            read_manifest(tmp_path / "package.json")
        assert "not found" in str(exc_info.value)

    def test_read_manifest_keeps_crlf(self, tmp_path):
        """Should not translate line endings when reading."""
        path = tmp_path / "package.json"
        path.write_bytes(b'{\r\n  "dependencies": {\r\n    "a": "^1.0.0"\r\n  }\r\n}\r\n')

        manifest = read_manifest(path)
        assert "\r\n" in manifest.raw


class TestSourceClassification:
    """Test non-registry dependency detection."""

    @pytest.mark.parametrize("spec,source_type", [
        ("^1.2.3", "registry"),
        ("*", "registry"),
        ("", "registry"),
        ("latest", "registry"),
        ("git+https://github.com/user/repo.git", "vcs"),
        ("github:user/repo", "vcs"),
        ("user/repo#main", "vcs"),
        ("file:../local", "path"),
        ("./vendor/pkg", "path"),
        ("link:../linked", "path"),
        ("https://example.com/pkg.tgz", "url"),
        ("npm:other-package@^1.0.0", "alias"),
        ("workspace:*", "workspace"),
    ])
    def test_classify(self, spec, source_type):
        """Should recognize where a dependency comes from."""
        assert classify_source(spec) == source_type
