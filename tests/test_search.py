"""
Tests for path and content search.
"""

import tempfile
from pathlib import Path

import pytest

from peekaboo.filesystem import (
    InvalidPatternError,
    ResourceGovernor,
    ResourceLimits,
    SearchError,
    TotalSizeExceededError,
    list_directory,
    search_by_path,
    search_content,
)
from peekaboo.filesystem.search import compile_glob, glob_to_regex, is_excluded


@pytest.fixture
def project():
    """Create a project-like tree including directories searches skip."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir).resolve()
        files = {
            "src/index.ts": "export const x = 1;",
            "src/a.ts": "// a",
            "src/ab.ts": "// ab",
            "src/utils/helper.ts": "export function help() {}",
            "src/utils/helper.test.ts": "test('help')",
            "package.json": '{"name": "demo"}',
            "config/settings.json": "{}",
            "README.md": "# Demo\nTODO: write docs\n",
            "node_modules/lib/index.ts": "// TODO vendor",
            "dist/bundle.js": "// TODO built",
            ".git/config": "[core] TODO",
        }
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        yield root


@pytest.fixture
def scenario():
    """Create a.txt, sub/b.ts and node_modules/x/y.ts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir).resolve()
        (root / "a.txt").write_text("hello\nTODO fix\n")
        (root / "sub").mkdir()
        (root / "sub" / "b.ts").write_text("export {}")
        (root / "node_modules" / "x").mkdir(parents=True)
        (root / "node_modules" / "x" / "y.ts").write_text("TODO inside")
        yield root


class TestGlobCompilation:
    """Test glob to regex translation."""

    def test_double_star_prefix_matches_any_depth(self):
        """Test that **/ matches zero or more whole segments."""
        regex = compile_glob("**/*.json")
        assert regex.search("/package.json")
        assert regex.search("/config/settings.json")
        assert not regex.search("/package.jsonx")

    def test_bare_name_matches_last_segment(self):
        """Test that a slash-free pattern matches the base name anywhere."""
        regex = compile_glob("*.ts")
        assert regex.search("/src/a.ts")
        assert regex.search("/src/utils/helper.ts")
        assert not regex.search("/src/a.tsx")

    def test_pattern_with_slash_is_anchored(self):
        """Test that a pattern containing / matches from the root."""
        regex = compile_glob("src/*.ts")
        assert regex.search("/src/a.ts")
        assert not regex.search("/src/utils/helper.ts")
        assert not regex.search("/other/src/a.ts")

    def test_leading_slash_is_accepted(self):
        """Test that an explicitly rooted pattern behaves like a relative one."""
        assert compile_glob("/src/*.ts").search("/src/a.ts")

    def test_question_mark(self):
        """Test that ? matches exactly one non-separator character."""
        regex = compile_glob("?.ts")
        assert regex.search("/src/a.ts")
        assert not regex.search("/src/ab.ts")

    def test_braces(self):
        """Test {a,b} alternation."""
        regex = compile_glob("*.{ts,json}")
        assert regex.search("/src/a.ts")
        assert regex.search("/package.json")
        assert not regex.search("/README.md")

    def test_case_insensitive(self):
        """Test that glob matching ignores case."""
        assert compile_glob("*.MD").search("/README.md")

    def test_dots_are_literal(self):
        """Test that . in a glob only matches a dot."""
        assert not compile_glob("a.ts").search("/src/axts")

    def test_translation_order(self):
        """Test the translated regex body."""
        assert glob_to_regex("src/**/*.{ts,js}") == r"src/(?:.*/)?[^/]*\.(ts|js)"

    @pytest.mark.parametrize("pattern", ["[", "file("])
    def test_invalid_pattern(self, pattern):
        """Test that globs producing an invalid regex raise InvalidPatternError."""
        with pytest.raises(InvalidPatternError) as exc_info:
            compile_glob(pattern)
        assert isinstance(exc_info.value, SearchError)
        assert int(exc_info.value.code) == 4004

    def test_is_excluded(self):
        """Test segment-based exclusion."""
        assert is_excluded("/node_modules")
        assert is_excluded("/node_modules/lib/index.ts")
        assert is_excluded("/src/dist/out.js")
        assert is_excluded("/.git/config")
        assert not is_excluded("/distribution/file.txt")
        assert not is_excluded("/src/.github/workflow.yml")


class TestSearchByPath:
    """Test search_by_path."""

    @pytest.mark.asyncio
    async def test_star_ts(self, project):
        """Test that *.ts finds every .ts file outside excluded directories."""
        paths = await search_by_path(project, "*.ts")
        assert set(paths) == {
            "/src/index.ts",
            "/src/a.ts",
            "/src/ab.ts",
            "/src/utils/helper.ts",
            "/src/utils/helper.test.ts",
        }

    @pytest.mark.asyncio
    async def test_double_star_json(self, project):
        """Test that **/*.json finds root-relative json paths."""
        paths = await search_by_path(project, "**/*.json")
        assert set(paths) == {"/package.json", "/config/settings.json"}

    @pytest.mark.asyncio
    async def test_directories_match(self, project):
        """Test that directory entries are reported too."""
        paths = await search_by_path(project, "utils")
        assert paths == ["/src/utils"]

    @pytest.mark.asyncio
    async def test_excluded_everywhere(self, project):
        """Test that excluded directories and their contents never match."""
        paths = await search_by_path(project, "**/*")
        assert paths
        assert not any(is_excluded(path) for path in paths)

    @pytest.mark.asyncio
    async def test_no_matches(self, project):
        """Test an empty result."""
        assert await search_by_path(project, "*.rs") == []

    @pytest.mark.asyncio
    async def test_uses_given_tree(self, project):
        """Test that a previously listed tree is searched without relisting."""
        items = await list_directory(project, ".", recursive=True, max_depth=0)
        paths = await search_by_path(project, "*.ts", items=items)
        assert paths == []

    @pytest.mark.asyncio
    async def test_invalid_pattern(self, project):
        """Test that an invalid glob is rejected."""
        with pytest.raises(InvalidPatternError):
            await search_by_path(project, "[")


class TestSearchContent:
    """Test search_content."""

    @pytest.mark.asyncio
    async def test_finds_lines(self, project):
        """Test matches carry the path, line number and trimmed text."""
        results = await search_content(project, "TODO")

        assert [result.path for result in results] == ["/README.md"]
        match = results[0].matches[0]
        assert match.line_number == 2
        assert match.line_text == "TODO: write docs"

    @pytest.mark.asyncio
    async def test_match_cap_per_file(self, project):
        """Test that at most five lines are reported for one file."""
        (project / "many.txt").write_text("\n".join(f"match {i}" for i in range(10)))

        results = await search_content(project, "match")
        many = next(result for result in results if result.path == "/many.txt")

        assert len(many.matches) == 5
        assert [m.line_number for m in many.matches] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_max_results(self, project):
        """Test that no more than max_results files are reported."""
        for i in range(4):
            (project / f"hit{i}.txt").write_text("needle")

        results = await search_content(project, "needle", max_results=2)
        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_ignore_case(self, project):
        """Test case sensitivity switch."""
        (project / "notes.txt").write_text("TODO only upper")

        sensitive = await search_content(project, "todo", include="notes.txt", ignore_case=False)
        insensitive = await search_content(project, "todo", include="notes.txt", ignore_case=True)

        assert sensitive == []
        assert len(insensitive) == 1

    @pytest.mark.asyncio
    async def test_include_filter(self, project):
        """Test that include restricts the files read."""
        results = await search_content(project, "export", include="*.ts")
        assert {result.path for result in results} == {"/src/index.ts", "/src/utils/helper.ts"}

        results = await search_content(project, "export", include="*.md")
        assert results == []

    @pytest.mark.asyncio
    async def test_query_is_regex(self, project):
        """Test that the query is a regular expression."""
        results = await search_content(project, r"export (const|function)")
        assert {result.path for result in results} == {"/src/index.ts", "/src/utils/helper.ts"}

    @pytest.mark.asyncio
    async def test_invalid_query(self, project):
        """Test that an invalid regex is rejected."""
        with pytest.raises(InvalidPatternError):
            await search_content(project, "(unclosed")

    @pytest.mark.asyncio
    async def test_binary_file_skipped(self, project):
        """Test that files that are not UTF-8 are skipped."""
        (project / "blob.bin").write_bytes(b"\xff\xfe\x00TODO\x80")

        results = await search_content(project, "TODO")
        assert "/blob.bin" not in {result.path for result in results}

    @pytest.mark.asyncio
    async def test_oversized_file_skipped(self, project):
        """Test that files over the per-file limit are skipped, not fatal."""
        (project / "huge.txt").write_text("TODO " * 100)
        governor = ResourceGovernor(ResourceLimits(max_file_size_bytes=100))

        results = await search_content(project, "TODO", governor=governor)
        assert {result.path for result in results} == {"/README.md"}

    @pytest.mark.asyncio
    async def test_total_size_aborts(self, project):
        """Test that bytes read count toward the total ceiling."""
        governor = ResourceGovernor(ResourceLimits(max_total_size_bytes=10))

        with pytest.raises(TotalSizeExceededError):
            await search_content(project, "anything", governor=governor)


class TestScenario:
    """Test listing and search together on one small tree."""

    @pytest.mark.asyncio
    async def test_search_by_path_skips_node_modules(self, scenario):
        """Test that only the .ts file outside node_modules is found."""
        assert await search_by_path(scenario, "*.ts") == ["/sub/b.ts"]

    @pytest.mark.asyncio
    async def test_search_content_single_match(self, scenario):
        """Test that the TODO line in a.txt is the only match."""
        results = await search_content(scenario, "TODO")

        assert len(results) == 1
        assert results[0].path == "/a.txt"
        assert len(results[0].matches) == 1
        assert results[0].matches[0].line_number == 2
