"""
Tests for the ast-based Python symbol extractor and the extractor registry.
"""

import textwrap

import pytest

from scout.errors import EINVAL, ENOENT, ENOSYMBOLPROVIDER, IndexOperationError, NoProviderError
from scout.extraction import ExtractorRegistry, PythonAstExtractor, SymbolExtractor, default_registry

SAMPLE = textwrap.dedent(
    '''\
    MAX_SIZE = 10
    name = "x"


    def hello(who: str) -> str:
        return who


    class Greeter(Base):
        greeting: str = "hi"

        def __init__(self):
            pass

        def greet(self):
            def inner():
                pass
            return inner


    async def fetch(url):
        pass
    '''
)


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "sample.py"
    path.write_text(SAMPLE)
    return str(path)


def by_name(symbols):
    return {s.name: s for s in symbols}


class TestPythonAstExtractor:
    def test_top_level_kinds(self, sample_file):
        symbols = PythonAstExtractor().extract_symbols_sync(sample_file)

        assert [(s.name, s.kind) for s in symbols] == [
            ("MAX_SIZE", "Constant"),
            ("name", "Variable"),
            ("hello", "Function"),
            ("Greeter", "Class"),
            ("fetch", "Function"),
        ]
        assert all(s.level == 0 for s in symbols)

    def test_class_members(self, sample_file):
        greeter = by_name(PythonAstExtractor().extract_symbols_sync(sample_file))["Greeter"]

        assert [(c.name, c.kind, c.level) for c in greeter.children] == [
            ("greeting", "Field", 1),
            ("__init__", "Constructor", 1),
            ("greet", "Method", 1),
        ]
        greet = greeter.children[2]
        assert [(c.name, c.kind, c.level) for c in greet.children] == [("inner", "Function", 2)]
        assert greeter.children[1].children is None

    def test_details(self, sample_file):
        symbols = by_name(PythonAstExtractor().extract_symbols_sync(sample_file))

        assert symbols["hello"].detail == "(who: str) -> str"
        assert symbols["fetch"].detail == "async (url)"
        assert symbols["Greeter"].detail == "(Base)"
        assert symbols["Greeter"].children[0].detail == "str"
        assert symbols["MAX_SIZE"].detail is None

    def test_ranges(self, sample_file):
        symbols = by_name(PythonAstExtractor().extract_symbols_sync(sample_file))

        hello = symbols["hello"]
        assert (hello.range.start.line, hello.range.start.character) == (4, 0)
        assert (hello.range.end.line, hello.range.end.character) == (5, 14)
        assert (hello.selection_range.start.line, hello.selection_range.start.character) == (4, 4)
        assert hello.selection_range.end.character == 9

        assert symbols["Greeter"].selection_range.start.character == 6
        assert symbols["fetch"].selection_range.start.character == 10
        assert symbols["MAX_SIZE"].range.end.character == 8

    def test_max_depth(self, sample_file):
        extractor = PythonAstExtractor()

        flat = by_name(extractor.extract_symbols_sync(sample_file, max_depth=0))
        one_level = by_name(extractor.extract_symbols_sync(sample_file, max_depth=1))

        assert flat["Greeter"].children is None
        assert [c.name for c in one_level["Greeter"].children] == ["greeting", "__init__", "greet"]
        assert one_level["Greeter"].children[2].children is None

    def test_without_children(self, sample_file):
        symbols = PythonAstExtractor().extract_symbols_sync(sample_file, include_children=False)
        assert all(s.children is None for s in symbols)

    def test_kind_filter(self, sample_file):
        symbols = PythonAstExtractor().extract_symbols_sync(sample_file, kind_filter=["Class"])
        assert [s.name for s in symbols] == ["Greeter"]

    def test_syntax_error(self, tmp_path):
        broken = tmp_path / "broken.py"
        broken.write_text("def oops(:\n")

        with pytest.raises(IndexOperationError) as exc_info:
            PythonAstExtractor().extract_symbols_sync(str(broken))

        assert exc_info.value.code == EINVAL
        assert exc_info.value.message.startswith("Syntax error at line 1")

    def test_missing_file(self, tmp_path):
        with pytest.raises(IndexOperationError) as exc_info:
            PythonAstExtractor().extract_symbols_sync(str(tmp_path / "nope.py"))
        assert exc_info.value.code == ENOENT

    @pytest.mark.asyncio
    async def test_async_entry_point(self, sample_file):
        symbols = await PythonAstExtractor().extract_symbols(sample_file, include_children=False)
        assert len(symbols) == 5


class TestExtractorRegistry:
    def test_default_registry(self):
        registry = default_registry()

        assert registry.extensions == [".py", ".pyi"]
        assert registry.supports("pkg/mod.py")
        assert registry.supports("pkg/MOD.PY")
        assert not registry.supports("app.ts")
        assert not registry.supports("Makefile")

    def test_satisfies_protocol(self):
        assert isinstance(default_registry(), SymbolExtractor)
        assert isinstance(PythonAstExtractor(), SymbolExtractor)

    @pytest.mark.asyncio
    async def test_dispatch(self, sample_file):
        symbols = await default_registry().extract_symbols(sample_file, include_children=False)
        assert [s.name for s in symbols][:2] == ["MAX_SIZE", "name"]

    @pytest.mark.asyncio
    async def test_unknown_extension(self):
        with pytest.raises(NoProviderError) as exc_info:
            await ExtractorRegistry().extract_symbols("src/app.ts")

        assert exc_info.value.code == ENOSYMBOLPROVIDER
        assert exc_info.value.message == "No symbol provider available for file type: .ts"
        assert exc_info.value.path == "src/app.ts"
