"""Tests for the single-file loader."""

import logging
from unittest.mock import AsyncMock

import pytest

from code_variants.config.models import LoadVariantOptions, SourceTransformer
from code_variants.errors import (
    ConfigurationError,
    ExtraFileValidationError,
    LoadSourceError,
    ParseSourceError,
    TransformSourceError,
    UnexpectedExtraFilesError,
)
from code_variants.models.enums import Environment, OutputMode
from code_variants.models.variant import HastGzipSource, HastJsonSource
from code_variants.parsers import parse_plain_text
from code_variants.pipeline.cache import LoadSourceCache
from code_variants.pipeline.serialization import decode_source
from code_variants.pipeline.single_file import load_single_file
from code_variants.pipeline.transforms import apply_transform

TS_SOURCE = "const a: number = 1;\nexport default a;"
JS_SOURCE = "const a = 1;\nexport default a;"


def strip_types(text, file_name):
    """Transformer producing a JavaScript rendition."""
    return {"js": {"source": text.replace(": number", ""), "fileName": "main.js"}}


class TestLoadSingleFile:
    """Tests for load_single_file."""

    @pytest.mark.asyncio
    async def test_inline_source_not_loaded(self, raw_options, load_source):
        """Test that inline sources are used without calling the loader."""
        result = await load_single_file(
            "Default", "main.js", "const a = 1;", "https://x/main.js", raw_options, LoadSourceCache()
        )

        assert result.source == "const a = 1;"
        assert result.extra_files is None
        load_source.assert_not_called()

    @pytest.mark.asyncio
    async def test_loads_through_loader(self, raw_options, load_source, sources):
        """Test loading and reporting discovered files."""
        sources["https://x/main.js"] = {
            "source": "import './b.js';",
            "extraFiles": {"b.js": "https://x/b.js"},
            "extraDependencies": ["https://x/main.ts"],
        }

        result = await load_single_file(
            "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache()
        )

        assert result.source == "import './b.js';"
        assert result.extra_files == {"b.js": "https://x/b.js"}
        assert result.extra_dependencies == ["https://x/main.ts"]
        load_source.assert_awaited_once_with("https://x/main.js")

    @pytest.mark.asyncio
    async def test_missing_loader(self):
        """Test that loading without a loader is a configuration error."""
        options = LoadVariantOptions(disable_parsing=True)

        with pytest.raises(ConfigurationError) as exc_info:
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", options, LoadSourceCache()
            )

        assert exc_info.value.variant == "Default"
        assert exc_info.value.url == "https://x/main.js"

    @pytest.mark.asyncio
    async def test_missing_url(self, raw_options):
        """Test that loading without an identifier is a configuration error."""
        with pytest.raises(ConfigurationError):
            await load_single_file("Default", "main.js", None, None, raw_options, LoadSourceCache())

    @pytest.mark.asyncio
    async def test_loader_failure_wrapped(self, raw_options):
        """Test that loader errors carry context and keep their cause."""
        with pytest.raises(LoadSourceError) as exc_info:
            await load_single_file(
                "TypeScript", "main.ts", None, "https://x/missing.ts", raw_options, LoadSourceCache()
            )

        error = exc_info.value
        assert error.variant == "TypeScript"
        assert error.file_name == "main.ts"
        assert error.url == "https://x/missing.ts"
        assert isinstance(error.__cause__, FileNotFoundError)
        assert "variant: TypeScript" in str(error)

    @pytest.mark.asyncio
    async def test_relative_extra_file_value_rejected(self, raw_options, sources):
        """Test that loaders must not report relative identifiers."""
        sources["https://x/main.js"] = {"source": "", "extraFiles": {"b.js": "./b.js"}}

        with pytest.raises(ExtraFileValidationError):
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache()
            )

    @pytest.mark.asyncio
    async def test_absolute_extra_file_key_rejected(self, raw_options, sources):
        """Test that loaders must report relative keys."""
        sources["https://x/main.js"] = {"source": "", "extraFiles": {"/b.js": "https://x/b.js"}}

        with pytest.raises(ExtraFileValidationError):
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache()
            )

    @pytest.mark.asyncio
    async def test_self_dependency_rejected(self, raw_options, sources):
        """Test that a file cannot list itself as an extra dependency."""
        sources["https://x/main.js"] = {
            "source": "",
            "extraDependencies": ["https://x/main.js"],
        }

        with pytest.raises(ExtraFileValidationError):
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache()
            )

    @pytest.mark.asyncio
    async def test_relative_dependency_rejected(self, raw_options, sources):
        """Test that extra dependencies must be absolute."""
        sources["https://x/main.js"] = {"source": "", "extraDependencies": ["../other.js"]}

        with pytest.raises(ExtraFileValidationError):
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache()
            )

    @pytest.mark.asyncio
    async def test_loader_without_source(self, raw_options, sources):
        """Test that a load result without source is an error."""
        sources["https://x/main.js"] = {"extraFiles": {}}

        with pytest.raises(LoadSourceError):
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache()
            )


class TestParsing:
    """Tests for parsing inside the single-file loader."""

    @pytest.mark.asyncio
    async def test_parses_with_language(self, parsing_options, parse_source):
        """Test that the parser receives text, file name and language."""
        result = await load_single_file(
            "Default", "main.js", "a\nb", None, parsing_options, LoadSourceCache(),
            language="javascript",
        )

        parse_source.assert_called_once_with("a\nb", "main.js", "javascript")
        assert result.source == parse_plain_text("a\nb", "main.js", "javascript")

    @pytest.mark.asyncio
    async def test_already_parsed_source_not_reparsed(self, parsing_options, parse_source):
        """Test that trees are passed through."""
        tree = parse_plain_text("x")
        result = await load_single_file(
            "Default", "main.js", tree, None, parsing_options, LoadSourceCache()
        )

        assert result.source == tree
        parse_source.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_parser(self, load_source):
        """Test that parsing without a parser is a configuration error."""
        options = LoadVariantOptions(load_source=load_source)

        with pytest.raises(ConfigurationError):
            await load_single_file("Default", "main.js", "x", None, options, LoadSourceCache())

    @pytest.mark.asyncio
    async def test_parser_failure_wrapped(self, load_source):
        """Test that parser errors are wrapped with context."""

        def broken(text, file_name, language):
            raise SyntaxError("unexpected token")

        options = LoadVariantOptions(load_source=load_source, parse_source=broken)

        with pytest.raises(ParseSourceError) as exc_info:
            await load_single_file("Default", "main.js", "x", None, options, LoadSourceCache())

        assert exc_info.value.file_name == "main.js"
        assert isinstance(exc_info.value.__cause__, SyntaxError)

    @pytest.mark.asyncio
    async def test_async_parser(self, load_source):
        """Test that coroutine parsers are awaited."""

        async def parse(text, file_name, language):
            return parse_plain_text(text, file_name, language)

        options = LoadVariantOptions(load_source=load_source, parse_source=parse)
        result = await load_single_file("Default", "a.txt", "x", None, options, LoadSourceCache())

        assert result.source == parse_plain_text("x")

    @pytest.mark.asyncio
    async def test_hast_json_output(self, load_source, parse_source):
        """Test serializing trees to JSON."""
        options = LoadVariantOptions(
            load_source=load_source, parse_source=parse_source, output=OutputMode.HAST_JSON
        )

        result = await load_single_file("Default", "a.txt", "x\ny", None, options, LoadSourceCache())

        assert isinstance(result.source, HastJsonSource)
        assert decode_source(result.source) == parse_plain_text("x\ny")

    @pytest.mark.asyncio
    async def test_hast_gzip_falls_back_in_development(self, load_source, parse_source):
        """Test that gzip output is only produced in production."""
        options = LoadVariantOptions(
            load_source=load_source, parse_source=parse_source, output=OutputMode.HAST_GZIP
        )

        result = await load_single_file("Default", "a.txt", "x", None, options, LoadSourceCache())

        assert isinstance(result.source, HastJsonSource)

    @pytest.mark.asyncio
    async def test_hast_gzip_in_production(self, load_source, parse_source):
        """Test gzip output in production."""
        options = LoadVariantOptions(
            load_source=load_source,
            parse_source=parse_source,
            output=OutputMode.HAST_GZIP,
            environment=Environment.PRODUCTION,
        )

        result = await load_single_file("Default", "a.txt", "x", None, options, LoadSourceCache())

        assert isinstance(result.source, HastGzipSource)
        assert decode_source(result.source) == parse_plain_text("x")
        assert decode_source(result.source.model_dump(by_alias=True)) == parse_plain_text("x")


class TestTransforms:
    """Tests for source transformers inside the single-file loader."""

    @pytest.fixture
    def transformers(self):
        """TypeScript-to-JavaScript transformer."""
        return [SourceTransformer(extensions=["ts", ".tsx"], transformer=strip_types)]

    @pytest.mark.asyncio
    async def test_line_delta_without_parsing(self, load_source, transformers):
        """Test that transforms are stored as line deltas on raw text."""
        options = LoadVariantOptions(
            load_source=load_source, source_transformers=transformers, disable_parsing=True
        )

        result = await load_single_file(
            "TypeScript", "main.ts", TS_SOURCE, None, options, LoadSourceCache()
        )

        transform = result.transforms["js"]
        assert transform.file_name == "main.js"
        assert apply_transform(result.source, transform) == JS_SOURCE

    @pytest.mark.asyncio
    async def test_tree_delta_after_parsing(self, load_source, parse_source, transformers):
        """Test that transforms are re-diffed against the parsed baseline."""
        options = LoadVariantOptions(
            load_source=load_source, parse_source=parse_source, source_transformers=transformers
        )

        result = await load_single_file(
            "TypeScript", "main.ts", TS_SOURCE, None, options, LoadSourceCache(),
            language="typescript",
        )

        assert result.source == parse_plain_text(TS_SOURCE, "main.ts", "typescript")
        expected = parse_plain_text(JS_SOURCE, "main.js", "javascript")
        assert apply_transform(result.source, result.transforms["js"]) == expected
        parse_source.assert_any_call(JS_SOURCE, "main.js", "javascript")

    @pytest.mark.asyncio
    async def test_tree_delta_with_json_output(self, load_source, parse_source, transformers):
        """Test replaying a tree delta on a serialized baseline."""
        options = LoadVariantOptions(
            load_source=load_source,
            parse_source=parse_source,
            source_transformers=transformers,
            output=OutputMode.HAST_JSON,
        )

        result = await load_single_file(
            "TypeScript", "main.ts", TS_SOURCE, None, options, LoadSourceCache()
        )

        expected = parse_plain_text(JS_SOURCE, "main.js", "javascript")
        assert apply_transform(result.source, result.transforms["js"]) == expected

    @pytest.mark.asyncio
    async def test_non_matching_extension(self, load_source, transformers):
        """Test that transformers only run for their extensions."""
        options = LoadVariantOptions(
            load_source=load_source, source_transformers=transformers, disable_parsing=True
        )

        result = await load_single_file("Default", "main.css", "a{}", None, options, LoadSourceCache())

        assert result.transforms is None

    @pytest.mark.asyncio
    async def test_disabled_transforms(self, load_source, transformers):
        """Test that disabling transforms skips transformers."""
        options = LoadVariantOptions(
            load_source=load_source,
            source_transformers=transformers,
            disable_parsing=True,
            disable_transforms=True,
        )

        result = await load_single_file(
            "TypeScript", "main.ts", TS_SOURCE, None, options, LoadSourceCache()
        )

        assert result.transforms is None

    @pytest.mark.asyncio
    async def test_transformer_failure_wrapped(self, load_source):
        """Test that transformer errors are wrapped with context."""
        failing = AsyncMock(side_effect=RuntimeError("compiler crashed"))
        options = LoadVariantOptions(
            load_source=load_source,
            source_transformers=[SourceTransformer(extensions=["ts"], transformer=failing)],
            disable_parsing=True,
        )

        with pytest.raises(TransformSourceError) as exc_info:
            await load_single_file("TS", "main.ts", TS_SOURCE, None, options, LoadSourceCache())

        assert exc_info.value.variant == "TS"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestAllFilesListed:
    """Tests for the allFilesListed consistency check."""

    @pytest.fixture(autouse=True)
    def main_with_extra(self, sources):
        """Main file that reveals an undeclared extra file."""
        sources["https://x/main.js"] = {
            "source": "import './extra.js';",
            "extraFiles": {"extra.js": "https://x/extra.js"},
        }

    @pytest.mark.asyncio
    async def test_fails_in_development(self, raw_options):
        """Test that undeclared files fail in development."""
        with pytest.raises(UnexpectedExtraFilesError) as exc_info:
            await load_single_file(
                "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache(),
                all_files_listed=True,
            )

        assert "extra.js" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_warns_in_production(self, load_source, caplog):
        """Test that undeclared files only warn in production."""
        options = LoadVariantOptions(
            load_source=load_source, disable_parsing=True, environment=Environment.PRODUCTION
        )

        with caplog.at_level(logging.WARNING, logger="code_variants"):
            result = await load_single_file(
                "Default", "main.js", None, "https://x/main.js", options, LoadSourceCache(),
                all_files_listed=True,
            )

        assert result.extra_files == {"extra.js": "https://x/extra.js"}
        assert "allFilesListed" in caplog.text

    @pytest.mark.asyncio
    async def test_declared_files_pass(self, raw_options):
        """Test that declared files are not reported."""
        result = await load_single_file(
            "Default", "main.js", None, "https://x/main.js", raw_options, LoadSourceCache(),
            all_files_listed=True,
            known_extra_files=frozenset({"extra.js"}),
        )

        assert result.extra_files == {"extra.js": "https://x/extra.js"}
