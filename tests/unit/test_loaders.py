"""Tests for the bundled source loaders."""

from pathlib import Path

import httpx
import pytest

from code_variants.config.models import LoaderConfig
from code_variants.loaders.factory import SchemeSourceLoader, create_source_loader
from code_variants.loaders.filesystem import FileSystemSourceLoader
from code_variants.loaders.http import HttpSourceLoader
from code_variants.loaders.imports import discover_imports, parse_import_clause
from code_variants.loaders.protocol import SourceLoader
from code_variants.models.enums import ImportKind
from code_variants.models.externals import ExternalImport

MAIN_TSX = """import * as React from 'react';
import Button, { ButtonProps, type Theme } from '@mui/material/Button';
import type { FC } from 'react';
import { helper } from './helper';
import './styles.css';
export { shared } from '../shared/index';
const lodash = require('lodash');

export default function Demo() {
  return <Button>{helper()}</Button>;
}
"""


class TestDiscoverImports:
    """Tests for import discovery."""

    def test_relative_imports(self):
        """Test finding relative imports in order."""
        discovered = discover_imports(MAIN_TSX, "Demo.tsx")
        assert discovered.relative == ["./helper", "./styles.css", "../shared/index"]

    def test_externals(self):
        """Test collecting imported symbols per module."""
        externals = discover_imports(MAIN_TSX, "Demo.tsx").externals

        assert list(externals) == ["react", "@mui/material/Button", "lodash"]
        assert externals["react"] == [
            ExternalImport(name="React", type=ImportKind.NAMESPACE),
            ExternalImport(name="FC", type=ImportKind.NAMED, is_type=True),
        ]
        assert externals["@mui/material/Button"] == [
            ExternalImport(name="Button", type=ImportKind.DEFAULT),
            ExternalImport(name="ButtonProps", type=ImportKind.NAMED),
            ExternalImport(name="Theme", type=ImportKind.NAMED, is_type=True),
        ]
        assert externals["lodash"] == []

    def test_css_imports(self):
        """Test CSS @import syntax."""
        source = "@import './reset.css';\n@import url('../theme.css');\n@import 'https://cdn/x.css';"
        discovered = discover_imports(source, "styles.css")

        assert discovered.relative == ["./reset.css", "../theme.css"]
        assert discovered.externals == {}

    def test_aliased_named_import(self):
        """Test that aliases record the imported name."""
        assert parse_import_clause("{ useState as useLocalState }") == [
            ExternalImport(name="useState", type=ImportKind.NAMED)
        ]


class TestFileSystemSourceLoader:
    """Tests for FileSystemSourceLoader."""

    @pytest.fixture
    def demo_dir(self, tmp_path) -> Path:
        """Create a small demo on disk."""
        demo = tmp_path / "demo"
        (demo / "components").mkdir(parents=True)
        (tmp_path / "shared").mkdir()
        (demo / "index.ts").write_text(
            "import React from 'react';\n"
            "import { Card } from './components';\n"
            "import { tokens } from '../shared/tokens';\n"
            "import { missing } from './missing';\n",
            encoding="utf-8",
        )
        (demo / "components" / "index.tsx").write_text("export const Card = 1;", encoding="utf-8")
        (tmp_path / "shared" / "tokens.ts").write_text("export const tokens = {};", encoding="utf-8")
        (demo / "README.md").write_text("# Demo", encoding="utf-8")
        return demo

    @pytest.mark.asyncio
    async def test_reads_and_discovers(self, demo_dir, caplog):
        """Test reading a file and resolving its relative imports."""
        loader = FileSystemSourceLoader()

        result = await loader.load_source((demo_dir / "index.ts").as_uri())

        assert result.source.startswith("import React")
        assert result.extra_files == {
            "components/index.tsx": (demo_dir / "components" / "index.tsx").as_uri(),
            "../shared/tokens.ts": (demo_dir.parent / "shared" / "tokens.ts").as_uri(),
        }
        assert list(result.externals) == ["react"]
        assert "./missing" in caplog.text
        assert {record.name for record in caplog.records} == {"code_variants.loaders.filesystem"}

    @pytest.mark.asyncio
    async def test_relative_path_against_root(self, demo_dir):
        """Test that plain relative paths are read from the root."""
        loader = FileSystemSourceLoader(root_path=demo_dir)

        result = await loader.load_source("README.md")

        assert result.source == "# Demo"
        assert result.extra_files is None

    @pytest.mark.asyncio
    async def test_discovery_disabled(self, demo_dir):
        """Test that discovery can be turned off."""
        loader = FileSystemSourceLoader(discover_imports=False)

        result = await loader.load_source(str(demo_dir / "index.ts"))

        assert result.extra_files is None
        assert result.externals is None

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        """Test that a missing file raises."""
        loader = FileSystemSourceLoader(root_path=tmp_path)

        with pytest.raises(FileNotFoundError):
            await loader.load_source("nope.js")

    def test_satisfies_protocol(self):
        """Test that the loader satisfies the SourceLoader protocol."""
        assert isinstance(FileSystemSourceLoader(), SourceLoader)


class TestHttpSourceLoader:
    """Tests for HttpSourceLoader."""

    @pytest.mark.asyncio
    async def test_fetches_source(self):
        """Test fetching a file body."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url == "https://x/demo/index.js"
            return httpx.Response(200, text="export default 1;")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with HttpSourceLoader(client=client) as loader:
            result = await loader.load_source("https://x/demo/index.js")

        assert result.source == "export default 1;"

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        """Test that connection errors are retried."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, text="ok")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        loader = HttpSourceLoader(retry_attempts=3, retry_delay=0.01, client=client)

        result = await loader.load_source("https://x/a.js")
        await loader.close()

        assert result.source == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        """Test that the last transient error is raised."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        loader = HttpSourceLoader(retry_attempts=2, retry_delay=0.01, client=client)

        with pytest.raises(httpx.ConnectTimeout):
            await loader.load_source("https://x/a.js")
        await loader.close()

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self):
        """Test that error responses fail immediately."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        loader = HttpSourceLoader(client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await loader.load_source("https://x/missing.js")
        await loader.close()

        assert len(attempts) == 1


class TestFactory:
    """Tests for the loader factory."""

    def test_creates_scheme_loader(self, tmp_path):
        """Test that configuration reaches the loaders."""
        loader = create_source_loader(LoaderConfig(root_path=tmp_path, discover_imports=False))

        assert isinstance(loader, SchemeSourceLoader)
        assert loader.filesystem.to_path("a.js") == tmp_path.resolve() / "a.js"

    @pytest.mark.asyncio
    async def test_dispatches_by_scheme(self, tmp_path):
        """Test that HTTP URLs and files go to different loaders."""
        (tmp_path / "local.txt").write_text("local", encoding="utf-8")
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="remote"))
        )
        loader = SchemeSourceLoader(
            filesystem=FileSystemSourceLoader(root_path=tmp_path),
            http=HttpSourceLoader(client=client),
        )

        remote = await loader.load_source("https://x/remote.txt")
        local = await loader.load_source((tmp_path / "local.txt").as_uri())
        await loader.close()

        assert remote.source == "remote"
        assert local.source == "local"
