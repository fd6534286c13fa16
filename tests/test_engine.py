"""Tests for the reference bundling engine."""

import os

import pytest

from bale_cli.engine import BuildSession
from bale_cli.engine import SessionOptions
from bale_cli.engine import load_engine
from bale_cli.engine import stdin_slug
from bale_cli.errors import BaleError
from bale_cli.errors import BuildError


class Upper:
    name = "upper"
    slug = "upper"

    def transform(self, source, context):
        return source.upper()


class AsyncSuffix:
    name = "suffix"

    async def transform(self, source, context):
        return source + f"// {context.entry_type} dev={context.development}\n"


class ReturnsBytes:
    name = "bytes"

    def transform(self, source, context):
        return source.encode()


def record_events(session: BuildSession) -> list[tuple[str, str]]:
    seen = []
    for event in ("resolving", "resolved", "installing", "installed", "building", "built"):
        session.on(event, lambda payload, event=event: seen.append((event, payload)))
    return seen


@pytest.fixture
def entry(tmp_path):
    path = tmp_path / "index.js"
    path.write_text("module.exports = 1;\n")
    return path


class TestBundle:
    @pytest.mark.asyncio
    async def test_plain_entry(self, tmp_path, entry):
        session = BuildSession(entry, SessionOptions(root=tmp_path))
        assert await session.bundle() == b"module.exports = 1;\n"

    @pytest.mark.asyncio
    async def test_plugins_run_in_order(self, tmp_path, entry):
        options = SessionOptions(root=tmp_path, plugins=(Upper(), AsyncSuffix()), development=True)
        output = await BuildSession(entry, options).bundle()
        assert output == b"MODULE.EXPORTS = 1;\n// js dev=True\n"

    @pytest.mark.asyncio
    async def test_lifecycle_events_in_order(self, tmp_path, entry):
        session = BuildSession(entry, SessionOptions(root=tmp_path))
        seen = record_events(session)

        await session.bundle()

        assert [name for name, _ in seen] == [
            "resolving",
            "resolved",
            "installing",
            "installed",
            "building",
            "built",
        ]

    @pytest.mark.asyncio
    async def test_stdin_source(self, tmp_path):
        session = BuildSession(None, SessionOptions(root=tmp_path, entry_type="css"), source="a { }")
        seen = record_events(session)

        assert await session.bundle() == b"a { }"
        assert session.slug == "source.css"
        assert ("installing", "source.css") in seen

    @pytest.mark.asyncio
    async def test_global_wraps_javascript(self, tmp_path, entry):
        session = BuildSession(entry, SessionOptions(root=tmp_path, global_name="MyLib"))
        output = (await session.bundle()).decode()
        assert "root['MyLib'] = factory();" in output
        assert "module.exports = 1;" in output

    @pytest.mark.asyncio
    async def test_global_ignored_for_css(self, tmp_path):
        css = tmp_path / "style.css"
        css.write_text("a { }")
        session = BuildSession(css, SessionOptions(root=tmp_path, global_name="MyLib"))
        assert await session.bundle() == b"a { }"

    @pytest.mark.asyncio
    async def test_missing_entry(self, tmp_path):
        session = BuildSession(tmp_path / "nope.js", SessionOptions(root=tmp_path))
        with pytest.raises(BuildError, match="Cannot find entry"):
            await session.bundle()

    @pytest.mark.asyncio
    async def test_plugin_must_return_text(self, tmp_path, entry):
        session = BuildSession(entry, SessionOptions(root=tmp_path, plugins=(ReturnsBytes(),)))
        with pytest.raises(BuildError, match="expected str"):
            await session.bundle()

    @pytest.mark.asyncio
    async def test_plugin_exception_becomes_build_error(self, tmp_path, entry):
        class Exploding:
            name = "boom"

            def transform(self, source, context):
                raise RuntimeError("kaboom")

        session = BuildSession(entry, SessionOptions(root=tmp_path, plugins=(Exploding(),)))
        with pytest.raises(BuildError, match="kaboom"):
            await session.bundle()

    @pytest.mark.asyncio
    async def test_session_runs_once(self, tmp_path, entry):
        session = BuildSession(entry, SessionOptions(root=tmp_path))
        await session.bundle()
        with pytest.raises(RuntimeError):
            await session.bundle()

    def test_needs_entry_or_source(self, tmp_path):
        with pytest.raises(ValueError):
            BuildSession(None, SessionOptions(root=tmp_path))

    def test_unknown_event(self, tmp_path, entry):
        with pytest.raises(ValueError):
            BuildSession(entry, SessionOptions(root=tmp_path)).on("exploded", print)


class TestWrite:
    @pytest.mark.asyncio
    async def test_untransformed_entry_is_symlinked(self, tmp_path, entry):
        out = tmp_path / "dist"
        target = await BuildSession(entry, SessionOptions(root=tmp_path, output_dir=out)).write()

        assert target == out / "index.js"
        assert target.is_symlink()
        assert os.path.realpath(target) == os.path.realpath(entry)

    @pytest.mark.asyncio
    async def test_copy_mode_copies(self, tmp_path, entry):
        out = tmp_path / "dist"
        target = await BuildSession(entry, SessionOptions(root=tmp_path, output_dir=out, copy_files=True)).write()

        assert not target.is_symlink()
        assert target.read_text() == entry.read_text()

    @pytest.mark.asyncio
    async def test_transformed_output_is_written(self, tmp_path, entry):
        out = tmp_path / "dist"
        options = SessionOptions(root=tmp_path, output_dir=out, plugins=(Upper(),))
        target = await BuildSession(entry, options).write()

        assert not target.is_symlink()
        assert target.read_text() == "MODULE.EXPORTS = 1;\n"

    @pytest.mark.asyncio
    async def test_rewrite_replaces_previous_output(self, tmp_path, entry):
        out = tmp_path / "dist"
        await BuildSession(entry, SessionOptions(root=tmp_path, output_dir=out)).write()
        target = await BuildSession(entry, SessionOptions(root=tmp_path, output_dir=out, plugins=(Upper(),))).write()

        assert not target.is_symlink()
        assert entry.read_text() == "module.exports = 1;\n"

    @pytest.mark.asyncio
    async def test_write_requires_output_dir(self, tmp_path, entry):
        with pytest.raises(BuildError, match="no output directory"):
            await BuildSession(entry, SessionOptions(root=tmp_path)).write()

    @pytest.mark.asyncio
    async def test_stdin_cannot_be_written(self, tmp_path):
        session = BuildSession(None, SessionOptions(root=tmp_path, output_dir=tmp_path), source="x")
        with pytest.raises(BuildError, match="stdout"):
            await session.write()


class TestLoadEngine:
    def test_default_engine(self):
        assert load_engine(None) is BuildSession

    def test_named_engine(self):
        assert load_engine("bale_cli.engine:BuildSession") is BuildSession

    def test_unknown_engine(self):
        with pytest.raises(BaleError, match="Cannot load engine"):
            load_engine("no_such_module_xyz:Engine")


def test_stdin_slug():
    assert stdin_slug() == "source.js"
    assert stdin_slug("css") == "source.css"
