"""Unit tests for adapters/json_store.py."""

from __future__ import annotations

import json
import stat
from unittest.mock import patch

import pytest

from breakwatch.adapters.json_store import JsonFileStore
from breakwatch.models.exceptions import PlatformApiUnavailableError, StateCorruptionError


@pytest.fixture()
def path(tmp_path):
    return tmp_path / "state" / "state.json"


@pytest.fixture()
def store(path) -> JsonFileStore:
    return JsonFileStore(path)


@pytest.mark.asyncio
async def test_missing_file_reads_as_empty(store):
    assert await store.get("anything") is None
    assert await store.get_multiple(["a", "b"]) == {}


@pytest.mark.asyncio
async def test_set_creates_parent_dir_and_private_file(store, path):
    await store.set("k", {"v": 1})

    assert path.exists()
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert json.loads(path.read_text()) == {"k": {"v": 1}}


@pytest.mark.asyncio
async def test_set_multiple_writes_all_keys_once(store, path):
    await store.set("keep", 1)

    with patch("breakwatch.adapters.json_store.os.replace", wraps=__import__("os").replace) as replace:
        await store.set_multiple({"a": 1, "b": [2]})

    replace.assert_called_once()
    assert await store.get_multiple(["keep", "a", "b", "missing"]) == {"keep": 1, "a": 1, "b": [2]}


@pytest.mark.asyncio
async def test_values_are_copies(store):
    value = {"nested": [1]}
    await store.set("k", value)
    value["nested"].append(2)

    fetched = await store.get("k")
    fetched["nested"].append(3)

    assert await store.get("k") == {"nested": [1]}


@pytest.mark.asyncio
async def test_remove(store):
    await store.set_multiple({"a": 1, "b": 2})

    assert await store.remove("a") is True
    assert await store.remove("a") is False
    assert await store.get_multiple(["a", "b"]) == {"b": 2}


@pytest.mark.asyncio
async def test_corrupt_file_is_moved_aside_and_reported(store, path):
    path.parent.mkdir(parents=True)
    path.write_text('{"break_timer_state": {"is_on_br')

    with pytest.raises(StateCorruptionError):
        await store.get("break_timer_state")

    backup = path.with_suffix(".json.corrupt")
    assert backup.read_text() == '{"break_timer_state": {"is_on_br'
    assert not path.exists()
    assert store.discarded_to == backup


@pytest.mark.asyncio
async def test_reads_keep_failing_until_next_write(store, path):
    path.parent.mkdir(parents=True)
    path.write_text("{not json")

    with pytest.raises(StateCorruptionError):
        await store.get_multiple(["a"])
    with pytest.raises(StateCorruptionError):
        await store.get("a")

    await store.set("a", 1)

    assert await store.get_multiple(["a"]) == {"a": 1}
    assert store.discarded_to is None


@pytest.mark.asyncio
async def test_non_object_file_is_reported(store, path):
    path.parent.mkdir(parents=True)
    path.write_text("[1, 2, 3]")

    with pytest.raises(StateCorruptionError):
        await store.get_multiple(["0"])

    await store.set("k", 1)
    assert json.loads(path.read_text()) == {"k": 1}
    assert path.with_suffix(".json.corrupt").read_text() == "[1, 2, 3]"


@pytest.mark.asyncio
async def test_failed_write_leaves_no_temp_file(store, path):
    await store.set("k", 1)

    with patch("breakwatch.adapters.json_store.json.dump", side_effect=TypeError("not serializable")):
        with pytest.raises(TypeError):
            await store.set("bad", object())

    assert [p.name for p in path.parent.iterdir()] == ["state.json"]
    assert await store.get("k") == 1


@pytest.mark.asyncio
async def test_unusable_directory_reports_unavailable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not dir")
    store = JsonFileStore(blocker / "state.json")

    with pytest.raises(PlatformApiUnavailableError) as exc_info:
        await store.set("k", 1)

    assert exc_info.value.api == "storage"


def test_delete_file(store, path):
    path.parent.mkdir(parents=True)
    path.write_text("{}")

    store.delete_file()
    store.delete_file()

    assert not path.exists()
