"""Tests for the JSON contact store."""

import json

import pytest

from contacts.errors import HostIOError, ErrorCode


@pytest.mark.asyncio
async def test_save_and_read(store):
    await store.save_contact("Jane Smith", {"FN": "Jane Smith"}, "## Related\n")
    assert await store.read_content("Jane Smith") == "## Related\n"
    assert await store.read_frontmatter("Jane Smith") == {"FN": "Jane Smith"}
    data = json.loads((store.data_dir / "Jane Smith.json").read_text(encoding="utf-8"))
    assert set(data) == {"frontmatter", "content"}


@pytest.mark.asyncio
async def test_write_frontmatter_merges_keys(store):
    await store.save_contact("Jane", {"FN": "Jane", "TEL": "1"})
    await store.write_frontmatter("Jane", {"TEL": "2", "REV": "20240101T000000Z"})
    assert await store.read_frontmatter("Jane") == {
        "FN": "Jane",
        "TEL": "2",
        "REV": "20240101T000000Z",
    }
    assert not list(store.data_dir.glob("*.tmp"))


@pytest.mark.asyncio
async def test_missing_contact(store):
    with pytest.raises(HostIOError) as exc_info:
        await store.read_frontmatter("Nobody")
    assert exc_info.value.code == ErrorCode.IO_NOT_FOUND


@pytest.mark.asyncio
async def test_corrupt_document_is_a_read_error(store):
    (store.data_dir / "Broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(HostIOError) as exc_info:
        await store.read_content("Broken")
    assert exc_info.value.code == ErrorCode.IO_READ


@pytest.mark.asyncio
async def test_list_and_resolve(store):
    await store.save_contact("Jane Smith", {"FN": "Jane Smith"})
    await store.save_contact("bo", {"FN": "Robert Stone"})
    assert await store.list_contacts() == ["Jane Smith", "bo"]
    assert await store.resolve_name("Jane Smith") == "Jane Smith"
    assert await store.resolve_name("BO") == "bo"
    assert await store.resolve_name("Robert Stone") == "bo"
    assert await store.resolve_name("Nobody") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["../outside", "a/b", "a\\b", "..", ""])
async def test_names_cannot_leave_the_data_dir(store, name):
    with pytest.raises(HostIOError) as exc_info:
        await store.save_contact(name, {"FN": "x"})
    assert exc_info.value.code == ErrorCode.IO_INVALID_NAME
    assert not (store.data_dir.parent / "outside.json").exists()


@pytest.mark.asyncio
async def test_display_name_with_slash_resolves_by_fn(store):
    await store.save_contact("acdc", {"FN": "AC/DC"})
    assert await store.resolve_name("AC/DC") == "acdc"


@pytest.mark.asyncio
async def test_failed_replace_leaves_no_temp_file(store, monkeypatch):
    def refuse(src, dst):
        raise OSError("replace refused")

    monkeypatch.setattr("relationships.store.os.replace", refuse)
    with pytest.raises(HostIOError) as exc_info:
        await store.save_contact("Jane", {"FN": "Jane"})
    assert exc_info.value.code == ErrorCode.IO_WRITE
    assert list(store.data_dir.iterdir()) == []
