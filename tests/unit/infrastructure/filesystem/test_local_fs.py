import pytest

from leadintel.infrastructure.filesystem.local_fs import LocalFileSystem


@pytest.fixture
def fs():
    return LocalFileSystem()


@pytest.mark.asyncio
async def test_read_file(fs, tmp_path):
    path = tmp_path / "call.txt"
    path.write_text("Olá, we need a quote.", encoding="utf-8")
    assert await fs.read_file(path) == "Olá, we need a quote."


@pytest.mark.asyncio
async def test_read_missing_file(fs, tmp_path):
    with pytest.raises(FileNotFoundError):
        await fs.read_file(tmp_path / "missing.txt")
    with pytest.raises(FileNotFoundError):
        await fs.read_file(tmp_path)


@pytest.mark.asyncio
async def test_read_json(fs, tmp_path):
    path = tmp_path / "leads.json"
    path.write_text('[{"id": "1"}]', encoding="utf-8")
    assert await fs.read_json(str(path)) == [{"id": "1"}]

    path.write_text("{oops", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        await fs.read_json(path)
