"""
Tests for ipfsio.testing module.
"""
import pytest
from ipfsio.testing import MockTransport, InMemoryFileSystem
from ipfsio.exceptions import EmptyResponseError, InvalidSourceError, NetworkError, PathNotFoundError

API = "http://127.0.0.1:5001/api/v0"

def test_mock_transport_responses():
    """Test MockTransport replays queued bodies in order."""
    transport = MockTransport()
    transport.add_response(b"first")
    transport.add_response("second")

    assert transport.fetch_once(f"{API}/a") == b"first"
    assert transport.fetch_once(f"{API}/b") == b"second"
    # Empty queue default
    assert transport.fetch_once(f"{API}/c", allow_empty=True) == b""
    assert [r["url"] for r in transport.requests] == [f"{API}/a", f"{API}/b", f"{API}/c"]

def test_mock_transport_errors():
    """Test MockTransport can raise queued errors."""
    transport = MockTransport()
    transport.add_error(NetworkError("down"))
    with pytest.raises(NetworkError, match="down"):
        transport.fetch_once(f"{API}/id")

def test_mock_transport_validates_urls():
    """Test MockTransport rejects bad sources like the real transport."""
    with pytest.raises(InvalidSourceError):
        MockTransport().fetch_once("nope")

def test_mock_transport_stream_cancellation():
    """Test queued streams honour cancellation."""
    transport = MockTransport()
    transport.add_stream([b"a", b"b", b"c"])
    completions = []
    result = transport.fetch_streamed(
        f"{API}/cat", on_update=lambda chunk: chunk != b"b", on_complete=completions.append
    )
    assert result.cancelled is True
    assert completions == [b"ab"]

def test_mock_transport_send_paths_fails_closed():
    """Test missing paths record no request."""
    transport = MockTransport(fs=InMemoryFileSystem({}))
    with pytest.raises(PathNotFoundError):
        transport.send_paths(f"{API}/add", ["/missing"])
    assert transport.requests == []

def test_in_memory_filesystem():
    """Test the in-memory tree lookups."""
    fs = InMemoryFileSystem({"root": {"a.txt": "alpha", "sub": {}}})
    assert fs.exists("/root/a.txt")
    assert not fs.exists("/root/missing")
    assert fs.is_dir("/root/sub")
    assert not fs.is_dir("/root/a.txt")
    assert fs.list_dir("/root") == ["a.txt", "sub"]
    assert fs.read_bytes("/root/a.txt") == b"alpha"
    assert fs.reads == ["/root/a.txt"]
    assert fs.join("/root", "sub") == "/root/sub"
    with pytest.raises(IsADirectoryError):
        fs.read_bytes("/root/sub")

def test_mock_transport_empty_body_contract():
    """Test an empty body raises like HTTPTransport unless allowed."""
    transport = MockTransport()
    transport.add_response(b"")
    with pytest.raises(EmptyResponseError):
        transport.fetch_once(f"{API}/version")
    with pytest.raises(EmptyResponseError):
        transport.fetch_once(f"{API}/version")

@pytest.mark.asyncio
async def test_mock_transport_empty_body_async():
    """Test the async fetch shares the empty-body contract."""
    with pytest.raises(EmptyResponseError):
        await MockTransport().fetch_once_async(f"{API}/version")

def test_mock_transport_sends_allow_empty_reply():
    """Test sends still accept an empty reply."""
    assert MockTransport().send_raw(f"{API}/add", b"x") == b""

@pytest.mark.asyncio
async def test_mock_transport_async_stream_awaits_callbacks():
    """Test queued async streams await coroutine callbacks."""
    transport = MockTransport()
    transport.add_stream([b"a", b"b"])
    completions = []

    async def on_complete(data):
        completions.append(data)

    result = await transport.fetch_streamed_async(f"{API}/cat", on_complete=on_complete)
    assert completions == [b"ab"]
    assert result.data == b"ab"

def test_mock_transport_rejects_coroutine_callbacks():
    """Test the blocking mock stream refuses async callbacks."""
    async def on_update(chunk):
        return True

    with pytest.raises(TypeError):
        MockTransport().fetch_streamed(f"{API}/cat", on_update=on_update)

def test_in_memory_links():
    """Test linked paths resolve and list like symlinks."""
    fs = InMemoryFileSystem({"data": {"f": b"x"}, "home": {}}, links={"/home/d": "/data"})
    assert fs.list_dir("/home") == ["d"]
    assert fs.is_dir("/home/d")
    assert fs.read_bytes("/home/d/f") == b"x"
    assert fs.real_path("/home/d/f") == "/data/f"

def test_in_memory_link_loop():
    """Test self-referencing links raise ELOOP."""
    fs = InMemoryFileSystem({}, links={"/a": "/b", "/b": "/a"})
    with pytest.raises(OSError):
        fs.real_path("/a")
