import pytest

def _parse_multipart(body: bytes, boundary: str):
    """Split a finished multipart body into (headers, content) pairs."""
    delimiter = b"--" + boundary.encode("ascii")
    assert body.endswith(delimiter + b"--\r\n")
    segments = body.split(delimiter)
    assert segments[0] == b""
    assert segments[-1] == b"--\r\n"

    parts = []
    for segment in segments[1:-1]:
        assert segment.startswith(b"\r\n") and segment.endswith(b"\r\n")
        head, _, content = segment[2:-2].partition(b"\r\n\r\n")
        headers = dict(line.split(": ", 1) for line in head.decode("utf-8").split("\r\n"))
        parts.append((headers, content))
    return parts

@pytest.fixture
def parse_multipart():
    return _parse_multipart

@pytest.fixture
def sample_tree(tmp_path):
    """root/{a.txt, sub/{b.txt}} on disk."""
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"alpha")
    (root / "sub" / "b.txt").write_bytes(b"beta")
    return root
