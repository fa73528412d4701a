"""
Example: Testing code that uploads to the daemon
Run: pytest examples/testing_your_app.py
"""
import json
from ipfsio import Client
from ipfsio.testing import MockTransport, InMemoryFileSystem

# --- Your Application Code ---
class Publisher:
    def __init__(self, client: Client):
        self.client = client

    def publish(self, folder: str) -> str:
        reply = self.client.send_paths("add", [folder], recursive=True)
        last = reply.decode("utf-8").strip().splitlines()[-1]
        return json.loads(last)["Hash"]

# --- Your Tests ---
def test_publisher_returns_root_hash():
    # 1. Setup an in-memory tree and a recording transport
    fs = InMemoryFileSystem({"site": {"index.html": b"<h1>hi</h1>"}})
    client = Client(transport_factory=lambda timeout=None: MockTransport(timeout=timeout, fs=fs))
    client.transport.add_response('{"Name": "site/index.html", "Hash": "QmA"}\n{"Name": "site", "Hash": "QmRoot"}\n')

    # 2. Run your code
    assert Publisher(client).publish("/site") == "QmRoot"

    # 3. Inspect what would have gone over the wire
    request = client.transport.requests[0]
    assert request["parts"] == 2
    assert b"<h1>hi</h1>" in request["body"]
