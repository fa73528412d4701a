"""
Demo: Stream a file from the daemon, stopping after the first kilobyte.
Run: python examples/demo_streaming.py <cid>
"""
import asyncio
import sys
from ipfsio import Client, IpfsIoError

LIMIT = 1024

def main(cid: str):
    client = Client()
    received = 0

    def on_update(chunk: bytes) -> bool:
        nonlocal received
        received += len(chunk)
        print(f"chunk: {len(chunk)} bytes (total {received})")
        return received <= LIMIT

    def on_complete(data: bytes):
        print(f"done: {len(data)} bytes buffered")

    try:
        result = client.stream("cat", on_update, on_complete, arg=cid)
    except IpfsIoError as e:
        print(f"stream failed: {e}")
        return
    print(f"cancelled early: {result.cancelled}\n")

async def main_async(cid: str):
    client = Client()
    print("Async mode: two concurrent streams")
    first, second = await asyncio.gather(
        client.stream_async("cat", arg=cid),
        client.stream_async("cat", arg=cid, length=LIMIT),
    )
    print(f"full: {len(first.data)} bytes, truncated: {len(second.data)} bytes")

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: demo_streaming.py <cid>")
        sys.exit(1)
    main(sys.argv[1])
    asyncio.run(main_async(sys.argv[1]))
