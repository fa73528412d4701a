"""
Demo: Add a local directory tree to the daemon.
Run: python examples/add_directory.py ./some/dir
"""
import sys
from ipfsio import Client, resolve_paths, PathNotFoundError

def main(paths):
    for part in resolve_paths(paths):
        print(f"{part.kind:<9} {part.name}")

    client = Client(debug=True)
    try:
        reply = client.send_paths("add", paths, recursive=True)
    except PathNotFoundError as e:
        print(f"nothing sent: {e}")
        return
    print(reply.decode("utf-8"))

if __name__ == "__main__":
    main(sys.argv[1:] or ["."])
