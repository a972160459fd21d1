#!/usr/bin/env python3
"""
Check Milvus connectivity and permissions for the configured collection.

Runs four checks (list collections, create/drop a scratch collection, query the
article collection, insert and delete a test row) and prints PASS/FAIL for each.
Exit status is 1 when any check fails.

Run from project root:

    python scripts/verify_milvus.py
"""

import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.core.config import COLLECTION_NAME, MILVUS_TOKEN, MILVUS_URI, VECTOR_DIM

SCRATCH_COLLECTION = "permission_check"


def main() -> None:
    if not MILVUS_URI or not MILVUS_TOKEN:
        print("MILVUS_URI and MILVUS_TOKEN must be set in .env")
        sys.exit(1)

    from pymilvus import MilvusClient

    client = MilvusClient(uri=MILVUS_URI, token=MILVUS_TOKEN)

    def create_and_drop() -> None:
        client.create_collection(collection_name=SCRATCH_COLLECTION, dimension=4)
        client.drop_collection(collection_name=SCRATCH_COLLECTION)

    def read_rows() -> None:
        if client.has_collection(COLLECTION_NAME):
            client.query(collection_name=COLLECTION_NAME, filter="", limit=1, output_fields=["title"])

    def write_row() -> None:
        if not client.has_collection(COLLECTION_NAME):
            return
        res = client.insert(
            collection_name=COLLECTION_NAME,
            data=[{"vector": [0.0] * (VECTOR_DIM - 1) + [1.0], "title": "permission check", "content": "", "source": "", "pubDate": ""}],
        )
        client.delete(collection_name=COLLECTION_NAME, ids=list(res.get("ids", [])))

    checks = [
        ("Collections read", client.list_collections),
        ("Collections write", create_and_drop),
        ("Vectors read", read_rows),
        ("Vectors write", write_row),
    ]
    failed = 0
    for name, check in checks:
        try:
            check()
            print(f"PASS  {name}")
        except Exception as e:
            failed += 1
            print(f"FAIL  {name}: {e}")

    print(f"{len(checks) - failed}/{len(checks)} checks passed against {MILVUS_URI}")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
