"""
Per-item idempotency keys

An item's fingerprint is recorded as AssetMetadata on the asset created for it,
so a later run can skip the item with a single indexed lookup.
"""

import hashlib

from importer.config import FINGERPRINT_METADATA_KEY


def fingerprint(item):
    """
    Return the hex digest identifying ``item`` across runs

    Only the source path and capture time take part, so editing a caption in
    a later export does not cause the media to be imported again.
    """
    digest = hashlib.md5(usedforsecurity=False)  # nosec
    digest.update(f"{item.source_uri}{item.captured_at}".encode("utf-8"))
    return digest.hexdigest()


def is_imported(media_fingerprint, store):
    # Lookup errors propagate: treating them as "not imported" risks duplicates
    return store.query_metadata(FINGERPRINT_METADATA_KEY, media_fingerprint) is not None


def mark_imported(asset_id, media_fingerprint, store):
    store.set_metadata(asset_id, FINGERPRINT_METADATA_KEY, media_fingerprint)


def forget_imported(store):
    """
    Remove every recorded fingerprint and return how many were removed
    """
    return store.delete_metadata(FINGERPRINT_METADATA_KEY)
