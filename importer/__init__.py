"""
Design
======

The importer loads a media archive export (posts with attached media files,
already extracted to a directory) into the photoblog content store.

General goals:

* All state is stored in the database and visible for reporting
* Celery tasks are ephemeral: they always check the database before doing
  work, so a canceled or already completed action is never repeated
* Importing the same export twice never creates duplicate content

The import process works like this:

1. An operator starts an import for an export directory and a list of
   categories (``manage.py start_import``). Every post file in the export is
   read up front, so a malformed export is rejected before anything changes.
2. The media entries are split into chunks of ten. In one transaction the run
   settings are stored in the configuration app, the ImportStatus row is reset
   to ``queued`` with a new run id and one QueuedAction row is recorded per
   chunk. The Celery tasks are sent once that transaction has committed.
3. Each chunk task imports its items one at a time. Every item gets a
   fingerprint derived from its source path and capture time; items whose
   fingerprint is already recorded on an asset are skipped, as are invalid
   items and items whose media file is missing. Per-item problems never abort
   the chunk.
4. After each chunk the progress counter is advanced with a single
   conditional UPDATE. The last chunk queues the completion task, which marks
   the run completed. An unexpected error in a chunk marks the run failed.
5. ``manage.py reset_import`` cancels outstanding work, clears the recorded
   fingerprints, removes the extracted files and resets the status row. Chunks
   that were already running when the reset happened notice that their run id
   is stale and leave the status alone.
"""
