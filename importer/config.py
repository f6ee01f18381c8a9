"""
Importer app level configurations
"""

from django.conf import settings

IMPORTER = {
    # Directory inside an extracted export that holds the post files
    "CONTENT_DIRECTORY": "your_instagram_activity/content",
    "SOURCE_FILE_PATTERN": "posts*.json",
    "CHUNK_SIZE": 10,
    # Queue group shared by every action belonging to an import run
    "TASK_GROUP": "photoblog-import",
}

#: Celery task names, also used as QueuedAction.action
PROCESS_CHUNK_ACTION = "importer.process_chunk"
COMPLETE_IMPORT_ACTION = "importer.complete_import"

#: Keys used in the configuration app
EXPORT_ROOT_KEY = "importer_export_root"
CATEGORIES_KEY = "importer_categories"
EXPORT_PATHS_KEY = "importer_export_paths"

#: AssetMetadata key holding an imported asset's fingerprint
FINGERPRINT_METADATA_KEY = "_instagram_media_id"


def importer_setting(name):
    """
    Return an importer setting, preferring a value from settings.IMPORTER
    """
    overrides = getattr(settings, "IMPORTER", None) or {}
    return overrides.get(name, IMPORTER[name])
