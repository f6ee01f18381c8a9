import io
import json
import os
import shutil
import tempfile
from types import SimpleNamespace

from django.utils.text import slugify
from PIL import Image

from importer.config import PROCESS_CHUNK_ACTION, importer_setting
from importer.models import QueuedAction
from importer.source import ImportItem
from photoblog.celery import app
from photoblog.models import Category

CONTENT_DIRECTORY = "your_instagram_activity/content"


def create_category(*, name="Travel", slug=None, **kwargs):
    category = Category(name=name, slug=slug or slugify(name), **kwargs)
    category.save()
    return category


def create_queued_action(*, action=PROCESS_CHUNK_ACTION, payload=None, **kwargs):
    kwargs.setdefault("group", importer_setting("TASK_GROUP"))
    return QueuedAction.objects.create(
        action=action, payload=payload if payload is not None else {}, **kwargs
    )


def image_bytes(size=(4, 3), image_format="JPEG"):
    buf = io.BytesIO()
    Image.new("RGB", size, color="red").save(buf, format=image_format)
    return buf.getvalue()


def media_entry(uri, creation_timestamp=1700000000, title="A caption", **extra):
    entry = {"uri": uri, "creation_timestamp": creation_timestamp, "title": title}
    entry.update(extra)
    return entry


def make_item(uri="media/posts/202401/photo.jpg", captured_at=1700000000, caption="Hi"):
    return ImportItem(source_uri=uri, captured_at=captured_at, caption=caption)


class ExportDirectory:
    """
    A temporary extracted export for tests to write post files and media into

    Usable as a context manager or via cleanup() from tearDown.
    """

    def __init__(self):
        self.root = tempfile.mkdtemp(prefix="photoblog-export-")
        self.content_dir = os.path.join(self.root, CONTENT_DIRECTORY)
        os.makedirs(self.content_dir)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.cleanup()

    def cleanup(self):
        shutil.rmtree(self.root, ignore_errors=True)

    def write_posts(self, filename, posts):
        path = os.path.join(self.content_dir, filename)
        with open(path, "w") as f:
            json.dump(posts, f)
        return path

    def write_raw(self, filename, content):
        path = os.path.join(self.content_dir, filename)
        with open(path, "w") as f:
            f.write(content)
        return path

    def write_media(self, uri, content=None):
        path = os.path.join(self.root, uri)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(image_bytes() if content is None else content)
        return path

    def add_posts(self, filename, media_per_post, start=0, write_media=True):
        """
        Write a post file with one post per entry of ``media_per_post`` and
        return the media entries in document order
        """
        posts = []
        entries = []
        counter = start
        for media_count in media_per_post:
            media = []
            for _ in range(media_count):
                uri = f"media/posts/202401/photo_{counter}.jpg"
                entry = media_entry(
                    uri,
                    creation_timestamp=1700000000 + counter,
                    title=f"Photo number {counter}. Taken on holiday #travel",
                    backup_uri=f"backup/{counter}.jpg",
                )
                if write_media:
                    self.write_media(uri)
                media.append(entry)
                entries.append(entry)
                counter += 1
            posts.append({"media": media, "title": "", "creation_timestamp": 0})
        self.write_posts(filename, posts)
        return entries


def run_actions_inline(queue, actions):
    """
    Stand-in for TaskQueue.dispatch which runs each action's task immediately
    """
    for action in actions:
        app.tasks[action.action](action.pk)


def fake_task(task_id=None):
    """
    Minimal stand-in for a bound Celery task as seen by update_task_status
    """
    return SimpleNamespace(request=SimpleNamespace(id=task_id))
