from django.core.files.storage import storages
from django.utils.functional import LazyObject


class LazyAssetStorage(LazyObject):
    def _setup(self):
        self._wrapped = storages["assets"]


# We use a LazyObject so the value isn't evaluated when the code is loaded,
# which lets the test settings swap the backend before first use

ASSET_STORAGE = LazyAssetStorage()
