import tempfile
from types import SimpleNamespace
from unittest import mock

from django.test import TestCase

import photoblog.celery as celery_mod
from importer.config import COMPLETE_IMPORT_ACTION, PROCESS_CHUNK_ACTION
from photoblog.celery import import_all_submodules


class PhotoblogCeleryTests(TestCase):
    def test_returns_early_for_non_package(self):
        mock_pkg = SimpleNamespace(__name__="not_a_pkg")  # no __path__

        with (
            mock.patch.object(
                celery_mod.importlib, "import_module", return_value=mock_pkg
            ) as mock_import,
            mock.patch.object(celery_mod.pkgutil, "walk_packages") as mock_walk,
        ):
            import_all_submodules("not_a_pkg")

        mock_import.assert_called_once_with("not_a_pkg")
        mock_walk.assert_not_called()

    def test_imports_all_submodules_for_package(self):
        submodules = [
            SimpleNamespace(name="dummy_pkg.sub1"),
            SimpleNamespace(name="dummy_pkg.sub2"),
        ]

        with tempfile.TemporaryDirectory() as td:
            mock_pkg = SimpleNamespace(__name__="dummy_pkg", __path__=[td])

            with (
                mock.patch.object(
                    celery_mod.importlib,
                    "import_module",
                    side_effect=lambda name: (
                        mock_pkg if name == "dummy_pkg" else SimpleNamespace()
                    ),
                ) as mock_import,
                mock.patch.object(
                    celery_mod.pkgutil, "walk_packages", return_value=submodules
                ) as mock_walk,
            ):
                import_all_submodules("dummy_pkg")

        mock_walk.assert_called_once_with([td], "dummy_pkg.")
        self.assertEqual(
            mock_import.mock_calls,
            [
                mock.call("dummy_pkg"),
                mock.call("dummy_pkg.sub1"),
                mock.call("dummy_pkg.sub2"),
            ],
        )

    def test_on_after_finalize_signal_loads_importer_tasks(self):
        with mock.patch.object(celery_mod, "import_all_submodules") as mock_import_all:
            celery_mod.app.on_after_finalize.send(sender=celery_mod.app)

        mock_import_all.assert_called_once_with("importer.tasks")

    def test_importer_actions_are_registered_by_name(self):
        self.assertIn(PROCESS_CHUNK_ACTION, celery_mod.app.tasks)
        self.assertIn(COMPLETE_IMPORT_ACTION, celery_mod.app.tasks)
