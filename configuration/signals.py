from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from configuration.models import Configuration
from configuration.utils import cache_configuration_value, clear_configuration_value


@receiver(post_save, sender=Configuration)
def update_cached_configuration_value(
    sender: type[Configuration], *, instance: Configuration, **kwargs
) -> None:
    """
    Post-save signal handler that updates the cached configuration value.

    The previously cached value is dropped immediately and the new value is
    cached once the surrounding transaction commits, so a save that is rolled
    back never reaches the cache. If the stored value cannot be parsed for its
    data type, caching is skipped so an invalid value is never served from the
    cache.
    """
    key = instance.key
    clear_configuration_value(key)
    try:
        value = instance.get_value()
    except Exception:
        # Do not cache if value is invalid
        return
    transaction.on_commit(lambda: cache_configuration_value(key, value))


@receiver(post_delete, sender=Configuration)
def remove_cached_configuration_value(
    sender: type[Configuration], *, instance: Configuration, **kwargs
) -> None:
    """
    Post-delete signal handler that drops the cached value for the deleted key.

    The value is dropped again on commit in case a concurrent reader cached
    the old row while the delete was still uncommitted.
    """
    key = instance.key
    clear_configuration_value(key)
    transaction.on_commit(lambda: clear_configuration_value(key))
