from typing import Any

from django.conf import settings
from django.core.cache import caches

from configuration.models import Configuration

CONFIGURATION_KEY_PREFIX = "config"

#: Marker for "no default supplied" so that None can be a legitimate default
NOT_SET = object()


def _cache_key(key: str) -> str:
    return f"{CONFIGURATION_KEY_PREFIX}_{key}"


def configuration_value(key: str, default: Any = NOT_SET) -> Any:
    """
    Retrieve a configuration value by key with caching and type casting.

    Behavior:
        - Look up the value in the ``configuration_cache`` using a namespaced
          cache key.
        - If the value is missing, delegate to
          ``cache_configuration_value(key)`` to fetch, cast, cache, and return
          the value.
        - If the key does not exist and a ``default`` was supplied, return the
          default without caching it.

    Args:
        key (str): The configuration key to resolve.
        default (Any): Value returned when the key is not configured.

    Returns:
        Any: The resolved and type-cast configuration value.

    Raises:
        Configuration.DoesNotExist: If the key is not present in the database
            and no default was supplied.
    """
    config_cache = caches["configuration_cache"]
    value = config_cache.get(_cache_key(key))

    if value is None:
        try:
            value = cache_configuration_value(key)
        except Configuration.DoesNotExist:
            if default is NOT_SET:
                raise
            return default

    return value


def cache_configuration_value(key: str, value: Any | None = None) -> Any:
    """
    Populate or refresh the cached value for a configuration key.

    Behavior:
        - If ``value`` is ``None``, fetch the ``Configuration`` by ``key``,
          cast it via ``get_value()``, and cache the result.
        - If ``value`` is provided, cache that value directly.
        - Always write to the ``configuration_cache`` using the configured
          ``settings.CONFIGURATION_CACHE_TIMEOUT``.

    Raises:
        Configuration.DoesNotExist: If ``value`` is ``None`` and there is no
            ``Configuration`` row with the given key.
    """
    config_cache = caches["configuration_cache"]

    if value is None:
        config = Configuration.objects.get(key=key)
        value = config.get_value()

    config_cache.set(
        _cache_key(key), value, timeout=settings.CONFIGURATION_CACHE_TIMEOUT
    )
    return value


def clear_configuration_value(key: str) -> None:
    caches["configuration_cache"].delete(_cache_key(key))


def set_configuration_value(
    key: str, value: Any, data_type: str | None = None, description: str = ""
) -> Any:
    """
    Create or update the configuration row for ``key``.

    The data type is inferred from the Python value unless given explicitly:
    booleans, numbers and strings keep their own types and everything else is
    stored as JSON. The post_save signal refreshes the cache.

    Returns:
        Any: The value as it will be read back through ``configuration_value``.
    """
    if data_type is None:
        data_type = Configuration.data_type_for(value)

    config = Configuration.objects.filter(key=key).first() or Configuration(key=key)
    config.data_type = data_type
    config.set_value(value)
    if description:
        config.description = description
    config.save()
    return config.get_value()


def delete_configuration_value(key: str) -> bool:
    """
    Remove the configuration row for ``key`` if there is one.

    Returns:
        bool: True if a row was deleted.
    """
    deleted, _ = Configuration.objects.filter(key=key).delete()
    return bool(deleted)
