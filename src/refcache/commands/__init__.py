"""Built-in CLI sub-commands for refcache.

* :mod:`~refcache.commands.cache` -- ``fetch``, ``resolve``, ``expire``,
  ``clear`` and ``stats``, registered directly on the root app.
* :mod:`~refcache.commands.config` -- the ``config`` sub-command group for
  viewing and modifying global settings.
"""
