"""interceptca: transient Certificate Authority for TLS interception.

Public API::

    from interceptca.app import AppContext

    ctx = AppContext(config)
    record = ctx.authority.get_or_create(ctx.config, ctx.logger)
    ...
    ctx.shutdown()
"""

__version__ = "1.0.0"


def get_full_version() -> str:
    """Return the version string used to scope on-disk state."""
    return __version__
