"""Application context package.

Public API::

    from interceptca.app import AppContext
"""

from interceptca.app.context import AppContext

__all__ = ["AppContext"]
