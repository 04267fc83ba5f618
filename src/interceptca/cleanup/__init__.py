"""Best-effort removal of on-disk scratch state."""

from interceptca.cleanup.tempdir import cleanup_temp_directory

__all__ = ["cleanup_temp_directory"]
