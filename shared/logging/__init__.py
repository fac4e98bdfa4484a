from .config import setup_logging
from .correlation import get_run_id, set_run_id

__all__ = ["setup_logging", "set_run_id", "get_run_id"]
