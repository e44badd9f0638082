# ui_helpers.py
"""
Glue between GUI callbacks and the store: every call comes back as a
{"success", "message"} result so the caller can show it in a dialog.
"""

import logging

logger = logging.getLogger(__name__)


def store_call(action, *args, **kwargs):
    """Run a store/export action; a disk write failure becomes a failed result."""
    try:
        res = action(*args, **kwargs)
    except OSError as e:
        logger.error("%s failed: %s", getattr(action, "__name__", "store call"), e)
        return {"success": False, "message": f"Could not write library data: {e}"}
    if isinstance(res, dict) and "success" in res:
        return res
    return {"success": True, "message": "Done.", "result": res}
