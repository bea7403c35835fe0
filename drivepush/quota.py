"""
Storage quota gate for pushes.
"""
import logging
from typing import List

from .config import QUOTA_ALMOST_EXCEEDED_RATIO
from .models import Change, Op, QuotaStatus
from .remote import RateLimitError, RemoteClient
from .utils.retries import with_retry

logger = logging.getLogger(__name__)

_GROWTH_OPS = (Op.ADD, Op.MOD, Op.MOD_CONFLICT)


def reduce_to_size(changes: List[Change], is_push: bool) -> int:
    """
    Bytes the desired side of `changes` would transfer.

    Directories and deletions add nothing.
    """
    total = 0
    for change in changes:
        if change.op not in _GROWTH_OPS:
            continue
        file = change.src if is_push else change.dest
        if file is None or file.is_dir:
            continue
        total += file.size
    return total


def classify_quota(used: int, limit: int, projected: int) -> QuotaStatus:
    """
    Classify projected usage against the account limit.

    A limit of zero or less means the account has no quota.
    """
    if limit <= 0:
        return QuotaStatus.OK

    total = used + projected
    if total > limit:
        return QuotaStatus.EXCEEDED
    if total / limit >= QUOTA_ALMOST_EXCEEDED_RATIO:
        return QuotaStatus.ALMOST_EXCEEDED
    return QuotaStatus.OK


def quota_status(remote: RemoteClient, projected: int) -> QuotaStatus:
    """Query the account and classify a push of `projected` bytes."""
    used, limit = with_retry(exceptions=(RateLimitError,))(remote.quota)()
    status = classify_quota(used, limit, projected)
    logger.debug(f"Quota {used}/{limit} + {projected} -> {status.value}")
    return status


def pretty_bytes(size: int) -> str:
    """Human readable byte count, e.g. 1536 -> '1.50 KiB'."""
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if abs(value) < 1024 or unit == "TiB":
            break
        value /= 1024
    if unit == "B":
        return f"{int(value)} B"
    return f"{value:.2f} {unit}"
