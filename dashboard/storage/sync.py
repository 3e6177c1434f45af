"""One-way migration of locally cached analyses into Supabase."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .gateway import PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    tenant_id: str
    attempted: int = 0
    synced: int = 0
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "attempted": self.attempted,
            "synced": self.synced,
            "success": self.success,
            "error": self.error,
        }


async def sync_local_to_remote(gateway: PersistenceGateway, tenant_id: str) -> SyncReport:
    """Upsert every local analysis of a tenant into Supabase in one batch.

    Keyed on ``id``, so re-running with the same local data creates no
    duplicates. Local copies are kept.
    """
    report = SyncReport(tenant_id=tenant_id)

    if not gateway.remote_available:
        logger.warning("Supabase not available for sync")
        report.success = False
        report.error = "remote unavailable"
        return report

    try:
        local_analyses = await asyncio.to_thread(gateway.local.read_tenant_list, tenant_id)
    except Exception as e:
        logger.error(f"Could not read local analyses for tenant {tenant_id}: {e}")
        report.success = False
        report.error = str(e)
        return report

    if not local_analyses:
        return report

    report.attempted = len(local_analyses)
    logger.info(f"Syncing {report.attempted} analyses for tenant {tenant_id} to Supabase")
    try:
        await gateway.remote.upsert_analyses(local_analyses)
    except Exception as e:
        logger.error(f"Sync failed for tenant {tenant_id}: {e}")
        report.success = False
        report.error = str(e)
        return report

    report.synced = report.attempted
    logger.info(f"Sync completed for tenant {tenant_id}")
    return report
