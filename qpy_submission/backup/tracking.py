"""Id bookkeeping of backup and restore runs"""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.models.backup import BackupIdRecord, RestoreMapping
from qpy_submission.models.enums import BackupItem
from qpy_submission.services.question_reference_service import dialect_insert


class BackupIdsService:
    """Annotates entity ids for inclusion in one backup run."""

    def __init__(self, db: AsyncSession, backup_id: str):
        self.db = db
        self.backup_id = backup_id

    async def register(self, item_name: BackupItem, item_id: int) -> None:
        """Insert-if-absent; registering the same id twice leaves one row."""
        insert = dialect_insert(self.db)
        stmt = insert(BackupIdRecord).values(
            backupid=self.backup_id,
            itemname=BackupItem(item_name).value,
            itemid=item_id,
        ).on_conflict_do_nothing(index_elements=["backupid", "itemname", "itemid"])
        await self.db.execute(stmt)

    async def get_ids(self, item_name: BackupItem) -> List[int]:
        result = await self.db.execute(
            select(BackupIdRecord.itemid)
            .where(
                BackupIdRecord.backupid == self.backup_id,
                BackupIdRecord.itemname == BackupItem(item_name).value,
            )
            .order_by(BackupIdRecord.itemid)
        )
        return list(result.scalars().all())

    async def clear(self) -> int:
        """Drop every id annotated for this run once the host has written its backup."""
        result = await self.db.execute(
            delete(BackupIdRecord).where(BackupIdRecord.backupid == self.backup_id)
        )
        return result.rowcount or 0


class RestoreMappingService:
    """Old-to-new id mappings of one restore run."""

    def __init__(self, db: AsyncSession, restore_id: str):
        self.db = db
        self.restore_id = restore_id

    async def set_mapping(self, item_name: BackupItem, old_id: int, new_id: int) -> None:
        insert = dialect_insert(self.db)
        stmt = insert(RestoreMapping).values(
            restoreid=self.restore_id,
            itemname=BackupItem(item_name).value,
            oldid=old_id,
            newid=new_id,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["restoreid", "itemname", "oldid"],
            set_={"newid": stmt.excluded.newid},
        )
        await self.db.execute(stmt)

    async def get_mapping_id(self, item_name: BackupItem, old_id: int) -> Optional[int]:
        return await self.db.scalar(
            select(RestoreMapping.newid).where(
                RestoreMapping.restoreid == self.restore_id,
                RestoreMapping.itemname == BackupItem(item_name).value,
                RestoreMapping.oldid == old_id,
            )
        )

    async def clear(self) -> int:
        result = await self.db.execute(
            delete(RestoreMapping).where(RestoreMapping.restoreid == self.restore_id)
        )
        return result.rowcount or 0
