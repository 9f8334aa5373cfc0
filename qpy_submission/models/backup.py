"""Bookkeeping tables for backup and restore runs"""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from qpy_submission.models.base import BaseModel


class BackupIdRecord(BaseModel):
    """An entity id annotated for inclusion in one backup run"""
    __tablename__ = "backup_ids_temp"
    __table_args__ = (
        UniqueConstraint("backupid", "itemname", "itemid", name="uq_backup_ids_temp_item"),
    )

    backupid = Column(String(32), nullable=False, index=True)
    itemname = Column(String(160), nullable=False)
    itemid = Column(Integer, nullable=False)


class RestoreMapping(BaseModel):
    """Old-to-new id mapping recorded during one restore run"""
    __tablename__ = "restore_mappings"
    __table_args__ = (
        UniqueConstraint("restoreid", "itemname", "oldid", name="uq_restore_mappings_item"),
    )

    restoreid = Column(String(32), nullable=False, index=True)
    itemname = Column(String(160), nullable=False)
    oldid = Column(Integer, nullable=False)
    newid = Column(Integer, nullable=False)
