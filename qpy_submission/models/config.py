"""Per-assignment plugin configuration"""

from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from qpy_submission.models.base import BaseModel, TimestampMixin


class AssignPluginConfig(BaseModel, TimestampMixin):
    """Name/value settings of a plugin for one assignment instance"""
    __tablename__ = "assign_plugin_config"
    __table_args__ = (
        UniqueConstraint("assignment", "plugin", "subtype", "name", name="uq_assign_plugin_config"),
    )

    assignment = Column(Integer, nullable=False, index=True)
    plugin = Column(String(28), nullable=False)
    subtype = Column(String(28), nullable=False)
    name = Column(String(28), nullable=False)
    value = Column(Text, nullable=True)
