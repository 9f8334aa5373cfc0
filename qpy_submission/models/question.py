"""Question bank tables shared with the host platform"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint

from qpy_submission.models.base import BaseModel


class QuestionCategory(BaseModel):
    """
    Node of the question category tree.
    parent = 0 marks a root category.
    """
    __tablename__ = "question_categories"

    name = Column(String(255), nullable=False, default="")
    contextid = Column(Integer, nullable=False, index=True)
    parent = Column(Integer, nullable=False, default=0, index=True)

    def __repr__(self) -> str:
        return f"<QuestionCategory {self.id} parent={self.parent}>"


class QuestionBankEntry(BaseModel):
    """A versioned question definition living in a category"""
    __tablename__ = "question_bank_entries"

    questioncategoryid = Column(Integer, ForeignKey("question_categories.id"), nullable=False, index=True)
    idnumber = Column(String(100), nullable=True)


class QuestionVersion(BaseModel):
    """One concrete question (questionid) as a version of a bank entry"""
    __tablename__ = "question_versions"
    __table_args__ = (
        UniqueConstraint("questionbankentryid", "version", name="uq_question_versions_entry_version"),
    )

    questionbankentryid = Column(Integer, ForeignKey("question_bank_entries.id"), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)
    questionid = Column(Integer, nullable=False, unique=True)
    status = Column(String(10), nullable=False, default="ready")


class QuestionReference(BaseModel):
    """
    Which bank entry (and version) a (context, component, area, item) slot uses.
    version = NULL means always the latest version.
    """
    __tablename__ = "question_references"
    __table_args__ = (
        UniqueConstraint(
            "usingcontextid", "component", "questionarea", "itemid",
            name="uq_question_references_slot",
        ),
    )

    usingcontextid = Column(Integer, nullable=False)
    component = Column(String(100), nullable=False)
    questionarea = Column(String(50), nullable=False)
    itemid = Column(Integer, nullable=False)
    questionbankentryid = Column(Integer, nullable=False, index=True)
    version = Column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<QuestionReference item={self.itemid} entry={self.questionbankentryid} v={self.version}>"
