"""Submission to question usage links"""

from sqlalchemy import Column, Integer, UniqueConstraint

from qpy_submission.models.base import BaseModel, TimestampMixin


class SubmissionUsageLink(BaseModel, TimestampMixin):
    """
    Binds one assignment submission to the question usage holding its answer.
    At most one row exists per submission.
    """
    __tablename__ = "assignsubmission_qpy"
    __table_args__ = (
        UniqueConstraint("submission", name="uq_assignsubmission_qpy_submission"),
    )

    assignment = Column(Integer, nullable=False, index=True)
    submission = Column(Integer, nullable=False)
    questionusageid = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<SubmissionUsageLink submission={self.submission} usage={self.questionusageid}>"
