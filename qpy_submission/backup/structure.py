"""
XML structure of this plugin's part of an assignment backup.

Layout:

    <assign id="..." contextid="...">
      <subplugin_assignsubmission_qpy_assign>
        <question_references>
          <question_reference id="..."> usingcontextid component questionarea
                                        questionbankentryid version
      <submissions>
        <submission id="...">
          <subplugin_assignsubmission_qpy_submission>
            <submission_qpy id="..."> submission questionusageid
              <question_usage .../>   (written by the question engine)
"""

import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from qpy_submission.models.enums import COMPONENT
from qpy_submission.schemas.assignment import AssignmentContext
from qpy_submission.services.question_engine import QuestionEngine
from qpy_submission.services.question_reference_service import QuestionReferenceResolver
from qpy_submission.services.usage_record_store import UsageRecordStore

NULL_MARKER = "$@NULL@$"

REFERENCE_FIELDS = ("usingcontextid", "component", "questionarea", "questionbankentryid", "version")
SUBMISSION_FIELDS = ("submission", "questionusageid")

ASSIGN_WRAPPER = f"subplugin_{COMPONENT}_assign"
SUBMISSION_WRAPPER = f"subplugin_{COMPONENT}_submission"


def add_field(parent: ET.Element, name: str, value: Any) -> ET.Element:
    child = ET.SubElement(parent, name)
    child.text = NULL_MARKER if value is None else str(value)
    return child


def read_fields(element: ET.Element) -> Dict[str, Optional[str]]:
    """Leaf children of an element as a name -> text dict."""
    fields: Dict[str, Optional[str]] = {}
    for child in element:
        if len(child):
            continue
        text = child.text or ""
        fields[child.tag] = None if text == NULL_MARKER else text
    return fields


def to_bytes(root: ET.Element) -> bytes:
    ET.indent(root)
    return b'<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="utf-8")


class AssignmentBackupWriter:
    """Writes question references and submission links of one assignment."""

    def __init__(self, db: AsyncSession, assignment: AssignmentContext, engine: QuestionEngine):
        self.assignment = assignment
        self.engine = engine
        self.store = UsageRecordStore(db)
        self.references = QuestionReferenceResolver(db, assignment)

    async def assign_element(self) -> ET.Element:
        wrapper = ET.Element(ASSIGN_WRAPPER)
        references = ET.SubElement(wrapper, "question_references")
        for reference in await self.references.references_for_item():
            element = ET.SubElement(references, "question_reference", id=str(reference.id))
            for name in REFERENCE_FIELDS:
                add_field(element, name, getattr(reference, name))
        return wrapper

    async def submission_element(self, submission_id: int) -> ET.Element:
        wrapper = ET.Element(SUBMISSION_WRAPPER)
        link = await self.store.get(submission_id)
        if link is not None:
            element = ET.SubElement(wrapper, "submission_qpy", id=str(link.id))
            for name in SUBMISSION_FIELDS:
                add_field(element, name, getattr(link, name))
            element.append(await self.engine.backup_usage(link.questionusageid))
        return wrapper

    async def build(self) -> ET.Element:
        root = ET.Element(
            "assign",
            id=str(self.assignment.instance_id),
            contextid=str(self.assignment.context_id),
        )
        root.append(await self.assign_element())
        submissions = ET.SubElement(root, "submissions")
        for link in await self.store.list_for_assignment(self.assignment.instance_id):
            submission = ET.SubElement(submissions, "submission", id=str(link.submission))
            submission.append(await self.submission_element(link.submission))
        return root
