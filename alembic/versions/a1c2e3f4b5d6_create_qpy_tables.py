"""create submission link, question bank, plugin config and backup tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = "a1c2e3f4b5d6"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "question_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("contextid", sa.Integer(), nullable=False),
        sa.Column("parent", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_question_categories_contextid"), "question_categories", ["contextid"], unique=False)
    op.create_index(op.f("ix_question_categories_parent"), "question_categories", ["parent"], unique=False)

    op.create_table(
        "question_bank_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("questioncategoryid", sa.Integer(), nullable=False),
        sa.Column("idnumber", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(["questioncategoryid"], ["question_categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_question_bank_entries_questioncategoryid"),
        "question_bank_entries", ["questioncategoryid"], unique=False,
    )

    op.create_table(
        "question_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("questionbankentryid", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("questionid", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.ForeignKeyConstraint(["questionbankentryid"], ["question_bank_entries.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("questionid"),
        sa.UniqueConstraint("questionbankentryid", "version", name="uq_question_versions_entry_version"),
    )
    op.create_index(
        op.f("ix_question_versions_questionbankentryid"),
        "question_versions", ["questionbankentryid"], unique=False,
    )

    op.create_table(
        "question_references",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("usingcontextid", sa.Integer(), nullable=False),
        sa.Column("component", sa.String(100), nullable=False),
        sa.Column("questionarea", sa.String(50), nullable=False),
        sa.Column("itemid", sa.Integer(), nullable=False),
        sa.Column("questionbankentryid", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "usingcontextid", "component", "questionarea", "itemid",
            name="uq_question_references_slot",
        ),
    )
    op.create_index(
        op.f("ix_question_references_questionbankentryid"),
        "question_references", ["questionbankentryid"], unique=False,
    )

    op.create_table(
        "assignsubmission_qpy",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assignment", sa.Integer(), nullable=False),
        sa.Column("submission", sa.Integer(), nullable=False),
        sa.Column("questionusageid", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("submission", name="uq_assignsubmission_qpy_submission"),
    )
    op.create_index(op.f("ix_assignsubmission_qpy_assignment"), "assignsubmission_qpy", ["assignment"], unique=False)

    op.create_table(
        "assign_plugin_config",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("assignment", sa.Integer(), nullable=False),
        sa.Column("plugin", sa.String(28), nullable=False),
        sa.Column("subtype", sa.String(28), nullable=False),
        sa.Column("name", sa.String(28), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("assignment", "plugin", "subtype", "name", name="uq_assign_plugin_config"),
    )
    op.create_index(op.f("ix_assign_plugin_config_assignment"), "assign_plugin_config", ["assignment"], unique=False)

    op.create_table(
        "backup_ids_temp",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("backupid", sa.String(32), nullable=False),
        sa.Column("itemname", sa.String(160), nullable=False),
        sa.Column("itemid", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("backupid", "itemname", "itemid", name="uq_backup_ids_temp_item"),
    )
    op.create_index(op.f("ix_backup_ids_temp_backupid"), "backup_ids_temp", ["backupid"], unique=False)

    op.create_table(
        "restore_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("restoreid", sa.String(32), nullable=False),
        sa.Column("itemname", sa.String(160), nullable=False),
        sa.Column("oldid", sa.Integer(), nullable=False),
        sa.Column("newid", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("restoreid", "itemname", "oldid", name="uq_restore_mappings_item"),
    )
    op.create_index(op.f("ix_restore_mappings_restoreid"), "restore_mappings", ["restoreid"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_restore_mappings_restoreid"), table_name="restore_mappings")
    op.drop_table("restore_mappings")
    op.drop_index(op.f("ix_backup_ids_temp_backupid"), table_name="backup_ids_temp")
    op.drop_table("backup_ids_temp")
    op.drop_index(op.f("ix_assign_plugin_config_assignment"), table_name="assign_plugin_config")
    op.drop_table("assign_plugin_config")
    op.drop_index(op.f("ix_assignsubmission_qpy_assignment"), table_name="assignsubmission_qpy")
    op.drop_table("assignsubmission_qpy")
    op.drop_index(op.f("ix_question_references_questionbankentryid"), table_name="question_references")
    op.drop_table("question_references")
    op.drop_index(op.f("ix_question_versions_questionbankentryid"), table_name="question_versions")
    op.drop_table("question_versions")
    op.drop_index(op.f("ix_question_bank_entries_questioncategoryid"), table_name="question_bank_entries")
    op.drop_table("question_bank_entries")
    op.drop_index(op.f("ix_question_categories_parent"), table_name="question_categories")
    op.drop_index(op.f("ix_question_categories_contextid"), table_name="question_categories")
    op.drop_table("question_categories")
