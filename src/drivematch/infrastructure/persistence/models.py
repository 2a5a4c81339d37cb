# -*- coding: utf-8 -*-
from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class MatchingModel(Base):
    __tablename__ = "matchings"

    id = Column("id", String(36), primary_key=True)
    name = Column("name", String(255), nullable=False)
    description = Column("description", Text, nullable=False, default="")
    license_types = Column("license_types", JSON, nullable=False)
    status = Column(
        "status",
        Enum("draft", "applied", "archived", name="matching_status", native_enum=False),
        nullable=False,
        default="draft",
    )
    is_locked = Column("is_locked", Boolean, nullable=False, default=False)
    total_students = Column("total_students", Integer, nullable=False, default=0)
    total_instructors = Column("total_instructors", Integer, nullable=False, default=0)
    created_at = Column("created_at", DateTime(timezone=True), nullable=False)
    created_by = Column("created_by", String(64), nullable=False)
    last_modified = Column("last_modified", DateTime(timezone=True), nullable=True)
    modified_by = Column("modified_by", String(64), nullable=True)

    assignments = relationship(
        "AssignmentModel",
        back_populates="matching",
        cascade="all, delete-orphan",
        order_by="AssignmentModel.position",
    )

    __table_args__ = (
        CheckConstraint("total_students >= 0"),
        CheckConstraint("total_instructors >= 0"),
        Index("ix_matchings_status_created", "status", "created_at"),
    )


class AssignmentModel(Base):
    __tablename__ = "matching_assignments"

    id = Column("id", Integer, primary_key=True, autoincrement=True)
    matching_id = Column(
        "matching_id",
        String(36),
        ForeignKey("matchings.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column("position", Integer, nullable=False)
    student_id = Column("student_id", String(64), nullable=False)
    instructor_id = Column("instructor_id", String(64), nullable=False)
    license_type = Column("license_type", String(16), nullable=False)
    matched_at = Column("matched_at", DateTime(timezone=True), nullable=False)
    is_transferred = Column("is_transferred", Boolean, nullable=False, default=False)
    previous_instructor_id = Column("previous_instructor_id", String(64), nullable=True)
    transfer_reason = Column("transfer_reason", Text, nullable=True)

    matching = relationship("MatchingModel", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("matching_id", "student_id", name="uq_matching_assignment_student"),
        CheckConstraint(
            "is_transferred OR previous_instructor_id IS NULL",
            name="ck_assignment_transfer_provenance",
        ),
        Index("ix_matching_assignments_instructor", "matching_id", "instructor_id"),
    )
