"""
SQLAlchemy ORM models for runtimes, problems and submissions.

Only the fields the grading engine reads or writes are modelled here.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


class RuntimeModel(Base):
    """How to execute one language (admin-defined)."""

    __tablename__ = "runtimes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    language: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    docker_image: Mapped[str] = mapped_column(String(255), nullable=False)
    run_command: Mapped[str] = mapped_column(Text, nullable=False)
    memory_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cpu_limit: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Runtime {self.language} image={self.docker_image!r}>"


class ProblemModel(Base):
    """A problem and its ordered test cases."""

    __tablename__ = "problems"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # Seconds per test case
    time_limit: Mapped[float | None] = mapped_column(Float, nullable=True)

    test_cases: Mapped[list["TestCaseModel"]] = relationship(
        back_populates="problem",
        cascade="all, delete-orphan",
        order_by="TestCaseModel.order_index",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Problem {self.id} title={self.title!r}>"


class TestCaseModel(Base):
    """Input / expected output pair belonging to a problem."""

    __tablename__ = "test_cases"
    __test__ = False

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    problem_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("problems.id", ondelete="CASCADE"), index=True
    )
    input: Mapped[str] = mapped_column(Text, nullable=False, default="")
    expected_output: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_sample: Mapped[bool] = mapped_column(Boolean, default=False)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now()
    )

    problem: Mapped["ProblemModel"] = relationship(back_populates="test_cases")


class SubmissionModel(Base):
    """A user's submitted code for a problem."""

    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    problem_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("problems.id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(50), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="PENDING", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        server_default=func.now(),
        onupdate=func.now(),
    )

    problem: Mapped["ProblemModel"] = relationship(lazy="selectin")
    test_case_results: Mapped[list["SubmissionTestCaseResultModel"]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmissionTestCaseResultModel.created_at",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Submission {self.id} status={self.status}>"


class SubmissionTestCaseResultModel(Base):
    """Per-test-case verdict, written as soon as the case finishes."""

    __tablename__ = "submission_test_case_results"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("submissions.id", ondelete="CASCADE"), index=True
    )
    test_case_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("test_cases.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    stdout: Mapped[str] = mapped_column(Text, nullable=False, default="")
    execution_time: Mapped[int] = mapped_column(Integer, default=0)

    # Copied so results stay displayable if the problem is edited later
    input: Mapped[str] = mapped_column(Text, nullable=False, default="")
    expected_output: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now()
    )

    submission: Mapped["SubmissionModel"] = relationship(back_populates="test_case_results")

    def __repr__(self) -> str:
        return f"<SubmissionTestCaseResult {self.id} status={self.status}>"
