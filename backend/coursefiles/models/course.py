from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from coursefiles.core.database import Base


class Course(Base):
    """Read-only here; courses are managed by the main platform."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    university_id = Column(Integer, nullable=False, index=True)

    # Relationships
    modules = relationship("Module", back_populates="course", lazy="raise")


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Relationships
    course = relationship("Course", back_populates="modules", lazy="raise")
    files = relationship("File", back_populates="module", lazy="raise")


class ProfessorCourse(Base):
    __tablename__ = "professor_courses"

    professor_id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id"), primary_key=True, index=True)
