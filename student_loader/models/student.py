from sqlalchemy import Column, Integer, MetaData, String, Table

from student_loader.core.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    grade = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)


def student_table(name: str = "students") -> Table:
    """Students table under ``name``, on its own metadata."""
    if name == Student.__tablename__:
        return Student.__table__
    return Student.__table__.to_metadata(MetaData(), name=name)
