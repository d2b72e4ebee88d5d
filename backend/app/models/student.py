"""
Modèle SQLAlchemy pour la table students.
L'identifiant est le numéro d'étudiant (chaîne), repris tel quel dans l'import/export CSV.
Chaque élève porte deux paires d'identifiants : élève (login_id) et parent (parent_id).
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from app.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(String(20), primary_key=True)                  # Numéro d'étudiant, ex. "222056"
    name = Column(String(100), nullable=False)
    login_id = Column(String(50), unique=True, nullable=False)
    login_password = Column(String(100), nullable=False)
    parent_id = Column(String(50), nullable=False)
    parent_password = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    class_name = Column("class", String(50), nullable=True)    # Ex. "25期生昼間部"
    last_login = Column(DateTime, nullable=True)
    login_count = Column(Integer, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ParentStudent(Base):
    """Association compte parent ↔ élèves suivis."""
    __tablename__ = "parent_students"
    __table_args__ = (UniqueConstraint("parent_id", "student_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(String(50), nullable=False)
    student_id = Column(String(20), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
