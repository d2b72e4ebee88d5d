"""
Modèle SQLAlchemy pour les comptes administrateurs.
Le mot de passe est stocké sous forme de hash bcrypt.
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.database import Base


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
