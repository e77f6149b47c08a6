# backend/models/users.py
from sqlalchemy import Column, Integer, String
from database import Base

# Represents a user account; the cart only needs it to resolve bearer tokens
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="customer")
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
