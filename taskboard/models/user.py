from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from taskboard.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Holds the email address used at signup
    username = Column(String(191), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    tasks = relationship("Task", back_populates="owner", passive_deletes=True)
