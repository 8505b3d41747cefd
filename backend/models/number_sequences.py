from sqlalchemy import Column, Integer, String
from database import Base

class NumberSequence(Base):
    """One counter row per document prefix and day, e.g. key "PAY-20250315"."""
    __tablename__ = "number_sequences"

    key = Column(String, primary_key=True)
    last_value = Column(Integer, default=0, nullable=False)
