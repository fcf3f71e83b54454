from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, Integer, String, Numeric, Text

Base = declarative_base()

class ProductDB(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String)
    price = Column(Numeric(10, 2))
    description = Column(Text)
