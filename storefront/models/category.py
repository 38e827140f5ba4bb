from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from storefront.db.base_class import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Products keep existing when their category goes away (ON DELETE SET NULL)
    products = relationship("Product", back_populates="category", passive_deletes=True)
