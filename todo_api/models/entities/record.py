from sqlalchemy import BigInteger, Column, LargeBinary, String
from todo_api.models.base import Base

class CollectionRow(Base):
    __tablename__ = 'collections'
    name = Column(String, primary_key=True)
    sequence = Column(BigInteger, nullable=False, default=0)

class RecordRow(Base):
    __tablename__ = 'records'
    __table_args__ = {'sqlite_with_rowid': False}
    collection = Column(String, primary_key=True)
    key = Column(LargeBinary, primary_key=True)
    value = Column(LargeBinary, nullable=False)
