"""Database table definitions for the incremental build manifest"""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class BuildRecord(SQLModel, table=True):
    """Last successful render of one content file"""
    __tablename__ = "build_records"
    path: str = Field(sa_column=Column(Text, primary_key=True))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    layout_hash: str = Field(default="", sa_column=Column(String(64), nullable=False, server_default=""))
    output: str = Field(..., sa_column=Column(Text, nullable=False))
    built_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
